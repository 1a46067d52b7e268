"""Exceptions raised and recorded while building schedules."""

from .models import Device


class PowerplanError(Exception):
    """Base exception for powerplan errors."""
    pass


class InvalidInputError(PowerplanError, ValueError):
    """An hour or input field is missing or out of range."""
    pass


class LoaderError(PowerplanError):
    """Input document could not be read, fetched or decoded."""
    pass


class PlacementError(PowerplanError):
    """A device could not be placed anywhere in the day.

    These are collected per device and never abort a scheduling run.
    """

    reason = "Could not place"

    def __init__(self, device: Device):
        self.device = device
        super().__init__(f"{self.reason} {device.name}")


class NoCandidateHoursError(PlacementError):
    """No hour matches the device mode with enough spare power."""

    reason = "No more space available for"


class InsufficientHourCountError(PlacementError):
    """Fewer candidate hours than the device needs to run."""

    reason = "Not enough available hours for"


class NoContiguousWindowError(PlacementError):
    """Candidate hours exist but no contiguous run of them fits."""

    reason = "Not enough available continuous hours for"
