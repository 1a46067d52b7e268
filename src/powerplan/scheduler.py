"""Greedy day scheduler for devices under a tariff and a shared power budget.

Algorithm:
1. Build a table of the 24 hours with mode, cheapest applicable price and
   remaining power (starting at the system maximum).
2. Rank devices by footprint (power x duration), largest first.
3. For each device, collect candidate start hours that match its mode and
   still have enough power, then evaluate every contiguous run of
   `duration` hours (wrapping past midnight) starting at a candidate.
4. Commit the cheapest feasible run, earliest hour on ties. Placements are
   never revised once committed.
"""

import logging

from .errors import (
    InsufficientHourCountError,
    NoCandidateHoursError,
    NoContiguousWindowError,
    PlacementError,
)
from .models import HOURS_PER_DAY, Device, HourSlot, RateInterval, ScheduleInput, ScheduleResult
from .tariffs import mode_for_hour, price_for_hour, rates_for_hour

logger = logging.getLogger(__name__)

TOTAL_COST_DECIMALS = 3
DEVICE_COST_DECIMALS = 4


class HourTable:
    """The 24 hour slots of a scheduling run, kept in hour order."""

    def __init__(self, slots: list[HourSlot]):
        self._slots = sorted(slots, key=lambda s: s.hour)

    @classmethod
    def build(cls, rates: list[RateInterval], max_power: float) -> "HourTable":
        """Create a slot for every hour with its mode, price and full power."""
        slots = []
        for hour in range(HOURS_PER_DAY):
            slots.append(
                HourSlot(
                    hour=hour,
                    mode=mode_for_hour(hour),
                    price=price_for_hour(hour, rates),
                    power=max_power,
                    priced=bool(rates_for_hour(hour, rates)),
                )
            )
            logger.debug("Hour %d: mode=%s price=%s", hour, slots[-1].mode, slots[-1].price)
        return cls(slots)

    def get(self, hour: int) -> HourSlot | None:
        """Get the live slot for an hour, or None if there is no such hour."""
        if isinstance(hour, int) and 0 <= hour < len(self._slots):
            return self._slots[hour]
        return None

    def by_price(self) -> list[HourSlot]:
        """Slots sorted by price, then hour. Table order is left untouched."""
        return sorted(self._slots, key=lambda s: (s.price, s.hour))

    def __iter__(self):
        return iter(self._slots)

    def __len__(self) -> int:
        return len(self._slots)


def rank_devices(devices: list[Device]) -> list[Device]:
    """Order devices by footprint, largest first. Ties keep input order."""
    return sorted(devices, key=lambda d: d.footprint, reverse=True)


def _hour_cost(slot: HourSlot, device: Device) -> float:
    """Cost of running a device for one hour: kW x price."""
    return slot.price * device.power / 1000


class DeviceScheduler:
    """Computes a device running schedule on construction.

    Usage:
        scheduler = DeviceScheduler(schedule_input)
        result = scheduler.get_schedule()
        for message in scheduler.get_errors():
            ...
    """

    def __init__(self, data: ScheduleInput):
        self.devices = list(data.devices)
        self.rates = list(data.rates)
        self.max_power = data.config.max_power

        self.total_cost = 0.0
        self.device_costs: dict[str, float] = {}
        self.failures: list[PlacementError] = []

        self.hours = HourTable.build(self.rates, self.max_power)
        self.devices_table = rank_devices(self.devices)
        self._create_schedule()

    def candidate_hours(self, device: Device) -> list[HourSlot]:
        """Hours a device could start in, ignoring contiguity, cheapest first."""
        return [
            slot
            for slot in self.hours.by_price()
            if (device.mode is None or slot.mode == device.mode) and slot.power >= device.power
        ]

    def window_cost(self, start: int, device: Device) -> float | None:
        """Cost of running a device for its full duration from a start hour.

        Returns None if any hour in the run has the wrong mode or too little
        power left.
        """
        cost = 0.0
        for offset in range(device.duration):
            slot = self.hours.get((start + offset) % HOURS_PER_DAY)
            if device.mode is not None and slot.mode != device.mode:
                return None
            if slot.power < device.power:
                return None
            cost += _hour_cost(slot, device)
        return cost

    def find_start_hour(self, device: Device, candidates: list[HourSlot]) -> int | None:
        """Pick the start hour of the cheapest feasible run, earliest on ties."""
        best = None
        for slot in candidates:
            cost = self.window_cost(slot.hour, device)
            if cost is None:
                continue
            if best is None or (cost, slot.hour) < best:
                best = (cost, slot.hour)

        if best is None:
            return None
        return best[1]

    def place_device(self, device: Device) -> None:
        """Try to place one device, recording a PlacementError on failure."""
        candidates = self.candidate_hours(device)

        if not candidates:
            self._fail(NoCandidateHoursError(device))
            return

        if len(candidates) < device.duration:
            self._fail(InsufficientHourCountError(device))
            return

        start = self.find_start_hour(device, candidates)
        if start is None:
            self._fail(NoContiguousWindowError(device))
            return

        self._commit(device, start)

    def get_schedule(self) -> ScheduleResult:
        """Assemble the final schedule from the hour table."""
        return ScheduleResult(
            schedule={slot.hour: list(slot.workers_id) for slot in self.hours},
            total_cost=round(self.total_cost, TOTAL_COST_DECIMALS),
            device_costs={
                device_id: round(cost, DEVICE_COST_DECIMALS)
                for device_id, cost in self.device_costs.items()
            },
            devices={device.id: device.name for device in self.devices},
            errors=self.get_errors(),
        )

    def get_errors(self) -> list[str]:
        """Messages for devices that could not be placed, in placement order."""
        return [str(failure) for failure in self.failures]

    def _create_schedule(self) -> None:
        for device in self.devices_table:
            self.place_device(device)

    def _commit(self, device: Device, start: int) -> None:
        for offset in range(device.duration):
            slot = self.hours.get((start + offset) % HOURS_PER_DAY)
            slot.power -= device.power
            slot.workers.append(device.name)
            slot.workers_id.append(device.id)

            cost = _hour_cost(slot, device)
            self.total_cost += cost
            self.device_costs[device.id] = self.device_costs.get(device.id, 0.0) + cost

        logger.debug(
            "Placed %s at %02d:00 for %dh (cost %.4f)",
            device.name,
            start,
            device.duration,
            self.device_costs[device.id],
        )

    def _fail(self, error: PlacementError) -> None:
        logger.info("%s", error)
        self.failures.append(error)
