"""Data models for devices, tariffs and schedules."""

from dataclasses import dataclass, field

DAY = "day"
NIGHT = "night"
MODES = (DAY, NIGHT)

HOURS_PER_DAY = 24


@dataclass(frozen=True)
class Device:
    """An electrical device that must run once per day."""

    id: str
    name: str
    power: float  # watts
    duration: int  # contiguous hours
    mode: str | None = None  # 'day', 'night' or None for any time

    @property
    def footprint(self) -> float:
        """Total energy footprint used to rank devices (power x duration)."""
        return self.power * self.duration


@dataclass(frozen=True)
class RateInterval:
    """A half-open [start, end) hour range with a price per kWh.

    An end hour lower than the start hour wraps past midnight.
    """

    start: int
    end: int
    value: float


@dataclass(frozen=True)
class SystemConfig:
    """Shared power budget available in every hour."""

    max_power: float  # watts


@dataclass(frozen=True)
class ScheduleInput:
    """Everything needed to compute a schedule."""

    devices: list[Device]
    rates: list[RateInterval]
    config: SystemConfig


@dataclass
class HourSlot:
    """Mutable state of one hour during a scheduling run."""

    hour: int
    mode: str
    price: float
    power: float  # remaining capacity in watts
    workers: list[str] = field(default_factory=list)  # device names
    workers_id: list[str] = field(default_factory=list)  # device ids
    priced: bool = True  # False when no rate interval covers the hour


@dataclass(frozen=True)
class ScheduleResult:
    """Final schedule for a day."""

    schedule: dict[int, list[str]]
    total_cost: float
    device_costs: dict[str, float]
    devices: dict[str, str]
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Output document: schedule, consumedEnergy and the device name map."""
        return {
            "schedule": {hour: list(ids) for hour, ids in self.schedule.items()},
            "consumedEnergy": {
                "value": self.total_cost,
                "devices": dict(self.device_costs),
            },
            "devices": dict(self.devices),
        }
