"""Tariff rate lookup and day/night modes for each hour."""

import logging
import math
from pathlib import Path

import yaml

from .errors import InvalidInputError, LoaderError
from .models import DAY, HOURS_PER_DAY, NIGHT, RateInterval

logger = logging.getLogger(__name__)

# Price used for hours no rate interval covers. Higher than any real tariff,
# so these hours are only picked when nothing cheaper fits.
NO_RATE_PRICE = 999

DAY_START_HOUR = 7
NIGHT_START_HOUR = 21


def mode_for_hour(hour: int | None = None) -> str:
    """Get the mode of an hour: night is 21:00-07:00, day is 07:00-21:00."""
    if hour is None:
        raise InvalidInputError("Required parameter hour is missing")
    return NIGHT if (hour < DAY_START_HOUR or hour >= NIGHT_START_HOUR) else DAY


def interval_contains(hour: int, start: int, end: int) -> bool:
    """Check if an hour falls within [start, end) (handles overnight ranges).

    The start hour is included, the end hour is not.
    """
    if hour is None:
        raise InvalidInputError("Required parameter hour is missing")
    if hour > HOURS_PER_DAY - 1:
        raise InvalidInputError(f"Hour can not be bigger than {HOURS_PER_DAY - 1}, got {hour}")

    if start > end:
        # Overnight range (e.g., 23 to 7)
        return hour >= start or 0 <= hour < end
    return start <= hour < end


def rates_for_hour(hour: int, rates: list[RateInterval]) -> list[RateInterval]:
    """Get every rate interval covering an hour, in input order."""
    return [rate for rate in rates if interval_contains(hour, rate.start, rate.end)]


def price_for_hour(hour: int, rates: list[RateInterval]) -> float:
    """Get the cheapest applicable price for an hour, or NO_RATE_PRICE."""
    return min((rate.value for rate in rates_for_hour(hour, rates)), default=NO_RATE_PRICE)


def parse_rate(raw: dict) -> RateInterval:
    """Build a RateInterval from a {from, to, value} mapping."""
    try:
        start = raw["from"]
        end = raw["to"]
        value = raw["value"]
    except (KeyError, TypeError) as e:
        raise InvalidInputError(f"Rate interval {raw!r} is missing field {e}") from e

    for bound in (start, end):
        if isinstance(bound, bool) or not isinstance(bound, int) or not 0 <= bound < HOURS_PER_DAY:
            raise InvalidInputError(f"Rate interval hours must be integers 0-23, got {raw!r}")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"Rate value must be a number, got {raw!r}")
    if not math.isfinite(value) or value < 0:
        raise InvalidInputError(f"Rate value must be a finite non-negative number, got {raw!r}")

    return RateInterval(start=start, end=end, value=float(value))


def load_rates_from_yaml(config_path: Path) -> list[RateInterval]:
    """Load rate intervals from a YAML file with a top-level 'rates' list."""
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise LoaderError(f"Could not read rates file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise LoaderError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("rates"), list):
        raise InvalidInputError(f"{config_path} has no 'rates' list")

    rates = [parse_rate(r) for r in data["rates"]]
    logger.info("Loaded %d rate interval(s) from %s", len(rates), config_path)
    return rates
