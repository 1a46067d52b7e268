"""Schedule input loading and output writing.

Reads an input document from a local JSON/YAML file or an HTTP(S) URL.
Document format:
  devices: [{id, name, power, duration, mode?}]
  rates: [{from, to, value}]
  maxPower: number
"""

import json
import logging
import math
from pathlib import Path

import httpx
import yaml

from .errors import InvalidInputError, LoaderError
from .models import MODES, Device, ScheduleInput, ScheduleResult, SystemConfig
from .tariffs import parse_rate

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}
DEFAULT_TIMEOUT = 30.0


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def parse_device(raw: dict) -> Device:
    """Build a Device from a mapping, validating its fields."""
    if not isinstance(raw, dict):
        raise InvalidInputError(f"Device must be a mapping, got {raw!r}")

    for key in ("id", "name", "power", "duration"):
        if key not in raw:
            raise InvalidInputError(f"Device {raw.get('id', raw)!r} is missing field '{key}'")

    power = raw["power"]
    if not _is_number(power) or power <= 0:
        raise InvalidInputError(f"Device {raw['id']!r} power must be a positive number, got {power!r}")

    # Durations above 24 are allowed through: the scheduler reports them
    # as unplaceable.
    duration = raw["duration"]
    if isinstance(duration, bool) or not isinstance(duration, int) or duration < 1:
        raise InvalidInputError(
            f"Device {raw['id']!r} duration must be a positive integer, got {duration!r}"
        )

    mode = raw.get("mode")
    if mode is not None and mode not in MODES:
        raise InvalidInputError(f"Device {raw['id']!r} mode must be one of {MODES}, got {mode!r}")

    return Device(
        id=str(raw["id"]),
        name=str(raw["name"]),
        power=power,
        duration=duration,
        mode=mode,
    )


def parse_input(data: dict, max_power: float | None = None) -> ScheduleInput:
    """Validate an input document and convert it into a ScheduleInput.

    Args:
        data: Decoded input document
        max_power: Overrides the document's maxPower when given

    Returns:
        ScheduleInput with devices and rates in document order
    """
    if not isinstance(data, dict):
        raise InvalidInputError("Input document must be a mapping")

    for key in ("devices", "rates"):
        if not isinstance(data.get(key), list):
            raise InvalidInputError(f"Input document needs a '{key}' list")

    devices = [parse_device(d) for d in data["devices"]]
    seen = set()
    for device in devices:
        if device.id in seen:
            raise InvalidInputError(f"Duplicate device id {device.id!r}")
        seen.add(device.id)

    rates = [parse_rate(r) for r in data["rates"]]

    if max_power is None:
        max_power = data.get("maxPower")
    if not _is_number(max_power) or max_power <= 0:
        raise InvalidInputError(f"maxPower must be a positive number, got {max_power!r}")

    return ScheduleInput(devices=devices, rates=rates, config=SystemConfig(max_power=max_power))


def decode_document(text: str, fmt: str) -> dict:
    """Decode document text as 'json' or 'yaml'."""
    try:
        if fmt == "yaml":
            return yaml.safe_load(text)
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise LoaderError(f"Could not decode {fmt.upper()} input: {e}") from e


def fetch_document(url: str, timeout: float = DEFAULT_TIMEOUT) -> dict:
    """Fetch an input document over HTTP(S)."""
    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as e:
        raise LoaderError(f"Could not fetch {url}: {e}") from e

    content_type = response.headers.get("content-type", "")
    fmt = "yaml" if "yaml" in content_type else "json"
    return decode_document(response.text, fmt)


def read_document(path: Path) -> dict:
    """Read an input document from a file, format chosen by suffix."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise LoaderError(f"Could not read {path}: {e}") from e

    fmt = "yaml" if Path(path).suffix.lower() in YAML_SUFFIXES else "json"
    return decode_document(text, fmt)


def load_input(source: str | Path, max_power: float | None = None) -> ScheduleInput:
    """Load and validate schedule input from a file path or URL."""
    source_str = str(source)
    if source_str.startswith(("http://", "https://")):
        data = fetch_document(source_str)
    else:
        data = read_document(Path(source))

    schedule_input = parse_input(data, max_power=max_power)
    logger.info(
        "Loaded %d device(s) and %d rate(s) from %s",
        len(schedule_input.devices),
        len(schedule_input.rates),
        source_str,
    )
    return schedule_input


def write_output(result: ScheduleResult, path: Path) -> None:
    """Write a schedule result as an indented JSON output document."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=1, ensure_ascii=False)
        f.write("\n")
