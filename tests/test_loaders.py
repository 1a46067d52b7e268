"""Tests for schedule input loading and output writing."""

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from powerplan.errors import InvalidInputError, LoaderError
from powerplan.loaders import load_input, parse_input, write_output
from powerplan.models import Device, RateInterval, ScheduleResult


@pytest.fixture
def mock_client():
    with patch("httpx.Client") as mock:
        yield mock.return_value.__enter__.return_value


def test_parse_input(sample_data):
    schedule_input = parse_input(sample_data)

    assert len(schedule_input.devices) == 5
    assert schedule_input.devices[0] == Device(
        id="F972B82BA56A70CC579945773B6866FB",
        name="Dishwasher",
        power=950,
        duration=3,
        mode="night",
    )
    assert schedule_input.devices[2].mode is None
    assert schedule_input.rates[3] == RateInterval(23, 7, 1.79)
    assert schedule_input.config.max_power == 2100


def test_parse_input_max_power_override(sample_data):
    assert parse_input(sample_data, max_power=5000).config.max_power == 5000


def test_parse_input_allows_long_durations(sample_data):
    """Durations over 24 hours are reported by the scheduler, not rejected."""
    sample_data["devices"][0]["duration"] = 25

    assert parse_input(sample_data).devices[0].duration == 25


@pytest.mark.parametrize(
    "field,value",
    [
        ("power", 0),
        ("power", "lots"),
        ("power", float("nan")),
        ("power", float("inf")),
        ("duration", 0),
        ("duration", 1.5),
        ("mode", "evening"),
    ],
)
def test_parse_input_rejects_bad_device_fields(sample_data, field, value):
    sample_data["devices"][0][field] = value

    with pytest.raises(InvalidInputError, match=field):
        parse_input(sample_data)


def test_parse_input_rejects_missing_device_field(sample_data):
    del sample_data["devices"][1]["name"]

    with pytest.raises(InvalidInputError, match="name"):
        parse_input(sample_data)


def test_parse_input_rejects_duplicate_ids(sample_data):
    sample_data["devices"][1]["id"] = sample_data["devices"][0]["id"]

    with pytest.raises(InvalidInputError, match="Duplicate"):
        parse_input(sample_data)


def test_parse_input_rejects_missing_max_power(sample_data):
    del sample_data["maxPower"]

    with pytest.raises(InvalidInputError, match="maxPower"):
        parse_input(sample_data)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), -100])
def test_parse_input_rejects_non_finite_max_power(sample_data, value):
    sample_data["maxPower"] = value

    with pytest.raises(InvalidInputError, match="maxPower"):
        parse_input(sample_data)


def test_load_input_rejects_nan_literal(tmp_path, sample_data):
    """json accepts a bare NaN token, which must not get through validation."""
    path = tmp_path / "input.json"
    path.write_text(json.dumps(sample_data).replace("2100", "NaN"))

    with pytest.raises(InvalidInputError, match="maxPower"):
        load_input(path)


def test_parse_input_rejects_missing_rates(sample_data):
    del sample_data["rates"]

    with pytest.raises(InvalidInputError, match="rates"):
        parse_input(sample_data)


def test_load_input_from_json(input_file):
    schedule_input = load_input(input_file)

    assert [d.name for d in schedule_input.devices][:2] == ["Dishwasher", "Oven"]


def test_load_input_from_yaml(tmp_path):
    path = tmp_path / "input.yaml"
    path.write_text(
        "devices:\n"
        "  - {id: kettle, name: Kettle, power: 2000, duration: 1, mode: day}\n"
        "rates:\n"
        "  - {from: 0, to: 7, value: 1.5}\n"
        "maxPower: 3000\n"
    )

    schedule_input = load_input(path)

    assert schedule_input.devices == [Device("kettle", "Kettle", 2000, 1, "day")]
    assert schedule_input.config.max_power == 3000


def test_load_input_missing_file(tmp_path):
    with pytest.raises(LoaderError, match="Could not read"):
        load_input(tmp_path / "missing.json")


def test_load_input_invalid_json(tmp_path):
    path = tmp_path / "input.json"
    path.write_text("{not json")

    with pytest.raises(LoaderError, match="JSON"):
        load_input(path)


def test_load_input_from_url(mock_client, sample_data):
    response = MagicMock()
    response.text = json.dumps(sample_data)
    response.headers = {"content-type": "application/json"}
    mock_client.get.return_value = response

    schedule_input = load_input("https://example.com/input.json")

    mock_client.get.assert_called_once_with("https://example.com/input.json")
    response.raise_for_status.assert_called_once()
    assert len(schedule_input.devices) == 5


def test_load_input_url_network_error(mock_client):
    mock_client.get.side_effect = httpx.ConnectError("Connection refused")

    with pytest.raises(LoaderError, match="Connection refused"):
        load_input("https://example.com/input.json")


def test_write_output(tmp_path):
    result = ScheduleResult(
        schedule={hour: [] for hour in range(24)} | {3: ["kettle"]},
        total_cost=1.5,
        device_costs={"kettle": 1.5},
        devices={"kettle": "Чайник"},
    )
    path = tmp_path / "output.json"

    write_output(result, path)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["schedule"]["3"] == ["kettle"]
    assert data["schedule"]["0"] == []
    assert data["consumedEnergy"] == {"value": 1.5, "devices": {"kettle": 1.5}}
    assert data["devices"] == {"kettle": "Чайник"}
    assert "Чайник" in path.read_text(encoding="utf-8")
