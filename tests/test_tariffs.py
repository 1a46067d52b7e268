import pytest

from powerplan.errors import InvalidInputError, LoaderError
from powerplan.models import RateInterval
from powerplan.tariffs import (
    NO_RATE_PRICE,
    interval_contains,
    load_rates_from_yaml,
    mode_for_hour,
    parse_rate,
    price_for_hour,
    rates_for_hour,
)

RATES = [
    RateInterval(7, 10, 6.46),
    RateInterval(10, 17, 5.38),
    RateInterval(21, 23, 5.38),
    RateInterval(23, 7, 1.79),
]


def test_mode_for_night_hours():
    """Hours 21-23 and 0-6 are night."""
    for hour in [21, 22, 23, 0, 1, 2, 3, 4, 5, 6]:
        assert mode_for_hour(hour) == "night"


def test_mode_for_day_hours():
    """Hours 7-20 are day."""
    for hour in range(7, 21):
        assert mode_for_hour(hour) == "day"


def test_mode_for_hour_missing():
    with pytest.raises(InvalidInputError):
        mode_for_hour()


def test_interval_contains_plain_range():
    assert interval_contains(15, 10, 18) is True
    assert interval_contains(11, 9, 12) is True
    assert interval_contains(15, 9, 11) is False
    assert interval_contains(11, 15, 20) is False


def test_interval_contains_overnight_range():
    """Ranges whose end is lower than their start wrap past midnight."""
    assert interval_contains(1, 0, 3) is True
    assert interval_contains(0, 23, 6) is True
    assert interval_contains(23, 23, 6) is True
    assert interval_contains(6, 23, 6) is False
    assert interval_contains(12, 23, 6) is False


def test_interval_contains_rejects_bad_hour():
    with pytest.raises(InvalidInputError, match="23"):
        interval_contains(222, 23, 7)


def test_rates_for_hour():
    assert rates_for_hour(15, RATES) == [RATES[1]]
    assert rates_for_hour(22, RATES) == [RATES[2]]


def test_rates_for_hour_includes_start_excludes_end():
    """[7, 10) covers hour 7 but not hour 10."""
    assert rates_for_hour(7, RATES) == [RATES[0]]
    assert RATES[0] not in rates_for_hour(10, RATES)
    assert rates_for_hour(23, RATES) == [RATES[3]]


def test_rates_for_hour_without_rates():
    assert rates_for_hour(18, RATES) == []


def test_price_for_hour_takes_minimum_of_overlapping_rates():
    rates = RATES + [RateInterval(8, 9, 2.0)]
    assert price_for_hour(8, rates) == 2.0
    assert price_for_hour(7, rates) == 6.46


def test_price_for_unpriced_hour():
    assert price_for_hour(18, RATES) == NO_RATE_PRICE


def test_parse_rate():
    assert parse_rate({"from": 23, "to": 7, "value": 1.79}) == RateInterval(23, 7, 1.79)


@pytest.mark.parametrize(
    "raw",
    [
        {"from": 23, "to": 7},
        {"from": 24, "to": 7, "value": 1.0},
        {"from": 1.5, "to": 7, "value": 1.0},
        {"from": 1, "to": 7, "value": -1.0},
        {"from": 1, "to": 7, "value": "cheap"},
        {"from": 1, "to": 7, "value": float("nan")},
        {"from": 1, "to": 7, "value": float("inf")},
    ],
)
def test_parse_rate_rejects_invalid(raw):
    with pytest.raises(InvalidInputError):
        parse_rate(raw)


def test_load_rates_from_yaml(tmp_path):
    path = tmp_path / "rates.yaml"
    path.write_text("rates:\n  - {from: 23, to: 7, value: 1.79}\n  - {from: 7, to: 23, value: 5.38}\n")

    rates = load_rates_from_yaml(path)

    assert rates == [RateInterval(23, 7, 1.79), RateInterval(7, 23, 5.38)]


def test_load_rates_from_yaml_without_rates(tmp_path):
    path = tmp_path / "rates.yaml"
    path.write_text("tariff: flat\n")

    with pytest.raises(InvalidInputError, match="rates"):
        load_rates_from_yaml(path)


def test_load_rates_from_missing_file(tmp_path):
    with pytest.raises(LoaderError):
        load_rates_from_yaml(tmp_path / "missing.yaml")
