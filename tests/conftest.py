import copy
import json

import pytest

from powerplan.loaders import parse_input

SAMPLE_DATA = {
    "devices": [
        {
            "id": "F972B82BA56A70CC579945773B6866FB",
            "name": "Dishwasher",
            "power": 950,
            "duration": 3,
            "mode": "night",
        },
        {
            "id": "C515D887EDBBE669B2FDAC62F571E9E9",
            "name": "Oven",
            "power": 2000,
            "duration": 2,
            "mode": "day",
        },
        {
            "id": "02DDD23A85DADDD71198305330CC386D",
            "name": "Fridge",
            "power": 50,
            "duration": 24,
        },
        {
            "id": "1E6276CC231716FE8EE8BC908486D41E",
            "name": "Thermostat",
            "power": 50,
            "duration": 24,
        },
        {
            "id": "7D9DC84AD110500D284B33C82FE6E85E",
            "name": "Air conditioner",
            "power": 850,
            "duration": 1,
        },
    ],
    "rates": [
        {"from": 7, "to": 10, "value": 6.46},
        {"from": 10, "to": 17, "value": 5.38},
        {"from": 21, "to": 23, "value": 5.38},
        {"from": 23, "to": 7, "value": 1.79},
    ],
    "maxPower": 2100,
}


@pytest.fixture
def sample_data():
    """A fresh copy of the sample household document."""
    return copy.deepcopy(SAMPLE_DATA)


@pytest.fixture
def sample_input(sample_data):
    return parse_input(sample_data)


@pytest.fixture
def input_file(tmp_path, sample_data):
    """The sample document written as a JSON file."""
    path = tmp_path / "input.json"
    path.write_text(json.dumps(sample_data), encoding="utf-8")
    return path
