# tests/conftest.py
import pytest

from railnet.app.router import TransitRouter
from railnet.config.models import LineModel
from railnet.domain.geometry import offset

BASE = (-118.0, 34.0)


def at(east_mi: float, north_mi: float = 0.0):
    """Point `east_mi`/`north_mi` miles from BASE."""
    return offset(BASE, east_mi, north_mi)


def line(line_id: str, *pts) -> LineModel:
    return LineModel(line_id=line_id, coordinates=[at(*p) for p in pts])


def router_cfg(**routing) -> dict:
    # fixed 20 mph on every test line, no dwell, so times are easy to reason about
    return {
        "name": "test",
        "speeds": {"lines": {"A": 20.0, "B": 20.0, "C": 20.0, "X": 20.0}, "station_dwell_min": 0.0},
        "routing": routing,
    }


@pytest.fixture
def parallel_lines():
    # A runs 5 mi east; B starts 0.2 mi north of A's end and runs 5 mi further
    return [line("A", (0, 0), (5, 0)), line("B", (5, 0.2), (10, 0.2))]


@pytest.fixture
def crossing_lines():
    return [line("A", (0, 0), (4, 0)), line("X", (2, -2), (2, 2))]


@pytest.fixture
def parallel_router(parallel_lines):
    r = TransitRouter(router_cfg())
    r.initialize(parallel_lines)
    return r
