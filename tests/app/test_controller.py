# tests/app/test_controller.py
import pytest

from conftest import at
from railnet.app.controller import RouteController
from railnet.app.router import RouteStatus


def test_calculate_needs_both_points(parallel_router):
    c = RouteController(parallel_router)
    assert not c.ready
    out = c.calculate()
    assert out.status is RouteStatus.INVALID
    assert out.errors == ["Place the start point first", "Place the end point first"]


def test_place_and_calculate(parallel_router):
    c = RouteController(parallel_router)
    seen = []
    unsubscribe = c.subscribe(lambda ctl: seen.append((ctl.start, ctl.end, ctl.outcome)))

    c.begin_placing("start")
    assert c.placing == "start"
    c.place(at(0, 0))
    assert c.start == at(0, 0) and c.placing is None
    c.set_end(at(10, 0.2))
    assert c.ready

    out = c.calculate()
    assert out.found and c.outcome is out
    assert seen[-1][2] is out
    n = len(seen)

    unsubscribe()
    c.swap()
    assert c.start == at(10, 0.2) and c.outcome is None
    assert len(seen) == n
    assert c.calculate().route.lines == ["B", "A"]


def test_controller_passes_query_options(parallel_router):
    c = RouteController(parallel_router, max_walking_distance=0.5)
    c.set_start(at(2.5, 2.0))
    c.set_end(at(9, 0.2))
    assert c.calculate().status is RouteStatus.NO_ACCESS

    c.optimize_for = "scenic"
    assert c.calculate().status is RouteStatus.INVALID


def test_clear_and_bad_roles(parallel_router):
    c = RouteController(parallel_router)
    c.set_start(at(0, 0))
    c.clear()
    assert c.start is None and c.end is None and c.outcome is None
    with pytest.raises(ValueError):
        c.begin_placing("middle")
    with pytest.raises(ValueError):
        c.place(at(0, 0))
