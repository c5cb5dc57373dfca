# tests/domain/test_line_speeds.py
import pytest

from railnet.config.models import LineModel, RouterModel, SpeedModel
from railnet.domain.speeds import LineSpeeds, infer_class
from railnet.runtime.registries import make_objective, objective_kinds


def speeds(**cfg) -> LineSpeeds:
    return LineSpeeds(SpeedModel(**cfg))


def test_historical_exact_and_partial_match():
    s = speeds()
    assert s.speed_mph("Long Beach Line") == 26.0
    assert s.speed_mph("long beach line") == 26.0
    assert s.speed_mph("Long Beach Line (1902)") == 26.0
    # short ids never match a historical name
    assert s.speed_mph("A") == 20.0


def test_class_inference_from_name():
    assert infer_class("Main Street Local") == "streetcar"
    assert infer_class("Pasadena Limited") == "express"
    assert infer_class("Line 9") is None
    s = speeds()
    assert s.speed_mph("Main Street Local") == 12.0
    assert s.speed_mph("Pasadena Limited") == 28.0


def test_precedence():
    s = speeds(lines={"Long Beach Line": 40.0})
    s.register(LineModel(line_id="Long Beach Line", coordinates=[], speed_mph=10.0))
    s.register(LineModel(line_id="Q", coordinates=[], speed_mph=10.0, speed_class="express"))
    s.register(LineModel(line_id="Watts Line", coordinates=[], speed_class="streetcar"))
    s.register(LineModel(line_id="Oak Street", coordinates=[], speed_class="express"))
    assert s.speed_mph("Long Beach Line") == 40.0  # config override
    assert s.speed_mph("Q") == 10.0  # line's own speed beats its class
    assert s.speed_mph("Watts Line") == 19.0  # historical beats declared class
    assert s.speed_mph("Oak Street") == 28.0  # declared class beats inferred

    plain = speeds(use_historical=False, default_class="express")
    assert plain.speed_mph("Long Beach Line") == 28.0


def test_travel_and_walking_times():
    s = speeds(lines={"A": 30.0})
    assert s.travel_time_min(15.0, "A") == pytest.approx(30.0)
    assert s.walking_time_min(0.5) == pytest.approx(10.0)
    assert s.max_speed_mph(["A", "B"]) == 30.0
    assert s.max_speed_mph([]) == 3.0


def test_objective_registry():
    assert set(objective_kinds()) >= {"time", "distance", "transfers"}
    cfg = RouterModel()
    deps = {"speeds": speeds(lines={"A": 30.0}), "line_ids": ["A"]}
    time_obj = make_objective("time", cfg, deps=deps)
    assert time_obj.rate == pytest.approx(2.0)
    assert time_obj.score(time_min=10.0, distance_mi=3.0, transfers=2) == pytest.approx(20.0)
    assert make_objective("distance", cfg, deps=deps).rate == 1.0
    assert make_objective("transfers", cfg, deps=deps).score(
        time_min=10.0, distance_mi=3.0, transfers=1
    ) == pytest.approx(1010.0)
    with pytest.raises(ValueError):
        make_objective("scenic", cfg, deps=deps)
