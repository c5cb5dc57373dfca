# runtime/registries.py
from collections.abc import Callable

from railnet.app.protocols import Objective
from railnet.config.models import RouterModel
from railnet.domain.objectives import DistanceObjective, TimeObjective, TransferObjective

ObjectiveFactory = Callable[[RouterModel, dict], Objective]

_objective_registry: dict[str, ObjectiveFactory] = {}


# ------------------- Optimization objectives ---------------------------


def register_objective(kind: str):
    def deco(fn: ObjectiveFactory):
        _objective_registry[kind] = fn
        return fn

    return deco


def objective_kinds() -> list[str]:
    return list(_objective_registry)


def make_objective(kind: str, cfg: RouterModel, *, deps: dict) -> Objective:
    """
    deps must include:
      - 'speeds': LineSpeeds   # per-line speed lookup of the built network
      - 'line_ids': list[str]  # lines present in the network
    """
    try:
        factory = _objective_registry[kind]
    except KeyError:
        raise ValueError(f"Unknown optimization mode {kind!r}")
    return factory(cfg, deps)


def _minutes_per_mile(deps: dict) -> float:
    return 60.0 / deps["speeds"].max_speed_mph(deps["line_ids"])


@register_objective("time")
def _make_time(cfg: RouterModel, deps):
    return TimeObjective(cfg.speeds.transfer_penalty_min, _minutes_per_mile(deps))


@register_objective("distance")
def _make_distance(cfg: RouterModel, deps):
    return DistanceObjective()


@register_objective("transfers")
def _make_transfers(cfg: RouterModel, deps):
    return TransferObjective(cfg.routing.transfer_weight, _minutes_per_mile(deps))
