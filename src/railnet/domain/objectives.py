# railnet/domain/objectives.py
from dataclasses import dataclass

from railnet.app.protocols import Objective
from railnet.domain.entities.network import Edge


@dataclass(frozen=True)
class TimeObjective(Objective):
    transfer_penalty_min: float
    rate: float  # minutes per straight-line mile at the fastest network speed
    name: str = "time"

    def step(self, edge: Edge, line_change: bool) -> float:
        return edge.time_min + (self.transfer_penalty_min if line_change else 0.0)

    def score(self, *, time_min: float, distance_mi: float, transfers: int) -> float:
        return time_min + transfers * self.transfer_penalty_min


@dataclass(frozen=True)
class DistanceObjective(Objective):
    rate: float = 1.0
    name: str = "distance"

    def step(self, edge: Edge, line_change: bool) -> float:
        return edge.distance_mi

    def score(self, *, time_min: float, distance_mi: float, transfers: int) -> float:
        return distance_mi


@dataclass(frozen=True)
class TransferObjective(Objective):
    """Lexicographic: fewest transfers first, then time."""

    weight: float
    rate: float
    name: str = "transfers"

    def step(self, edge: Edge, line_change: bool) -> float:
        return edge.time_min + (self.weight if line_change else 0.0)

    def score(self, *, time_min: float, distance_mi: float, transfers: int) -> float:
        return transfers * self.weight + time_min
