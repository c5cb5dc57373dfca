from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from railnet.domain.entities.network import Edge, Node


# ------------- Graph access --------------------
@runtime_checkable
class GraphView(Protocol):
    """
    Read access shared by the permanent graph and a query overlay.
    Search code only ever sees this interface.
    """

    def node(self, node_id: str) -> Node: ...
    def edge(self, edge_id: str) -> Edge: ...
    def has_node(self, node_id: str) -> bool: ...
    def incident(self, node_id: str) -> list[str]: ...
    def nodes(self) -> Iterable[Node]: ...
    def edges(self) -> Iterable[Edge]: ...


# ------------- Search objectives --------------------
@runtime_checkable
class Objective(Protocol):
    """
    Responsibilities:
      • Price one edge traversal, given whether it changes line.
      • Score a finished route (access walks included) for candidate selection.
      • Expose `rate`: a lower bound on cost per straight-line mile (A* heuristic).
    """

    name: str
    rate: float

    def step(self, edge: Edge, line_change: bool) -> float: ...
    def score(self, *, time_min: float, distance_mi: float, transfers: int) -> float: ...
