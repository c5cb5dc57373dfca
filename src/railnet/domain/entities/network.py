from dataclasses import dataclass
from enum import Enum

Coord = tuple[float, float]  # (lon, lat) in degrees

# Sentinel line ids for walk links
TRANSFER = "TRANSFER"
CONNECTOR = "CONNECTOR"
WALK_LINES = frozenset({TRANSFER, CONNECTOR})


class NodeKind(str, Enum):
    ENDPOINT = "endpoint"
    INTERSECTION = "intersection"
    STATION = "station"  # named, externally supplied
    INTERPOLATED = "interpolated-station"
    VIRTUAL = "virtual-access"


# Higher wins when candidates are merged into one node
KIND_PRIORITY = {
    NodeKind.INTERSECTION: 4,
    NodeKind.ENDPOINT: 3,
    NodeKind.STATION: 2,
    NodeKind.INTERPOLATED: 1,
    NodeKind.VIRTUAL: 0,
}


def stronger_kind(a: NodeKind, b: NodeKind) -> NodeKind:
    return a if KIND_PRIORITY[a] >= KIND_PRIORITY[b] else b


@dataclass(frozen=True)
class Node:
    id: str
    coordinates: Coord
    lines: frozenset[str]
    kind: NodeKind
    name: str | None = None


@dataclass(frozen=True)
class Edge:
    id: str
    from_id: str
    to_id: str
    line: str
    distance_mi: float
    time_min: float
    geometry: tuple[Coord, ...]

    @property
    def is_walk(self) -> bool:
        return self.line in WALK_LINES

    def other(self, node_id: str) -> str:
        return self.to_id if node_id == self.from_id else self.from_id


@dataclass(frozen=True)
class AccessPoint:
    """Graph entry/exit point chosen for a query coordinate."""

    node_id: str
    point: Coord
    walk_distance_mi: float
    walk_time_min: float
    virtual: bool = False


@dataclass(frozen=True)
class RouteSegment:
    line: str
    from_node: Node
    to_node: Node
    distance_mi: float
    time_min: float
    hops: int
    is_walk: bool


@dataclass
class RouteResult:
    nodes: list[Node]
    edges: list[Edge]
    segments: list[RouteSegment]
    total_distance_mi: float
    total_time_min: float
    walking_time_min: float
    transit_time_min: float
    transfers: int
    lines: list[str]
    start_access: AccessPoint | None = None
    end_access: AccessPoint | None = None
    score: float = 0.0
