# railnet/domain/access.py
from railnet.domain.entities.network import AccessPoint, Coord, Edge, Node, NodeKind
from railnet.domain.geometry import polyline_length, project_onto_polyline, slice_polyline
from railnet.domain.graph import GraphOverlay, NetworkGraph
from railnet.domain.spatial import SpatialGrid
from railnet.domain.speeds import LineSpeeds


class AccessResolver:
    """
    Maps a query coordinate onto graph entry points.

    Permanent nodes within walking range are preferred. When there are none,
    the nearest travel edge in range is split inside the query overlay and a
    virtual-access node is joined to both halves.
    """

    CELL_MI = 1.0  # access grid bucket size

    def __init__(
        self,
        graph: NetworkGraph,
        speeds: LineSpeeds,
        *,
        max_candidates: int = 5,
        cell_mi: float = CELL_MI,
    ):
        self.graph, self.speeds = graph, speeds
        self.max_candidates = max_candidates
        self._grid = SpatialGrid.of(((n.id, n.coordinates) for n in graph.nodes()), cell_mi)

    def nearby(self, point: Coord, radius_mi: float) -> list[tuple[float, str]]:
        """Permanent nodes within `radius_mi`, closest first."""
        return self._grid.near(point, radius_mi)

    def resolve(
        self,
        overlay: GraphOverlay,
        point: Coord,
        max_walking_mi: float,
        role: str = "start",
    ) -> list[AccessPoint]:
        hits = self.nearby(point, max_walking_mi)[: self.max_candidates]
        if hits:
            return [
                AccessPoint(nid, point, d, self.speeds.walking_time_min(d)) for d, nid in hits
            ]
        ap = self._split_nearest_edge(overlay, point, max_walking_mi, role)
        return [ap] if ap is not None else []

    def _split_nearest_edge(
        self, overlay: GraphOverlay, point: Coord, max_walking_mi: float, role: str
    ) -> AccessPoint | None:
        best = None
        for edge in overlay.edges():
            if edge.is_walk:
                continue
            proj = project_onto_polyline(point, edge.geometry)
            if proj.distance <= max_walking_mi and (best is None or proj.distance < best[0].distance):
                best = (proj, edge)
        if best is None:
            return None
        proj, edge = best

        vid = overlay.next_id(f"virtual_{role}")
        overlay.add_node(Node(vid, proj.point, frozenset({edge.line}), NodeKind.VIRTUAL))
        for half in split_edge(edge, vid, proj.arc_position, overlay.next_id):
            overlay.add_edge(half)
        overlay.hide_edge(edge.id)
        return AccessPoint(
            vid, point, proj.distance, self.speeds.walking_time_min(proj.distance), virtual=True
        )


def split_edge(edge: Edge, node_id: str, arc: float, next_id) -> tuple[Edge, Edge]:
    """Two halves of `edge` meeting at `node_id`, weights proportional to arc length."""
    length = polyline_length(edge.geometry)
    f = min(max(arc / length, 0.0), 1.0) if length > 0 else 0.0
    head = slice_polyline(edge.geometry, 0.0, arc)
    tail = slice_polyline(edge.geometry, arc, length)
    return (
        Edge(
            next_id(f"{edge.id}_a"),
            edge.from_id,
            node_id,
            edge.line,
            edge.distance_mi * f,
            edge.time_min * f,
            tuple(head),
        ),
        Edge(
            next_id(f"{edge.id}_b"),
            node_id,
            edge.to_id,
            edge.line,
            edge.distance_mi * (1.0 - f),
            edge.time_min * (1.0 - f),
            tuple(tail),
        ),
    )
