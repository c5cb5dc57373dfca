# tests/domain/test_path_planner.py
import time

from conftest import at
from railnet.domain.entities.network import TRANSFER, Edge, Node, NodeKind
from railnet.domain.geometry import distance
from railnet.domain.graph import NetworkGraph
from railnet.domain.objectives import DistanceObjective, TimeObjective, TransferObjective
from railnet.domain.planner import PathPlanner, straight_line_heuristic


def make_graph(nodes: dict, edges: list) -> NetworkGraph:
    """nodes: id -> (east, north) miles; edges: (from, to, line, time_min)."""
    g = NetworkGraph()
    for nid, p in nodes.items():
        g.add_node(Node(nid, at(*p), frozenset(), NodeKind.ENDPOINT))
    for i, (a, b, ln, t) in enumerate(edges):
        d = distance(g.node(a).coordinates, g.node(b).coordinates)
        g.add_edge(Edge(f"e{i}", a, b, ln, d, t, (g.node(a).coordinates, g.node(b).coordinates)))
    return g


def path(label):
    out = []
    while label is not None:
        out.append(label.node_id)
        label = label.prev
    return out[::-1]


DIAMOND = {"s": (0, 0), "m1": (1, 1), "m2": (1, -1), "t": (2, 0)}


def test_time_objective_avoids_line_change_when_it_costs_more():
    # via m2 is faster on the clock but changes line (5 min penalty)
    g = make_graph(
        DIAMOND,
        [("s", "m1", "A", 10), ("m1", "t", "A", 10), ("s", "m2", "A", 9), ("m2", "t", "B", 9)],
    )
    lab = PathPlanner(TimeObjective(5.0, rate=0.0)).search(g, "s", "t")
    assert path(lab) == ["s", "m1", "t"]
    assert lab.cost == 20 and lab.transfers == 0

    lab = PathPlanner(TimeObjective(0.0, rate=0.0)).search(g, "s", "t")
    assert path(lab) == ["s", "m2", "t"]
    assert lab.time_min == 18 and lab.transfers == 1


def test_slower_arrival_on_the_onward_line_is_kept():
    # m is reached first on A, but continuing on B from a B arrival avoids the penalty
    g = make_graph(
        {"s": (0, 0), "p": (1, 1), "q": (1, -1), "m": (2, 0), "t": (3, 0)},
        [
            ("s", "p", "A", 5),
            ("p", "m", "A", 5),
            ("s", "q", "B", 5.5),
            ("q", "m", "B", 5.5),
            ("m", "t", "B", 5),
        ],
    )
    for planner in (
        PathPlanner(TimeObjective(5.0, rate=0.0)),
        PathPlanner(TimeObjective(5.0, rate=60.0 / 20.0), heuristic=lambda _u, _v: 0.0),
    ):
        lab = planner.search(g, "s", "t")
        assert path(lab) == ["s", "q", "m", "t"]
        assert lab.cost == 16 and lab.transfers == 0
    assert path(PathPlanner(TimeObjective(5.0, rate=0.0)).search(g, "t", "s")) == ["t", "m", "q", "s"]


def test_equal_cost_prefers_fewer_transfers():
    # the transferring path is discovered first
    g = make_graph(
        DIAMOND,
        [("s", "m1", "A", 10), ("m1", "t", "B", 10), ("s", "m2", "A", 10), ("m2", "t", "A", 10)],
    )
    lab = PathPlanner(TimeObjective(0.0, rate=0.0)).search(g, "s", "t")
    assert path(lab) == ["s", "m2", "t"]
    assert lab.transfers == 0


def test_edges_are_traversed_both_ways():
    g = make_graph(DIAMOND, [("m1", "s", "A", 3), ("t", "m1", "A", 4)])
    lab = PathPlanner(TimeObjective(5.0, rate=0.0)).search(g, "s", "t")
    assert path(lab) == ["s", "m1", "t"]
    assert [e.id for e in (lab.prev.edge, lab.edge)] == ["e0", "e1"]


def test_walk_links_pass_the_line_through():
    nodes = {"s": (0, 0), "a": (1, 0), "b": (1, 0.1), "t": (2, 0.1)}
    same = make_graph(nodes, [("s", "a", "A", 3), ("a", "b", TRANSFER, 7), ("b", "t", "A", 3)])
    lab = PathPlanner(TimeObjective(5.0, rate=0.0)).search(same, "s", "t")
    assert lab.transfers == 0 and lab.cost == 13 and lab.last_line == "A"

    other = make_graph(nodes, [("s", "a", "A", 3), ("a", "b", TRANSFER, 7), ("b", "t", "B", 3)])
    lab = PathPlanner(TimeObjective(5.0, rate=0.0)).search(other, "s", "t")
    assert lab.transfers == 1 and lab.cost == 18 and lab.time_min == 13


def test_transfer_objective_minimizes_transfers_first():
    g = make_graph(
        DIAMOND,
        [("s", "m1", "A", 10), ("m1", "t", "B", 10), ("s", "m2", "A", 60), ("m2", "t", "A", 60)],
    )
    assert PathPlanner(TimeObjective(5.0, rate=0.0)).search(g, "s", "t").transfers == 1
    lab = PathPlanner(TransferObjective(1000.0, rate=0.0)).search(g, "s", "t")
    assert path(lab) == ["s", "m2", "t"]


def test_distance_objective_ignores_time():
    g = make_graph(
        {"s": (0, 0), "near": (1, 0.2), "far": (1, 3), "t": (2, 0)},
        [("s", "near", "A", 50), ("near", "t", "A", 50), ("s", "far", "A", 1), ("far", "t", "A", 1)],
    )
    lab = PathPlanner(DistanceObjective()).search(g, "s", "t")
    assert path(lab) == ["s", "near", "t"]


def test_heuristic_search_agrees_with_dijkstra():
    nodes = {f"n{i}{j}": (i, j) for i in range(4) for j in range(4)}
    edges = []
    for i in range(4):
        for j in range(4):
            if i < 3:
                edges.append((f"n{i}{j}", f"n{i + 1}{j}", "A", 3 + (i * j) % 3))
            if j < 3:
                edges.append((f"n{i}{j}", f"n{i}{j + 1}", "A", 3 + (i + j) % 2))
    g = make_graph(nodes, edges)
    obj = TimeObjective(5.0, rate=60.0 / 20.0)  # every edge is slower than 20 mph
    plain = PathPlanner(obj).search(g, "n00", "n33")
    astar_planner = PathPlanner(obj, heuristic=straight_line_heuristic(g, obj))
    astar = astar_planner.search(g, "n00", "n33")
    assert astar.cost == plain.cost
    assert astar_planner.expanded <= 16


def test_unreachable_and_unknown_targets():
    g = make_graph({"s": (0, 0), "a": (1, 0), "t": (5, 0)}, [("s", "a", "A", 1)])
    planner = PathPlanner(TimeObjective(5.0, rate=0.0))
    assert planner.search(g, "s", "t") is None
    assert not planner.timed_out
    assert planner.search(g, "s", "nope") is None


def test_source_equals_target():
    g = make_graph({"s": (0, 0)}, [])
    lab = PathPlanner(TimeObjective(5.0, rate=0.0)).search(g, "s", "s")
    assert lab.node_id == "s" and lab.prev is None and lab.cost == 0


def test_expired_deadline_flags_timeout():
    g = make_graph(DIAMOND, [("s", "m1", "A", 1), ("m1", "t", "A", 1)])
    planner = PathPlanner(TimeObjective(5.0, rate=0.0))
    assert planner.search(g, "s", "t", deadline=time.perf_counter() - 1.0) is None
    assert planner.timed_out
    assert planner.search(g, "s", "t", deadline=time.perf_counter() + 60.0) is not None
    assert not planner.timed_out
