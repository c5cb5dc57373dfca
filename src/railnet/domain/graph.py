# railnet/domain/graph.py
from collections import Counter
from collections.abc import Iterable, Iterator

from railnet.domain.entities.network import CONNECTOR, TRANSFER, Edge, Node


class NetworkGraph:
    """Arena of nodes and edges keyed by id, plus node id -> incident edge ids."""

    def __init__(self):
        self._nodes: dict[str, Node] = {}
        self._edges: dict[str, Edge] = {}
        self._adj: dict[str, list[str]] = {}

    # ------------- mutation (builder only) ----------------

    def add_node(self, node: Node) -> None:
        if node.id in self._nodes:
            raise ValueError(f"duplicate node id {node.id!r}")
        self._nodes[node.id] = node
        self._adj[node.id] = []

    def add_edge(self, edge: Edge) -> None:
        if edge.from_id not in self._nodes or edge.to_id not in self._nodes:
            raise KeyError(f"edge {edge.id!r} references unknown node")
        if not (edge.distance_mi >= 0 and edge.time_min >= 0):
            raise ValueError(f"edge {edge.id!r} has negative or NaN weight")
        self._edges[edge.id] = edge
        self._adj[edge.from_id].append(edge.id)
        self._adj[edge.to_id].append(edge.id)

    def remove_node(self, node_id: str) -> None:
        if self._adj[node_id]:
            raise ValueError(f"node {node_id!r} still has incident edges")
        del self._nodes[node_id]
        del self._adj[node_id]

    # ------------- read access ----------------

    def node(self, node_id: str) -> Node:
        return self._nodes[node_id]

    def edge(self, edge_id: str) -> Edge:
        return self._edges[edge_id]

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def incident(self, node_id: str) -> list[str]:
        return self._adj[node_id]

    def nodes(self) -> Iterable[Node]:
        return self._nodes.values()

    def edges(self) -> Iterable[Edge]:
        return self._edges.values()

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def total_time_min(self) -> float:
        return sum(e.time_min for e in self._edges.values())

    def stats(self) -> dict:
        kinds = Counter(n.kind.value for n in self._nodes.values())
        lines = sorted({ln for n in self._nodes.values() for ln in n.lines})
        return {
            "node_count": self.node_count,
            "edge_count": self.edge_count,
            "line_count": len(lines),
            "lines": lines,
            "kinds": dict(kinds),
            "transfer_count": sum(1 for e in self._edges.values() if e.line == TRANSFER),
            "connector_count": sum(1 for e in self._edges.values() if e.line == CONNECTOR),
        }


class GraphOverlay:
    """
    Query-local delta over an immutable base graph: added nodes/edges and
    hidden (split) edge ids. The base graph is never written to.
    """

    def __init__(self, base: NetworkGraph):
        self.base = base
        self._nodes: dict[str, Node] = {}
        self._edges: dict[str, Edge] = {}
        self._adj: dict[str, list[str]] = {}
        self._hidden: set[str] = set()
        self._seq = 0

    def next_id(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}_{self._seq}"

    def add_node(self, node: Node) -> None:
        if node.id in self._nodes or self.base.has_node(node.id):
            raise ValueError(f"duplicate node id {node.id!r}")
        self._nodes[node.id] = node

    def add_edge(self, edge: Edge) -> None:
        self._edges[edge.id] = edge
        self._adj.setdefault(edge.from_id, []).append(edge.id)
        self._adj.setdefault(edge.to_id, []).append(edge.id)

    def hide_edge(self, edge_id: str) -> None:
        self._hidden.add(edge_id)

    @property
    def added_nodes(self) -> list[Node]:
        return list(self._nodes.values())

    @property
    def hidden_edges(self) -> frozenset[str]:
        return frozenset(self._hidden)

    def node(self, node_id: str) -> Node:
        n = self._nodes.get(node_id)
        return n if n is not None else self.base.node(node_id)

    def edge(self, edge_id: str) -> Edge:
        e = self._edges.get(edge_id)
        return e if e is not None else self.base.edge(edge_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes or self.base.has_node(node_id)

    def incident(self, node_id: str) -> list[str]:
        own = self._adj.get(node_id, [])
        base = self.base.incident(node_id) if self.base.has_node(node_id) else []
        return [e for e in (*base, *own) if e not in self._hidden]

    def nodes(self) -> Iterator[Node]:
        yield from self.base.nodes()
        yield from self._nodes.values()

    def edges(self) -> Iterator[Edge]:
        for e in self.base.edges():
            if e.id not in self._hidden:
                yield e
        for e in self._edges.values():
            if e.id not in self._hidden:
                yield e


def connected_components(graph) -> list[list[str]]:
    """Components over the adjacency index, in node insertion order."""
    seen: set[str] = set()
    comps: list[list[str]] = []
    for n in graph.nodes():
        if n.id in seen:
            continue
        comp, stack = [], [n.id]
        seen.add(n.id)
        while stack:
            cur = stack.pop()
            comp.append(cur)
            for eid in graph.incident(cur):
                nxt = graph.edge(eid).other(cur)
                if nxt not in seen:
                    seen.add(nxt)
                    stack.append(nxt)
        comps.append(comp)
    return comps
