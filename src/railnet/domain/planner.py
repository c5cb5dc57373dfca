# railnet/domain/planner.py
import heapq
import itertools
import time
from collections.abc import Callable
from dataclasses import dataclass

from railnet.app.protocols import GraphView, Objective
from railnet.domain.entities.network import Edge
from railnet.domain.geometry import distance

Heuristic = Callable[[str, str], float]
State = tuple[str, "str | None"]  # (node id, last line ridden)


@dataclass(frozen=True)
class SearchLabel:
    node_id: str
    cost: float
    time_min: float
    distance_mi: float
    transfers: int
    last_line: str | None  # last non-walk line ridden
    prev: "SearchLabel | None" = None
    edge: Edge | None = None  # edge used to reach node_id from prev


def straight_line_heuristic(view: GraphView, objective: Objective) -> Heuristic:
    """Great-circle miles to the target times the objective's lower-bound rate."""

    def h(node_id: str, target_id: str) -> float:
        a = view.node(node_id).coordinates
        b = view.node(target_id).coordinates
        return distance(a, b) * objective.rate

    return h


class PathPlanner:
    """
    Single-source, single-target label search. Dijkstra without a heuristic,
    A* with one. One label per (node, last line) state, since the next line
    change depends on it. Costs within `tie_epsilon` keep the label with
    fewer transfers, also across the states that reach the target.
    """

    CLOCK_EVERY = 256  # pops between deadline checks

    def __init__(
        self,
        objective: Objective,
        *,
        heuristic: Heuristic | None = None,
        tie_epsilon: float = 1e-6,
    ):
        self.objective, self.heuristic, self.eps = objective, heuristic, tie_epsilon
        self.timed_out = False
        self.expanded = 0

    def search(
        self,
        view: GraphView,
        source: str,
        target: str,
        *,
        deadline: float | None = None,
    ) -> SearchLabel | None:
        self.timed_out, self.expanded = False, 0
        if not (view.has_node(source) and view.has_node(target)):
            return None
        h = self.heuristic or (lambda _u, _v: 0.0)
        start = SearchLabel(source, 0.0, 0.0, 0.0, 0, None)
        best: dict[State, SearchLabel] = {_state(start): start}
        settled: set[State] = set()
        seq = itertools.count()
        heap = [(h(source, target), next(seq), start)]
        pops = 0
        found: SearchLabel | None = None
        while heap:
            if found is not None and heap[0][0] > found.cost + self.eps:
                break
            if deadline is not None and pops % self.CLOCK_EVERY == 0:
                if time.perf_counter() > deadline:
                    self.timed_out = True
                    return None
            pops += 1
            _, _, lab = heapq.heappop(heap)
            key = _state(lab)
            if key in settled or best.get(key) is not lab:
                continue  # stale entry
            if lab.node_id == target:
                if found is None or self._better(lab, found):
                    found = lab
                continue
            settled.add(key)
            self.expanded += 1
            u = lab.node_id
            for eid in view.incident(u):
                edge = view.edge(eid)
                nxt = self._extend(lab, edge, edge.other(u))
                nkey = _state(nxt)
                if nkey in settled:
                    continue
                cur = best.get(nkey)
                if cur is None or self._better(nxt, cur):
                    best[nkey] = nxt
                    heapq.heappush(heap, (nxt.cost + h(nxt.node_id, target), next(seq), nxt))
        return found

    def _extend(self, lab: SearchLabel, edge: Edge, v: str) -> SearchLabel:
        # walk links pass the previous line through unchanged
        if edge.is_walk:
            change, last = False, lab.last_line
        else:
            change = lab.last_line is not None and edge.line != lab.last_line
            last = edge.line
        return SearchLabel(
            v,
            lab.cost + self.objective.step(edge, change),
            lab.time_min + edge.time_min,
            lab.distance_mi + edge.distance_mi,
            lab.transfers + int(change),
            last,
            lab,
            edge,
        )

    def _better(self, a: SearchLabel, b: SearchLabel) -> bool:
        if a.cost < b.cost - self.eps:
            return True
        return abs(a.cost - b.cost) <= self.eps and a.transfers < b.transfers


def _state(lab: SearchLabel) -> State:
    return lab.node_id, lab.last_line
