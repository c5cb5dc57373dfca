# railnet/domain/assembler.py
from railnet.app.protocols import GraphView, Objective
from railnet.domain.entities.network import (
    AccessPoint,
    Edge,
    Node,
    RouteResult,
    RouteSegment,
)
from railnet.domain.planner import SearchLabel


def label_chain(label: SearchLabel) -> list[SearchLabel]:
    """Source-first list of labels leading to `label`."""
    chain = []
    cur: SearchLabel | None = label
    while cur is not None:
        chain.append(cur)
        cur = cur.prev
    chain.reverse()
    return chain


def count_transfers(edges: list[Edge]) -> int:
    """Line changes between consecutive ridden lines; walk links do not reset the line."""
    n, last = 0, None
    for e in edges:
        if e.is_walk:
            continue
        if last is not None and e.line != last:
            n += 1
        last = e.line
    return n


def consolidate(edges: list[Edge], nodes: list[Node]) -> list[RouteSegment]:
    """Merge runs of same-line edges (or of walk links) into segments."""
    segments: list[RouteSegment] = []
    start = 0
    for i in range(1, len(edges) + 1):
        if i < len(edges):
            a, b = edges[i - 1], edges[i]
            if a.line == b.line or (a.is_walk and b.is_walk):
                continue
        run = edges[start:i]
        segments.append(
            RouteSegment(
                line=run[0].line,
                from_node=nodes[start],
                to_node=nodes[i],
                distance_mi=sum(e.distance_mi for e in run),
                time_min=sum(e.time_min for e in run),
                hops=len(run),
                is_walk=run[0].is_walk,
            )
        )
        start = i
    return segments


class RouteAssembler:
    def assemble(
        self,
        view: GraphView,
        label: SearchLabel,
        objective: Objective,
        *,
        start_access: AccessPoint | None = None,
        end_access: AccessPoint | None = None,
    ) -> RouteResult:
        chain = label_chain(label)
        nodes = [view.node(lab.node_id) for lab in chain]
        edges = [lab.edge for lab in chain[1:]]

        access_mi = sum(a.walk_distance_mi for a in (start_access, end_access) if a)
        access_min = sum(a.walk_time_min for a in (start_access, end_access) if a)
        walk_links = sum(e.time_min for e in edges if e.is_walk)
        transit = sum(e.time_min for e in edges if not e.is_walk)
        walking = access_min + walk_links
        total_mi = sum(e.distance_mi for e in edges) + access_mi
        total_min = walking + transit
        transfers = count_transfers(edges)

        lines: list[str] = []
        for e in edges:
            if not e.is_walk and e.line not in lines:
                lines.append(e.line)

        return RouteResult(
            nodes=nodes,
            edges=edges,
            segments=consolidate(edges, nodes),
            total_distance_mi=total_mi,
            total_time_min=total_min,
            walking_time_min=walking,
            transit_time_min=transit,
            transfers=transfers,
            lines=lines,
            start_access=start_access,
            end_access=end_access,
            score=objective.score(time_min=total_min, distance_mi=total_mi, transfers=transfers),
        )
