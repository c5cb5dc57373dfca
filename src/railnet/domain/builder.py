# railnet/domain/builder.py
"""
Network graph construction from raw line polylines.

Five ordered phases:
  1. candidates  collect endpoint / interpolated / intersection / station points
  2. merge       greedy clustering by confidence within the merge radius
  3. edges       travel edges between consecutive nodes along each line
  4. transfers   walking links between nearby nodes on different lines
  5. repair      drop isolated nodes, bridge close components with connectors

The graph is private to the build until it completes, so a cancelled build
never leaves a partial graph behind.
"""

import math
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from railnet.app.hooks import CancelToken, NoopHooks, RouterHooks
from railnet.config.models import BuildModel, LineModel, SpeedModel, StationModel
from railnet.domain.entities.network import (
    CONNECTOR,
    TRANSFER,
    Coord,
    Edge,
    Node,
    NodeKind,
    stronger_kind,
)
from railnet.domain.errors import BuildCancelled, EmptyNetworkError
from railnet.domain.geometry import (
    distance,
    distances_from,
    point_at_arc,
    polyline_intersections,
    polyline_length,
    project_onto_polyline,
    slice_polyline,
)
from railnet.domain.graph import NetworkGraph, connected_components
from railnet.domain.spatial import SpatialGrid
from railnet.domain.speeds import LineSpeeds

ENDPOINT_CONFIDENCE = 1.0
INTERSECTION_CONFIDENCE = 1.0
STATION_CONFIDENCE = 0.9
INTERPOLATED_CONFIDENCE = 0.7


@dataclass
class _Candidate:
    coordinates: Coord
    lines: set[str]
    kind: NodeKind
    confidence: float
    name: str | None = None


@dataclass
class _Line:
    line_id: str
    coords: list[Coord]
    length: float


@dataclass
class BuildReport:
    warnings: list[str] = field(default_factory=list)
    phases: dict[str, dict] = field(default_factory=dict)
    skipped_lines: list[str] = field(default_factory=list)
    components: int = 0
    connectors: int = 0


@dataclass
class BuildResult:
    graph: NetworkGraph
    report: BuildReport
    speeds: LineSpeeds
    line_ids: list[str]


class NetworkGraphBuilder:
    def __init__(
        self,
        cfg: BuildModel,
        speed_cfg: SpeedModel,
        *,
        hooks: RouterHooks | None = None,
        cancel: CancelToken | None = None,
    ):
        self.cfg, self.speed_cfg = cfg, speed_cfg
        self.hooks = hooks or NoopHooks()
        self.cancel = cancel or CancelToken()
        self._phase = "init"

    # --------------- Helpers -----------------------------

    def _warn(self, report: BuildReport, reason: str, **kw):
        report.warnings.append(reason)
        self.hooks.warning(reason, phase=self._phase, **kw)

    def _start(self, phase: str):
        self._phase = phase
        self.cancel.check()
        self.hooks.phase_start(phase)

    def _end(self, report: BuildReport, **stats):
        report.phases[self._phase] = stats
        self.hooks.phase_end(self._phase, **stats)

    # --------------------------------------------------------

    def build(
        self, lines: Sequence[LineModel], stations: Sequence[StationModel] = ()
    ) -> BuildResult:
        if not lines:
            raise EmptyNetworkError("line collection is empty")
        t0 = time.perf_counter()
        self.hooks.build_start(lines=len(lines), stations=len(stations))
        report = BuildReport()
        speeds = LineSpeeds(self.speed_cfg)
        graph = NetworkGraph()
        try:
            self._start("candidates")
            plines = self._sanitize(lines, speeds, report)
            cands = self._collect(plines, stations, report)
            self._end(report, lines=len(plines), candidates=len(cands))

            self._start("merge")
            self._merge(cands, graph)
            self._end(report, nodes=graph.node_count)

            self._start("edges")
            n_travel = self._travel_edges(plines, graph, speeds, report)
            self._end(report, edges=n_travel)

            self._start("transfers")
            n_transfer = self._transfer_edges(graph, speeds)
            self._end(report, edges=n_transfer)

            self._start("repair")
            self._repair(graph, speeds, report)
            self._end(
                report,
                nodes=graph.node_count,
                components=report.components,
                connectors=report.connectors,
            )
        except BuildCancelled:
            self.hooks.build_cancelled(phase=self._phase)
            raise

        if graph.node_count == 0:
            raise EmptyNetworkError("no usable line produced any edges")
        self.hooks.build_end(wall_ms=(time.perf_counter() - t0) * 1000, **graph.stats())
        return BuildResult(graph, report, speeds, sorted({ln.line_id for ln in plines}))

    # ------------- Phase 1: candidate collection --------------------------

    def _sanitize(
        self, lines: Sequence[LineModel], speeds: LineSpeeds, report: BuildReport
    ) -> list[_Line]:
        out = []
        for line in lines:
            coords: list[Coord] = []
            dropped = 0
            for c in line.coordinates:
                if not (math.isfinite(c[0]) and math.isfinite(c[1])):
                    dropped += 1
                elif coords and distance(coords[-1], c) == 0.0:
                    dropped += 1  # zero-length segment
                else:
                    coords.append((float(c[0]), float(c[1])))
            if dropped:
                self._warn(
                    report,
                    f"line {line.line_id!r}: dropped {dropped} degenerate coordinate(s)",
                    line=line.line_id,
                )
            if len(coords) < 2:
                report.skipped_lines.append(line.line_id)
                self._warn(
                    report,
                    f"line {line.line_id!r}: fewer than two usable coordinates, skipped",
                    line=line.line_id,
                )
                continue
            speeds.register(line)
            out.append(_Line(line.line_id, coords, polyline_length(coords)))
        if not out:
            raise EmptyNetworkError("no line has usable geometry")
        return out

    def _collect(
        self, plines: list[_Line], stations: Sequence[StationModel], report: BuildReport
    ) -> list[_Candidate]:
        cfg = self.cfg
        cands: list[_Candidate] = []
        for ln in plines:
            lid = {ln.line_id}
            cands.append(_Candidate(ln.coords[0], set(lid), NodeKind.ENDPOINT, ENDPOINT_CONFIDENCE))
            cands.append(_Candidate(ln.coords[-1], set(lid), NodeKind.ENDPOINT, ENDPOINT_CONFIDENCE))
            k = 1
            while k * cfg.station_spacing_mi < ln.length - cfg.merge_radius_mi:
                p = point_at_arc(ln.coords, k * cfg.station_spacing_mi)
                cands.append(_Candidate(p, set(lid), NodeKind.INTERPOLATED, INTERPOLATED_CONFIDENCE))
                k += 1

        # pairwise intersections, bbox-pruned
        pad = cfg.intersection_tolerance_mi / 10.0  # degrees; generous below ~80 deg latitude
        boxes = [
            (
                min(c[0] for c in ln.coords) - pad,
                min(c[1] for c in ln.coords) - pad,
                max(c[0] for c in ln.coords) + pad,
                max(c[1] for c in ln.coords) + pad,
            )
            for ln in plines
        ]
        n = len(plines)
        for i in range(n):
            self.cancel.check()
            self.hooks.phase_progress(self._phase, done=i, total=n)
            for j in range(i + 1, n):
                a, b = boxes[i], boxes[j]
                if a[0] > b[2] or b[0] > a[2] or a[1] > b[3] or b[1] > a[3]:
                    continue
                pts = polyline_intersections(
                    plines[i].coords,
                    plines[j].coords,
                    cfg.intersection_tolerance_mi,
                    cfg.parallel_tolerance,
                )
                for p in pts:
                    cands.append(
                        _Candidate(
                            p,
                            {plines[i].line_id, plines[j].line_id},
                            NodeKind.INTERSECTION,
                            INTERSECTION_CONFIDENCE,
                        )
                    )

        by_id: dict[str, list[_Line]] = {}
        for ln in plines:
            by_id.setdefault(ln.line_id, []).append(ln)
        for st in stations:
            owners = by_id.get(st.line)
            if not owners:
                self._warn(report, f"station {st.name!r}: unknown line {st.line!r}, skipped")
                continue
            proj = min(
                (project_onto_polyline(st.coordinates, ln.coords) for ln in owners),
                key=lambda pr: pr.distance,
            )
            if proj.distance > cfg.station_snap_mi:
                self._warn(
                    report,
                    f"station {st.name!r}: {proj.distance:.2f} mi from line {st.line!r}, skipped",
                )
                continue
            cands.append(
                _Candidate(proj.point, {st.line}, NodeKind.STATION, STATION_CONFIDENCE, st.name)
            )
        return cands

    # ------------- Phase 2: merge --------------------------

    def _merge(self, cands: list[_Candidate], graph: NetworkGraph) -> None:
        lat = max(abs(c.coordinates[1]) for c in cands)
        grid = SpatialGrid(self.cfg.merge_radius_mi, lat)
        clusters: list[_Candidate] = []
        # stable sort: equal confidence keeps collection order
        for c in sorted(cands, key=lambda c: -c.confidence):
            hits = grid.near(c.coordinates)
            if hits:
                cl = clusters[int(hits[0][1])]
                cl.lines |= c.lines
                cl.kind = stronger_kind(cl.kind, c.kind)
                cl.name = cl.name or c.name
            else:
                grid.insert(str(len(clusters)), c.coordinates)
                clusters.append(_Candidate(c.coordinates, set(c.lines), c.kind, c.confidence, c.name))
        for i, cl in enumerate(clusters):
            graph.add_node(Node(f"node_{i}", cl.coordinates, frozenset(cl.lines), cl.kind, cl.name))

    # ------------- Phase 3: travel edges --------------------------

    def _travel_edges(
        self, plines: list[_Line], graph: NetworkGraph, speeds: LineSpeeds, report: BuildReport
    ) -> int:
        tagged: dict[str, list[Node]] = {}
        for node in graph.nodes():
            for ln in node.lines:
                tagged.setdefault(ln, []).append(node)

        slack = 2 * self.cfg.merge_radius_mi
        dwell = self.speed_cfg.station_dwell_min
        count = 0
        for li, ln in enumerate(plines):
            self.cancel.check()
            self.hooks.phase_progress(self._phase, done=li, total=len(plines))
            on_line = []
            for node in tagged.get(ln.line_id, ()):
                proj = project_onto_polyline(node.coordinates, ln.coords)
                if proj.distance <= slack:
                    on_line.append((proj.arc_position, node))
            on_line.sort(key=lambda x: x[0])
            if len(on_line) < 2:
                self._warn(
                    report,
                    f"line {ln.line_id!r}: fewer than two nodes along the line, no edges",
                    line=ln.line_id,
                )
                continue
            spans = [
                (na, nb, slice_polyline(ln.coords, pa, pb))
                for (pa, na), (pb, nb) in zip(on_line, on_line[1:])
            ]
            if len(on_line) > 2 and self._is_ring(ln):
                (pa, na), (pb, nb) = on_line[-1], on_line[0]
                wrap = slice_polyline(ln.coords, pa, ln.length) + slice_polyline(ln.coords, 0.0, pb)[1:]
                spans.append((na, nb, wrap))
            for na, nb, geom in spans:
                # anchor on the nodes themselves; a merged node may sit off the line
                geom[0], geom[-1] = na.coordinates, nb.coordinates
                d = polyline_length(geom)
                t = speeds.travel_time_min(d, ln.line_id)
                if na.kind is NodeKind.INTERPOLATED:
                    t += dwell
                graph.add_edge(
                    Edge(f"edge_{graph.edge_count}", na.id, nb.id, ln.line_id, d, t, tuple(geom))
                )
                count += 1
        return count

    def _is_ring(self, ln: _Line) -> bool:
        return distance(ln.coords[0], ln.coords[-1]) <= self.cfg.merge_radius_mi

    # ------------- Phase 4: transfer edges --------------------------

    def _transfer_edges(self, graph: NetworkGraph, speeds: LineSpeeds) -> int:
        nodes = list(graph.nodes())
        order = {n.id: i for i, n in enumerate(nodes)}
        grid = SpatialGrid.of(((n.id, n.coordinates) for n in nodes), self.cfg.transfer_radius_mi)
        pairs = sorted(grid.pairs(order), key=lambda p: (order[p[0]], order[p[1]]))
        penalty = self.speed_cfg.transfer_penalty_min
        count = 0
        for k, (a, b, d) in enumerate(pairs):
            if k % 1000 == 0:
                self.cancel.check()
                self.hooks.phase_progress(self._phase, done=k, total=len(pairs))
            na, nb = graph.node(a), graph.node(b)
            if na.lines & nb.lines:
                continue
            graph.add_edge(
                Edge(
                    f"transfer_{graph.edge_count}",
                    a,
                    b,
                    TRANSFER,
                    d,
                    speeds.walking_time_min(d) + penalty,
                    (na.coordinates, nb.coordinates),
                )
            )
            count += 1
        return count

    # ------------- Phase 5: validation and repair --------------------------

    def _repair(self, graph: NetworkGraph, speeds: LineSpeeds, report: BuildReport) -> None:
        isolated = [n.id for n in graph.nodes() if not graph.incident(n.id)]
        for nid in isolated:
            graph.remove_node(nid)
        if isolated:
            self._warn(report, f"removed {len(isolated)} isolated node(s)", count=len(isolated))

        comps = connected_components(graph)
        if len(comps) > 1:
            report.connectors = self._bridge(graph, comps, speeds)
        report.components = len(comps) - report.connectors
        if report.components > 1:
            self._warn(
                report,
                f"network has {report.components} disconnected components",
                components=report.components,
            )

    def _bridge(self, graph: NetworkGraph, comps: list[list[str]], speeds: LineSpeeds) -> int:
        """
        Join components closest-first (Kruskal over the component graph),
        skipping any bridge at or beyond the cutoff.
        """
        cutoff = self.cfg.connector_cutoff_mi
        xy = [np.array([graph.node(nid).coordinates for nid in comp]) for comp in comps]
        bridges = []
        for ci in range(len(comps)):
            self.cancel.check()
            self.hooks.phase_progress(self._phase, done=ci, total=len(comps))
            for cj in range(ci + 1, len(comps)):
                best = (math.inf, -1, -1)
                for ai, p in enumerate(xy[ci]):
                    d = distances_from((p[0], p[1]), xy[cj])
                    bj = int(np.argmin(d))
                    if d[bj] < best[0]:
                        best = (float(d[bj]), ai, bj)
                if best[0] < cutoff:
                    bridges.append((best[0], ci, cj, comps[ci][best[1]], comps[cj][best[2]]))

        parent = list(range(len(comps)))

        def find(i):
            while parent[i] != i:
                parent[i] = parent[parent[i]]
                i = parent[i]
            return i

        penalty = self.speed_cfg.connector_penalty_min
        added = 0
        for d, ci, cj, a, b in sorted(bridges):
            ri, rj = find(ci), find(cj)
            if ri == rj:
                continue
            parent[rj] = ri
            na, nb = graph.node(a), graph.node(b)
            graph.add_edge(
                Edge(
                    f"connect_{graph.edge_count}",
                    a,
                    b,
                    CONNECTOR,
                    d,
                    speeds.walking_time_min(d) + penalty,
                    (na.coordinates, nb.coordinates),
                )
            )
            added += 1
        return added
