# app/router.py
"""
TransitRouter: build a network once, then answer route queries against it.

Queries never write to the built graph; each one works in its own
GraphOverlay, so one router can serve concurrent queries.
"""

import math
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from pydantic import ValidationError

from railnet.app.hooks import CancelToken, NoopHooks, RouterHooks
from railnet.config.models import LineModel, RouteQueryModel, RouterModel, StationModel
from railnet.domain.access import AccessResolver
from railnet.domain.assembler import RouteAssembler
from railnet.domain.builder import BuildReport, BuildResult, NetworkGraphBuilder
from railnet.domain.entities.network import AccessPoint, Coord, NodeKind, RouteResult
from railnet.domain.errors import RouterNotInitialized
from railnet.domain.geometry import distance, project_onto_polyline
from railnet.domain.graph import GraphOverlay, NetworkGraph, connected_components
from railnet.domain.planner import PathPlanner, straight_line_heuristic
from railnet.io.router_logging import RouterLogging
from railnet.runtime.registries import make_objective, objective_kinds


class RouteStatus(str, Enum):
    FOUND = "found"
    NO_ROUTE = "no_route"
    NO_ACCESS = "no_access"
    INVALID = "invalid"


@dataclass
class RouteOutcome:
    status: RouteStatus
    route: RouteResult | None = None
    errors: list[str] = field(default_factory=list)
    timed_out: bool = False

    @property
    def found(self) -> bool:
        return self.status is RouteStatus.FOUND


@dataclass(frozen=True)
class ClosestLine:
    point: Coord
    line: str
    distance_mi: float


def _valid_coord(p: Coord) -> bool:
    lon, lat = p
    return math.isfinite(lon) and math.isfinite(lat) and -180 <= lon <= 180 and -90 <= lat <= 90


class TransitRouter:
    def __init__(
        self,
        cfg: RouterModel | Mapping | None = None,
        *,
        hooks: RouterHooks | None = None,
        use_logging: bool = False,
    ):
        if cfg is None:
            cfg = RouterModel()
        self.cfg = cfg if isinstance(cfg, RouterModel) else RouterModel.model_validate(cfg)
        if hooks is None:
            hooks = (
                RouterLogging(
                    network=self.cfg.name, level=self.cfg.log.level, debug=self.cfg.log.debug
                )
                if use_logging
                else NoopHooks()
            )
        self.hooks = hooks
        self.assembler = RouteAssembler()
        self._built: BuildResult | None = None
        self._resolver: AccessResolver | None = None

    # ------------- lifecycle ----------------

    def initialize(
        self,
        lines: Sequence[LineModel | Mapping],
        stations: Sequence[StationModel | Mapping] = (),
        *,
        cancel: CancelToken | None = None,
    ) -> BuildReport:
        lines = [ln if isinstance(ln, LineModel) else LineModel.model_validate(ln) for ln in lines]
        stations = [
            st if isinstance(st, StationModel) else StationModel.model_validate(st)
            for st in stations
        ]
        builder = NetworkGraphBuilder(self.cfg.build, self.cfg.speeds, hooks=self.hooks, cancel=cancel)
        built = builder.build(lines, stations)
        # swap in only once the build has fully succeeded
        self._built = built
        self._resolver = AccessResolver(
            built.graph,
            built.speeds,
            max_candidates=self.cfg.routing.max_candidates,
        )
        return built.report

    @property
    def is_ready(self) -> bool:
        return self._built is not None

    def _require(self) -> BuildResult:
        if self._built is None:
            raise RouterNotInitialized("call initialize() before routing")
        return self._built

    @property
    def graph(self) -> NetworkGraph:
        return self._require().graph

    @property
    def report(self) -> BuildReport:
        return self._require().report

    # ------------- queries ----------------

    def validate_query(self, query: RouteQueryModel | Mapping) -> list[str]:
        """Every problem with the query, one message each; empty when it is usable."""
        try:
            q = query if isinstance(query, RouteQueryModel) else RouteQueryModel.model_validate(query)
        except ValidationError as exc:
            return self._field_errors(exc)

        rt = self.cfg.routing
        errors = []
        if not _valid_coord(q.start):
            errors.append("Invalid start point")
        if not _valid_coord(q.end):
            errors.append("Invalid end point")
        if not errors:
            d = distance(q.start, q.end)
            if d < rt.min_trip_mi:
                errors.append("Start and end points are too close together")
            if d > rt.max_trip_mi:
                errors.append(f"Start and end points are too far apart (over {rt.max_trip_mi:g} miles)")
        if q.optimize_for not in objective_kinds():
            errors.append(_mode_message())
        w = q.max_walking_distance
        if w is not None:
            if not w > 0:
                errors.append("Maximum walking distance must be positive")
            elif w > rt.max_walking_limit_mi:
                errors.append(
                    f"Maximum walking distance is too high (limit is {rt.max_walking_limit_mi:g} miles)"
                )
        return errors

    @staticmethod
    def _field_errors(exc: ValidationError) -> list[str]:
        out = []
        for err in exc.errors():
            head = err["loc"][0] if err["loc"] else ""
            if head in ("start", "end"):
                msg = f"Invalid {head} point"
            elif head == "optimize_for":
                msg = _mode_message()
            else:
                msg = f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            if msg not in out:
                out.append(msg)
        return out

    def find_route(
        self,
        start: Coord,
        end: Coord,
        *,
        optimize_for: str = "time",
        max_walking_distance: float | None = None,
    ) -> RouteOutcome:
        return self.route(
            {
                "start": start,
                "end": end,
                "optimize_for": optimize_for,
                "max_walking_distance": max_walking_distance,
            }
        )

    def route(self, query: RouteQueryModel | Mapping) -> RouteOutcome:
        built = self._require()
        t0 = time.perf_counter()
        errors = self.validate_query(query)
        if errors:
            return self._finish(t0, RouteOutcome(RouteStatus.INVALID, errors=errors))
        q = query if isinstance(query, RouteQueryModel) else RouteQueryModel.model_validate(query)
        rt = self.cfg.routing
        self.hooks.query_start(start=q.start, end=q.end, optimize_for=q.optimize_for)

        max_walk = q.max_walking_distance or rt.default_max_walking_mi
        overlay = GraphOverlay(built.graph)
        starts = self._resolver.resolve(overlay, q.start, max_walk, "start")
        ends = self._resolver.resolve(overlay, q.end, max_walk, "end")
        missing = [role for role, aps in (("start", starts), ("end", ends)) if not aps]
        if missing:
            errors = [f"No transit line within {max_walk:g} mi of the {role} point" for role in missing]
            return self._finish(t0, RouteOutcome(RouteStatus.NO_ACCESS, errors=errors))

        objective = make_objective(
            q.optimize_for, self.cfg, deps={"speeds": built.speeds, "line_ids": built.line_ids}
        )
        planner = PathPlanner(
            objective,
            heuristic=straight_line_heuristic(overlay, objective) if rt.use_heuristic else None,
            tie_epsilon=rt.tie_epsilon,
        )
        deadline = t0 + rt.timeout_s
        best: RouteResult | None = None
        for sa in starts:
            for ea in ends:
                label = planner.search(overlay, sa.node_id, ea.node_id, deadline=deadline)
                if planner.timed_out:
                    return self._finish(
                        t0,
                        RouteOutcome(
                            RouteStatus.NO_ROUTE,
                            errors=[f"Route search exceeded {rt.timeout_s:g} s"],
                            timed_out=True,
                        ),
                    )
                if label is None:
                    continue
                result = self.assembler.assemble(
                    overlay, label, objective, start_access=sa, end_access=ea
                )
                if best is None or result.score < best.score - rt.tie_epsilon:
                    best = result

        if best is None:
            return self._finish(
                t0,
                RouteOutcome(
                    RouteStatus.NO_ROUTE,
                    errors=["No route found between the selected points"],
                ),
            )
        return self._finish(t0, RouteOutcome(RouteStatus.FOUND, route=best))

    def _finish(self, t0: float, outcome: RouteOutcome) -> RouteOutcome:
        extra = {"timed_out": outcome.timed_out}
        if outcome.route is not None:
            extra.update(
                time_min=round(outcome.route.total_time_min, 3),
                distance_mi=round(outcome.route.total_distance_mi, 3),
                transfers=outcome.route.transfers,
            )
        self.hooks.query_end(
            status=outcome.status.value, wall_ms=(time.perf_counter() - t0) * 1000, **extra
        )
        return outcome

    # ------------- inspection ----------------

    def network_stats(self) -> dict:
        graph = self.graph
        stats = graph.stats()
        kinds = stats.pop("kinds")
        stats.update(
            intersection_count=kinds.get(NodeKind.INTERSECTION.value, 0),
            endpoint_count=kinds.get(NodeKind.ENDPOINT.value, 0),
            station_count=kinds.get(NodeKind.STATION.value, 0),
            interpolated_count=kinds.get(NodeKind.INTERPOLATED.value, 0),
            components=len(connected_components(graph)),
        )
        return stats

    def find_closest_line(self, point: Coord) -> ClosestLine | None:
        """Nearest point on any travel edge, at any distance."""
        best: ClosestLine | None = None
        for edge in self.graph.edges():
            if edge.is_walk:
                continue
            proj = project_onto_polyline(point, edge.geometry)
            if best is None or proj.distance < best.distance_mi:
                best = ClosestLine(proj.point, edge.line, proj.distance)
        return best

    def components(self) -> list[list[str]]:
        return connected_components(self.graph)

    def nodes_within(self, point: Coord, radius_mi: float) -> list[tuple[float, str]]:
        self._require()
        return self._resolver.nearby(point, radius_mi)

    def diagnose(self, start: Coord, end: Coord, max_walking_distance: float | None = None) -> dict:
        """Why a pair of points does or does not route: access and component membership."""
        built = self._require()
        max_walk = max_walking_distance or self.cfg.routing.default_max_walking_mi
        comps = connected_components(built.graph)
        member = {nid: i for i, comp in enumerate(comps) for nid in comp}
        overlay = GraphOverlay(built.graph)
        starts = self._resolver.resolve(overlay, start, max_walk, "start")
        ends = self._resolver.resolve(overlay, end, max_walk, "end")
        s_comp = self._component_of(overlay, starts, member)
        e_comp = self._component_of(overlay, ends, member)
        return {
            "straight_mi": distance(start, end),
            "components": len(comps),
            "component_sizes": [len(c) for c in comps],
            "start_access": bool(starts),
            "end_access": bool(ends),
            "start_component": s_comp,
            "end_component": e_comp,
            "same_component": s_comp is not None and s_comp == e_comp,
        }

    @staticmethod
    def _component_of(
        overlay: GraphOverlay, aps: list[AccessPoint], member: dict[str, int]
    ) -> int | None:
        if not aps:
            return None
        nid = aps[0].node_id
        if nid in member:
            return member[nid]
        # virtual node: it inherits the component of the edge it split
        for eid in overlay.incident(nid):
            other = overlay.edge(eid).other(nid)
            if other in member:
                return member[other]
        return None


def _mode_message() -> str:
    return f"Invalid optimization mode. Use one of: {', '.join(objective_kinds())}"
