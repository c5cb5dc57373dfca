# app/formatting.py
from dataclasses import dataclass

from railnet.domain.entities.network import RouteResult


@dataclass(frozen=True)
class SegmentSummary:
    line: str
    time_min: float
    distance_mi: float
    stops: int


@dataclass(frozen=True)
class RouteSummary:
    summary: str
    details: list[str]
    segments: list[SegmentSummary]
    time_formatted: str
    distance_formatted: str


def format_duration(minutes: float) -> str:
    """'1h 5m' above an hour, '42 min' below."""
    total = round(minutes)
    hours, mins = divmod(total, 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins} min"


def format_distance(miles: float) -> str:
    return f"{miles:.1f} mi"


def format_transfers(n: int) -> str:
    if n == 0:
        return "Direct route"
    return f"{n} transfer{'s' if n > 1 else ''}"


def format_route(route: RouteResult) -> RouteSummary:
    """
    Display summary of a route. Only ridden segments are listed; walk links
    (transfers and connectors) close the current segment without one of their own.
    """
    time_fmt = format_duration(route.total_time_min)
    dist_fmt = format_distance(route.total_distance_mi)
    summary = f"{time_fmt} • {dist_fmt} • {format_transfers(route.transfers)}"

    segments = [
        SegmentSummary(s.line, s.time_min, s.distance_mi, s.hops)
        for s in route.segments
        if not s.is_walk and s.time_min > 0
    ]
    details = [
        f"{i}. {s.line}: {round(s.time_min)} min, {s.distance_mi:.1f} mi, {s.stops} stops"
        for i, s in enumerate(segments, start=1)
    ]
    return RouteSummary(summary, details, segments, time_fmt, dist_fmt)
