# railnet/domain/geometry.py
"""
Pure geometry over (lon, lat) coordinate pairs.

Distances are great-circle miles (haversine). Projection and intersection
parameters are computed in a local equirectangular plane, which is accurate
enough at city scale.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from railnet.domain.entities.network import Coord

EARTH_RADIUS_MI = 3959.0
MI_PER_DEG_LAT = EARTH_RADIUS_MI * math.pi / 180.0


@dataclass(frozen=True)
class SegmentProjection:
    point: Coord
    distance: float  # miles from the query point
    t: float  # in [0, 1]


@dataclass(frozen=True)
class PolylineProjection:
    point: Coord
    distance: float
    segment_index: int
    t: float
    arc_position: float  # miles from the polyline start to `point`


def distance(a: Coord, b: Coord) -> float:
    if a[0] == b[0] and a[1] == b[1]:
        return 0.0
    lon1, lat1 = a
    lon2, lat2 = b
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    )
    return 2 * EARTH_RADIUS_MI * math.atan2(math.sqrt(h), math.sqrt(max(0.0, 1 - h)))


def distances_from(p: Coord, coords: np.ndarray) -> np.ndarray:
    """Vectorized haversine from one point to an (n, 2) array of (lon, lat)."""
    if len(coords) == 0:
        return np.zeros(0)
    lon = np.radians(coords[:, 0])
    lat = np.radians(coords[:, 1])
    lon0, lat0 = math.radians(p[0]), math.radians(p[1])
    h = np.sin((lat - lat0) / 2) ** 2 + math.cos(lat0) * np.cos(lat) * np.sin((lon - lon0) / 2) ** 2
    h = np.clip(h, 0.0, 1.0)
    return 2 * EARTH_RADIUS_MI * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


def offset(p: Coord, east_mi: float, north_mi: float) -> Coord:
    """Point displaced by the given miles east/north of `p`."""
    lat = p[1] + north_mi / MI_PER_DEG_LAT
    lon = p[0] + east_mi / (MI_PER_DEG_LAT * math.cos(math.radians(p[1])))
    return (lon, lat)


def project_onto_segment(p: Coord, s: Coord, e: Coord) -> SegmentProjection:
    k = math.cos(math.radians(s[1]))
    dx, dy = (e[0] - s[0]) * k, e[1] - s[1]
    len_sq = dx * dx + dy * dy
    if len_sq == 0:
        return SegmentProjection(s, distance(p, s), 0.0)
    t = ((p[0] - s[0]) * k * dx + (p[1] - s[1]) * dy) / len_sq
    t = max(0.0, min(1.0, t))
    q = (s[0] + t * (e[0] - s[0]), s[1] + t * (e[1] - s[1]))
    return SegmentProjection(q, distance(p, q), t)


def project_onto_polyline(p: Coord, coords: Sequence[Coord]) -> PolylineProjection:
    if len(coords) == 1:
        return PolylineProjection(coords[0], distance(p, coords[0]), 0, 0.0, 0.0)
    best: PolylineProjection | None = None
    run = 0.0
    for i in range(len(coords) - 1):
        proj = project_onto_segment(p, coords[i], coords[i + 1])
        if best is None or proj.distance < best.distance:
            arc = run + distance(coords[i], proj.point)
            best = PolylineProjection(proj.point, proj.distance, i, proj.t, arc)
        run += distance(coords[i], coords[i + 1])
    return best


def segment_intersection(
    a1: Coord, a2: Coord, b1: Coord, b2: Coord, tolerance: float = 1e-12
) -> Coord | None:
    x1, y1 = a1
    x2, y2 = a2
    x3, y3 = b1
    x4, y4 = b2
    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(denom) < tolerance:
        return None
    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
    u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / denom
    if 0.0 <= t <= 1.0 and 0.0 <= u <= 1.0:
        return (x1 + t * (x2 - x1), y1 + t * (y2 - y1))
    return None


def _bbox(a: Coord, b: Coord) -> tuple[float, float, float, float]:
    return min(a[0], b[0]), min(a[1], b[1]), max(a[0], b[0]), max(a[1], b[1])


def polyline_intersections(
    coords_a: Sequence[Coord],
    coords_b: Sequence[Coord],
    tolerance_mi: float = 0.0,
    det_tolerance: float = 1e-12,
) -> list[Coord]:
    """
    All crossings between two polylines, plus near-touches: an end of one
    polyline lying within `tolerance_mi` of the other (reported at its
    projection onto the other). Duplicates are left for node merging.
    """
    out: list[Coord] = []
    boxes_b = [_bbox(coords_b[j], coords_b[j + 1]) for j in range(len(coords_b) - 1)]
    for i in range(len(coords_a) - 1):
        ax0, ay0, ax1, ay1 = _bbox(coords_a[i], coords_a[i + 1])
        for j, (bx0, by0, bx1, by1) in enumerate(boxes_b):
            if bx0 > ax1 or bx1 < ax0 or by0 > ay1 or by1 < ay0:
                continue
            q = segment_intersection(
                coords_a[i], coords_a[i + 1], coords_b[j], coords_b[j + 1], det_tolerance
            )
            if q is not None:
                out.append(q)

    if tolerance_mi > 0:
        for end, other in (
            (coords_a[0], coords_b),
            (coords_a[-1], coords_b),
            (coords_b[0], coords_a),
            (coords_b[-1], coords_a),
        ):
            proj = project_onto_polyline(end, other)
            if proj.distance <= tolerance_mi:
                out.append(proj.point)
    return out


def polyline_length(coords: Sequence[Coord]) -> float:
    return sum(distance(coords[i], coords[i + 1]) for i in range(len(coords) - 1))


def point_at_arc(coords: Sequence[Coord], arc: float) -> Coord:
    run = 0.0
    for i in range(len(coords) - 1):
        seg = distance(coords[i], coords[i + 1])
        if seg > 0 and run + seg >= arc:
            f = max(0.0, min(1.0, (arc - run) / seg))
            a, b = coords[i], coords[i + 1]
            return (a[0] + f * (b[0] - a[0]), a[1] + f * (b[1] - a[1]))
        run += seg
    return coords[-1]


def slice_polyline(coords: Sequence[Coord], start: float, end: float) -> list[Coord]:
    """Sub-polyline between two arc positions (miles), start <= end."""
    out = [point_at_arc(coords, start)]
    run = 0.0
    for i in range(1, len(coords)):
        run += distance(coords[i - 1], coords[i])
        if start < run < end:
            out.append(coords[i])
        elif run >= end:
            break
    out.append(point_at_arc(coords, end))
    return out
