# io/geojson.py
"""
GeoJSON FeatureCollections -> LineModel / StationModel.

Line features: LineString or MultiLineString geometry; the id comes from
`Name` (or `name`), the optional class from `type` / `speed_class`, the
optional speed from `speed_mph`. Station features: Point geometry with
`Name` (or `name`) and `line`. Features of any other geometry are ignored.
"""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import get_args

from railnet.config.models import LineModel, SpeedClass, StationModel

UNKNOWN_LINE = "Unknown Line"
_CLASSES = set(get_args(SpeedClass))


def load_geojson(path: str | Path) -> dict:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if data.get("type") != "FeatureCollection":
        raise ValueError(f"{path}: expected a FeatureCollection, got {data.get('type')!r}")
    return data


def _features(data: Mapping):
    for feat in data.get("features", ()):
        geom = feat.get("geometry") or {}
        yield geom.get("type"), geom.get("coordinates"), feat.get("properties") or {}


def _name(props: Mapping, default: str | None = None) -> str | None:
    return props.get("Name") or props.get("name") or default


def lines_from_geojson(data: Mapping) -> list[LineModel]:
    out = []
    for gtype, coords, props in _features(data):
        if gtype == "LineString":
            parts = [coords]
        elif gtype == "MultiLineString":
            parts = coords
        else:
            continue
        cls = props.get("speed_class") or props.get("type")
        for part in parts:
            out.append(
                LineModel(
                    line_id=_name(props, UNKNOWN_LINE),
                    # drop any altitude component
                    coordinates=[(c[0], c[1]) for c in part],
                    speed_class=cls if cls in _CLASSES else None,
                    speed_mph=props.get("speed_mph"),
                )
            )
    return out


def stations_from_geojson(data: Mapping) -> list[StationModel]:
    out = []
    for gtype, coords, props in _features(data):
        if gtype != "Point" or not props.get("line"):
            continue
        name = _name(props)
        if name is None:
            continue
        out.append(StationModel(name=name, coordinates=(coords[0], coords[1]), line=props["line"]))
    return out


def read_lines(path: str | Path) -> list[LineModel]:
    return lines_from_geojson(load_geojson(path))


def read_stations(path: str | Path) -> list[StationModel]:
    return stations_from_geojson(load_geojson(path))
