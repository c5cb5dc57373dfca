from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

SpeedClass = Literal["express", "local", "streetcar"]

DEFAULT_CLASS_SPEEDS = {"express": 28.0, "local": 20.0, "streetcar": 12.0}


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False


# ----------------- SPEEDS ---------------------


class SpeedModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    lines: dict[str, float] = Field(default_factory=dict)  # line id -> mph
    classes: dict[SpeedClass, float] = Field(default_factory=lambda: dict(DEFAULT_CLASS_SPEEDS))
    default_class: SpeedClass = "local"
    use_historical: bool = True
    walking_mph: float = 3.0
    transfer_penalty_min: float = 5.0
    connector_penalty_min: float = 5.0
    station_dwell_min: float = 0.5

    @field_validator("lines", "classes")
    @classmethod
    def _positive_speeds(cls, v: dict, info: ValidationInfo) -> dict:
        bad = [k for k, mph in v.items() if not mph > 0]
        if bad:
            raise ValueError(f"{info.field_name} speeds must be > 0 (got {bad})")
        if info.field_name == "classes":
            return {**DEFAULT_CLASS_SPEEDS, **v}
        return v

    @field_validator("walking_mph")
    @classmethod
    def _positive(cls, v: float) -> float:
        if not v > 0:
            raise ValueError("walking_mph must be > 0")
        return v

    @field_validator("transfer_penalty_min", "connector_penalty_min", "station_dwell_min")
    @classmethod
    def _nonneg(cls, v: float, info: ValidationInfo) -> float:
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v


# ----------------- GRAPH BUILD ---------------------


class BuildModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    station_spacing_mi: float = 0.5
    merge_radius_mi: float = 0.0125  # ~20 m
    intersection_tolerance_mi: float = 0.0062  # ~10 m
    parallel_tolerance: float = 1e-12  # |det| in deg^2 below which segments count as parallel
    transfer_radius_mi: float = 0.25
    connector_cutoff_mi: float = 1.0
    station_snap_mi: float = 0.1

    @field_validator(
        "station_spacing_mi", "merge_radius_mi", "transfer_radius_mi", "connector_cutoff_mi"
    )
    @classmethod
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if not v > 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v


# ----------------- ROUTING ---------------------


class RoutingModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    default_max_walking_mi: float = 1.0
    max_walking_limit_mi: float = 5.0
    min_trip_mi: float = 0.01
    max_trip_mi: float = 100.0
    max_candidates: int = Field(default=5, ge=1)
    timeout_s: float = Field(default=5.0, gt=0)
    tie_epsilon: float = 1e-6
    transfer_weight: float = 1000.0
    use_heuristic: bool = True

    @field_validator("default_max_walking_mi", "max_walking_limit_mi", "max_trip_mi")
    @classmethod
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if not v > 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("min_trip_mi", "tie_epsilon", "transfer_weight")
    @classmethod
    def _nonneg(cls, v: float, info: ValidationInfo) -> float:
        if not v >= 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v


# ------------------------------------------------------------------


class RouterModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "network"
    log: LogModel = LogModel()
    speeds: SpeedModel = Field(default_factory=SpeedModel)
    build: BuildModel = Field(default_factory=BuildModel)
    routing: RoutingModel = Field(default_factory=RoutingModel)


# ----------------- INPUTS ---------------------


class LineModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    line_id: str
    coordinates: list[tuple[float, float]]  # (lon, lat); degenerate input is tolerated here
    speed_class: SpeedClass | None = None
    speed_mph: float | None = Field(default=None, gt=0)


class StationModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str
    coordinates: tuple[float, float]
    line: str


class RouteQueryModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    start: tuple[float, float]
    end: tuple[float, float]
    optimize_for: str = "time"  # any registered objective kind
    max_walking_distance: float | None = None  # None -> routing.default_max_walking_mi
