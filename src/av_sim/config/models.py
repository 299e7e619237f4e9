from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = 20  # ticks between DEBUG tick logs


# ----------------- NETWORK GENERATOR ---------------------


class GeneratorModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    min_nodes: int = 35
    max_nodes: int = 45  # exclusive
    center_lon: tuple[float, float] = (50.0, 70.0)
    center_lat: tuple[float, float] = (50.0, 70.0)
    jitter_deg: float = 3.0  # full span of the per-node offset
    min_distance_km: float = 5.0
    max_distance_km: float = 200.0
    target_degree: int = 2
    max_degree: int = 3
    nearest_candidates: int = 5
    speed_limits: list[int] = Field(default_factory=lambda: [30, 50, 60, 80, 100, 120, 130])

    @field_validator("speed_limits")
    @classmethod
    def _positive_speeds(cls, v: list[int]) -> list[int]:
        if not v:
            raise ValueError("speed_limits must not be empty")
        if any(s <= 0 for s in v):
            raise ValueError("speed_limits must be positive")
        return v

    @field_validator("jitter_deg", "nearest_candidates")
    @classmethod
    def _nonneg(cls, v, info: ValidationInfo):
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.min_nodes < 2:
            raise ValueError("min_nodes must be >= 2")
        if self.max_nodes <= self.min_nodes:
            raise ValueError("max_nodes must be greater than min_nodes")
        if not 2 <= self.target_degree <= self.max_degree:
            raise ValueError("need 2 <= target_degree <= max_degree")
        if not 0 <= self.min_distance_km < self.max_distance_km:
            raise ValueError("need 0 <= min_distance_km < max_distance_km")
        for lo, hi in (self.center_lon, self.center_lat):
            if hi < lo:
                raise ValueError("center ranges must be (low, high)")
        return self


# ----------------- ROUTERS ---------------------


class GroundTruthRouterModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["ground_truth"] = "ground_truth"


class MismatchedUnitRouterModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["mismatched_units"] = "mismatched_units"


RouterUnion = Annotated[
    GroundTruthRouterModel | MismatchedUnitRouterModel,
    Field(discriminator="kind"),
]

# ----------------- DRIFT ---------------------


class NoDriftModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["none"] = "none"


class UniformDriftModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["uniform"] = "uniform"
    speed_pct: float = 0.075
    bearing_pct: float = 0.05

    @field_validator("speed_pct", "bearing_pct")
    @classmethod
    def _fraction(cls, v: float, info: ValidationInfo) -> float:
        if not 0 <= v < 1:
            raise ValueError(f"{info.field_name} must be in [0, 1)")
        return v


DriftUnion = Annotated[NoDriftModel | UniformDriftModel, Field(discriminator="kind")]


# ----------------- MOTION / MONITOR ---------------------


class MotionModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    tick_s: float = 0.05
    # animation speed-up: km/h are scaled by this factor before integrating
    speed_scale: float = 2400.0
    clock: Literal["wall", "virtual"] = "wall"

    @field_validator("tick_s", "speed_scale")
    @classmethod
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v


class MonitorModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    tolerance_km: float = 0.2
    max_bearing_deviation_deg: float = 45.0
    crash_after_s: float = 1.5
    violation_threshold_kmh: int = 5
    fine_per_kmh: int = 10
    min_fine: int = 25


# ------------------------------------------------------------------


class MechanicsModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    generator: GeneratorModel = Field(default_factory=GeneratorModel)
    router: RouterUnion = Field(default_factory=GroundTruthRouterModel)
    drift: DriftUnion = Field(default_factory=UniformDriftModel)


class ScenarioModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "default"
    run_id: str = "local"
    seed: int | None = None  # None => fresh entropy, maps differ run to run
    log: LogModel = LogModel()
    mechanics: MechanicsModel = Field(default_factory=MechanicsModel)
    motion: MotionModel = Field(default_factory=MotionModel)
    monitor: MonitorModel = Field(default_factory=MonitorModel)
