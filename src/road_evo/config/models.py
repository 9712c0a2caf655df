from math import isfinite
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from road_evo.evolution.mutations import CATALOG, DEFAULT_RADIUS


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = 1
    records: Literal["none", "stdout", "memory"] = "none"


class MapModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    width: int = 90
    height: int = 60

    @field_validator("width", "height")
    def _positive(cls, v: int, info: ValidationInfo) -> int:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v


class CitiesModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    count: int = 30
    margin: int = 1
    # explicit placement; overrides count when given
    locations: list[tuple[int, int]] | None = None

    @model_validator(mode="after")
    def _check(self):
        n = len(self.locations) if self.locations is not None else self.count
        if n < 2:
            raise ValueError(f"need at least 2 cities, got {n}")
        if self.margin < 0:
            raise ValueError("margin must be >= 0")
        return self


# ----------------- TRAINING SET ---------------------


class TrainingSetPerCityModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["per_city"] = "per_city"
    destinations_per_city: int = Field(default=3, ge=1)


class TrainingSetRandomPairsModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["random_pairs"] = "random_pairs"
    pairs: int = Field(default=30, ge=1)


class TrainingSetAnywhereModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["anywhere"] = "anywhere"
    pairs: int = Field(default=30, ge=1)


TrainingSetUnion = Annotated[
    TrainingSetPerCityModel | TrainingSetRandomPairsModel | TrainingSetAnywhereModel,
    Field(discriminator="kind"),
]

# ----------------- PATH FINDERS ---------------------


class PathFinderGreedyModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["greedy"] = "greedy"


class PathFinderShortestModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["shortest"] = "shortest"


PathFinderUnion = Annotated[
    PathFinderGreedyModel | PathFinderShortestModel, Field(discriminator="kind")
]

# ----------------- EVALUATORS ---------------------

PerQuality = tuple[float, float, float]


def _check_per_quality(v: PerQuality, info: ValidationInfo) -> PerQuality:
    if any(not isfinite(x) or x < 0 for x in v):
        raise ValueError(f"{info.field_name} must be finite and >= 0")
    return v


class CommuteTimeModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["commute_time"] = "commute_time"
    path_finder: PathFinderUnion = Field(default_factory=PathFinderGreedyModel)
    off_road_penalty: float = Field(default=10.0, gt=0)
    travel_time: PerQuality = (3.0, 1.5, 1.0)

    @field_validator("travel_time")
    def _nonneg(cls, v: PerQuality, info: ValidationInfo) -> PerQuality:
        return _check_per_quality(v, info)


class ConstructionCostModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["construction_cost"] = "construction_cost"
    unit_cost: PerQuality = (1.0, 2.0, 4.0)
    fixed_overhead: float = Field(default=0.0, ge=0)

    @field_validator("unit_cost")
    def _nonneg(cls, v: PerQuality, info: ValidationInfo) -> PerQuality:
        return _check_per_quality(v, info)


class NoiseModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["noise"] = "noise"
    noise: PerQuality = (0.0, 1.0, 3.0)
    half_life: float = Field(default=2.0, gt=0)

    @field_validator("noise")
    def _nonneg(cls, v: PerQuality, info: ValidationInfo) -> PerQuality:
        return _check_per_quality(v, info)


EvaluatorUnion = Annotated[
    CommuteTimeModel | ConstructionCostModel | NoiseModel, Field(discriminator="kind")
]


def _default_evaluators() -> list:
    return [CommuteTimeModel(), ConstructionCostModel(), NoiseModel()]


# ----------------- EVOLUTION ---------------------


class MutationModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    radius: int = Field(default=DEFAULT_RADIUS, ge=1)
    operators: list[str] = Field(default_factory=lambda: list(CATALOG))

    @field_validator("operators")
    @classmethod
    def _known(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("operators must not be empty")
        unknown = [name for name in v if name not in CATALOG]
        if unknown:
            raise ValueError(f"unknown mutation operators {unknown}; known: {list(CATALOG)}")
        return v


class EvolutionModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    batch_size: int = Field(default=10, ge=1)  # steps per tick
    weights: list[float] | None = None  # None -> equal weights
    mutation: MutationModel = Field(default_factory=MutationModel)


# ------------------------------------------------------------------


class ScenarioModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "default"
    run_id: str = "local"
    seed: int = 0
    map: MapModel = MapModel()
    cities: CitiesModel = CitiesModel()
    evaluators: list[EvaluatorUnion] = Field(default_factory=_default_evaluators)
    training_set: TrainingSetUnion = Field(default_factory=TrainingSetPerCityModel)
    evolution: EvolutionModel = EvolutionModel()
    log: LogModel = LogModel()

    @model_validator(mode="after")
    def _check_weights(self):
        if not self.evaluators:
            raise ValueError("at least one evaluator is required")
        kinds = [e.kind for e in self.evaluators]
        if len(set(kinds)) != len(kinds):
            raise ValueError(f"duplicate evaluator kinds {kinds}")
        w = self.evolution.weights
        if w is None:
            return self
        n = len(self.evaluators)
        if len(w) != n:
            raise ValueError(f"weights must have length {n}, got {len(w)}")
        # reject NaN/Inf and non-positive sums early (friendlier than numpy error)
        if any(not isfinite(float(x)) or x < 0 for x in w):
            raise ValueError("weights must be finite and non-negative")
        if sum(float(x) for x in w) <= 0:
            raise ValueError("weights must sum to a positive value")
        return self

    @property
    def weights(self) -> list[float]:
        w = self.evolution.weights
        return list(w) if w is not None else [1.0] * len(self.evaluators)

    @model_validator(mode="after")
    def _check_city_locations(self):
        locs = self.cities.locations
        if locs is None:
            return self
        outside = [p for p in locs if not (0 <= p[0] < self.map.width and 0 <= p[1] < self.map.height)]
        if outside:
            raise ValueError(f"city locations outside the map: {outside}")
        return self
