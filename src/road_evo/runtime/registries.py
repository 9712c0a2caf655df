# runtime/registries.py
from collections.abc import Callable

from road_evo.app.protocols import Evaluator, PathFinder, TrainingSetSampler
from road_evo.config.models import (
    CommuteTimeModel,
    ConstructionCostModel,
    EvaluatorUnion,
    NoiseModel,
    PathFinderGreedyModel,
    PathFinderShortestModel,
    PathFinderUnion,
    TrainingSetAnywhereModel,
    TrainingSetPerCityModel,
    TrainingSetRandomPairsModel,
    TrainingSetUnion,
)
from road_evo.domain.evaluators import (
    CommuteTimeEvaluator,
    ConstructionCostEvaluator,
    NoiseEvaluator,
)
from road_evo.domain.pathfinders import GreedyPathFinder, ShortestPathFinder
from road_evo.domain.training import (
    AnywhereTrainingSampler,
    PerCityTrainingSampler,
    RandomPairsTrainingSampler,
)

EvaluatorFactory = Callable[[EvaluatorUnion], Evaluator]
TrainingSamplerFactory = Callable[[TrainingSetUnion], TrainingSetSampler]
PathFinderFactory = Callable[[PathFinderUnion], PathFinder]

_evaluator_registry: dict[str, EvaluatorFactory] = {}
_training_sampler_registry: dict[str, TrainingSamplerFactory] = {}
_path_finder_registry: dict[str, PathFinderFactory] = {}


def _lookup(registry: dict, kind: str, what: str):
    try:
        return registry[kind]
    except KeyError:
        raise ValueError(f"Unknown {what} kind {kind!r}; known: {sorted(registry)}")


# --------------------- Path finders ---------------------


def register_path_finder(kind: str):
    def deco(fn: PathFinderFactory):
        _path_finder_registry[kind] = fn
        return fn

    return deco


def make_path_finder(cfg: PathFinderUnion) -> PathFinder:
    return _lookup(_path_finder_registry, cfg.kind, "path finder")(cfg)


@register_path_finder("greedy")
def _make_greedy(cfg: PathFinderGreedyModel):
    return GreedyPathFinder()


@register_path_finder("shortest")
def _make_shortest(cfg: PathFinderShortestModel):
    return ShortestPathFinder()


# --------------------- Evaluators ---------------------


def register_evaluator(kind: str):
    def deco(fn: EvaluatorFactory):
        _evaluator_registry[kind] = fn
        return fn

    return deco


def make_evaluator(cfg: EvaluatorUnion) -> Evaluator:
    return _lookup(_evaluator_registry, cfg.kind, "evaluator")(cfg)


@register_evaluator("commute_time")
def _make_commute_time(cfg: CommuteTimeModel):
    return CommuteTimeEvaluator(
        path_finder=make_path_finder(cfg.path_finder),
        off_road_penalty=cfg.off_road_penalty,
        travel_time=cfg.travel_time,
    )


@register_evaluator("construction_cost")
def _make_construction_cost(cfg: ConstructionCostModel):
    return ConstructionCostEvaluator(unit_cost=cfg.unit_cost, fixed_overhead=cfg.fixed_overhead)


@register_evaluator("noise")
def _make_noise(cfg: NoiseModel):
    return NoiseEvaluator(noise=cfg.noise, half_life=cfg.half_life)


# --------------------- Training set samplers ---------------------


def register_training_sampler(kind: str):
    def deco(fn: TrainingSamplerFactory):
        _training_sampler_registry[kind] = fn
        return fn

    return deco


def make_training_sampler(cfg: TrainingSetUnion) -> TrainingSetSampler:
    return _lookup(_training_sampler_registry, cfg.kind, "training set")(cfg)


@register_training_sampler("per_city")
def _make_per_city(cfg: TrainingSetPerCityModel):
    return PerCityTrainingSampler(destinations_per_city=cfg.destinations_per_city)


@register_training_sampler("random_pairs")
def _make_random_pairs(cfg: TrainingSetRandomPairsModel):
    return RandomPairsTrainingSampler(pairs=cfg.pairs)


@register_training_sampler("anywhere")
def _make_anywhere(cfg: TrainingSetAnywhereModel):
    return AnywhereTrainingSampler(pairs=cfg.pairs)
