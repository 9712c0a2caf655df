# road_evo/domain/problem.py
from collections.abc import Sequence
from dataclasses import dataclass, replace

from road_evo.app.protocols import Evaluator, RandomSource, TrainingSetSampler
from road_evo.domain.entities.geography import Point
from road_evo.domain.evaluators import evaluate_all
from road_evo.domain.geometry import is_finite_point
from road_evo.domain.network import RoadNetwork
from road_evo.domain.training import PerCityTrainingSampler, TrainingSet


def _checked(p: Point) -> Point:
    if not is_finite_point(p):
        raise ValueError(f"city coordinates must be finite, got {p}")
    return p


@dataclass(frozen=True)
class ProblemDescription:
    width: int
    height: int
    cities: tuple[Point, ...] = ()
    evaluators: tuple[Evaluator, ...] = ()
    training_sampler: TrainingSetSampler = PerCityTrainingSampler()

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"map size must be positive, got {self.width}x{self.height}")
        object.__setattr__(self, "cities", tuple(_checked(c) for c in self.cities))
        object.__setattr__(self, "evaluators", tuple(self.evaluators))

    @property
    def evaluator_names(self) -> list[str]:
        return [e.name for e in self.evaluators]

    def with_cities(self, cities: Sequence[Point]) -> "ProblemDescription":
        return replace(self, cities=tuple(cities))

    def with_city(self, index: int, location: Point) -> "ProblemDescription":
        if not 0 <= index < len(self.cities):
            raise IndexError(f"city index {index} out of range 0..{len(self.cities) - 1}")
        cities = list(self.cities)
        cities[index] = _checked(location)
        return replace(self, cities=tuple(cities))

    def sample_training_set(self, rng: RandomSource) -> TrainingSet:
        return self.training_sampler.sample(self, rng)

    def evaluate(self, network: RoadNetwork, training_set: TrainingSet) -> tuple[float, ...]:
        return evaluate_all(self.evaluators, network, training_set, self.cities)


def random_cities(
    n: int, width: int, height: int, rng: RandomSource, *, margin: int = 1
) -> tuple[Point, ...]:
    """n integer city locations at least `margin` cells away from the map border."""
    if width - 2 * margin <= 0 or height - 2 * margin <= 0:
        raise ValueError(f"margin {margin} leaves no room on a {width}x{height} map")
    return tuple(
        Point(
            margin + int(rng.integers(width - 2 * margin)),
            margin + int(rng.integers(height - 2 * margin)),
        )
        for _ in range(n)
    )
