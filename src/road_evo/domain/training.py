from typing import NamedTuple

from road_evo.app.protocols import RandomSource, TrainingSetSampler
from road_evo.domain.entities.geography import Point


class CommutePair(NamedTuple):
    origin: Point
    destination: Point


TrainingSet = tuple[CommutePair, ...]


def _pick(rng: RandomSource, items):
    return items[int(rng.integers(len(items)))]


def _require_cities(cities, n: int = 2) -> None:
    if len({(c.x, c.y) for c in cities}) < n:
        raise ValueError(f"a training set needs at least {n} distinct cities")


class PerCityTrainingSampler(TrainingSetSampler):
    """Every city commutes to a few random other cities (duplicates allowed)."""

    def __init__(self, destinations_per_city: int = 3):
        self.destinations_per_city = destinations_per_city

    def sample(self, problem, rng: RandomSource) -> TrainingSet:
        cities = problem.cities
        _require_cities(cities)
        out: list[CommutePair] = []
        for origin in cities:
            valid = [c for c in cities if c != origin]
            for _ in range(self.destinations_per_city):
                out.append(CommutePair(origin, _pick(rng, valid)))
        return tuple(out)


class RandomPairsTrainingSampler(TrainingSetSampler):
    """A fixed number of (city, other city) pairs drawn uniformly."""

    def __init__(self, pairs: int = 30):
        self.pairs = pairs

    def sample(self, problem, rng: RandomSource) -> TrainingSet:
        cities = problem.cities
        _require_cities(cities)
        out: list[CommutePair] = []
        while len(out) < self.pairs:
            o, d = _pick(rng, cities), _pick(rng, cities)
            if o != d:
                out.append(CommutePair(o, d))
        return tuple(out)


class AnywhereTrainingSampler(TrainingSetSampler):
    """Commuters start at a random grid point on the map and head to a city."""

    def __init__(self, pairs: int = 30):
        self.pairs = pairs

    def sample(self, problem, rng: RandomSource) -> TrainingSet:
        cities = problem.cities
        _require_cities(cities, n=1)
        out: list[CommutePair] = []
        while len(out) < self.pairs:
            o = Point(int(rng.integers(problem.width)), int(rng.integers(problem.height)))
            d = _pick(rng, cities)
            if o != d:
                out.append(CommutePair(o, d))
        return tuple(out)
