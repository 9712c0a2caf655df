import math
from collections.abc import Sequence
from itertools import pairwise

import numpy as np

from road_evo.app.protocols import Evaluator, PathFinder
from road_evo.domain.entities.geography import Point, Quality
from road_evo.domain.geometry import distance, point_segment_distances
from road_evo.domain.network import RoadNetwork
from road_evo.domain.training import TrainingSet


def _per_quality(values: Sequence[float], what: str) -> tuple[float, ...]:
    vals = tuple(float(v) for v in values)
    if len(vals) != len(Quality):
        raise ValueError(f"{what} needs one value per road quality ({len(Quality)}), got {vals}")
    if not all(math.isfinite(v) and v >= 0 for v in vals):
        raise ValueError(f"{what} must be finite and non-negative, got {vals}")
    return vals


def _normalized(total: float, worst: float, name: str) -> float:
    if worst <= 0:
        raise ValueError(f"{name}: nothing to normalise against (empty training set or cities?)")
    return total / worst


class CommuteTimeEvaluator(Evaluator):
    """
    Travel time over the training set relative to walking every commute off-road.

    Road legs cost travel_time[quality] per unit length; the gaps between the
    requested endpoints and the path's actual endpoints cost off_road_penalty
    per unit length.
    """

    name = "commute_time"

    def __init__(
        self,
        path_finder: PathFinder,
        off_road_penalty: float = 10.0,
        travel_time: Sequence[float] = (3.0, 1.5, 1.0),
    ):
        self.path_finder = path_finder
        self.off_road_penalty = float(off_road_penalty)
        self.travel_time = _per_quality(travel_time, "travel_time")

    def trip_cost(self, network: RoadNetwork, origin: Point, destination: Point) -> float:
        path = self.path_finder.find_path(network, origin, destination)
        on_road = sum(
            self.travel_time[s.quality] * s.length
            for s in (network.require_segment(u, v) for u, v in pairwise(path))
        )
        off_road = self.off_road_penalty * (
            distance(origin, path[0]) + distance(destination, path[-1])
        )
        return on_road + off_road

    def evaluate(self, network: RoadNetwork, training_set: TrainingSet, cities) -> float:
        worst = sum(self.off_road_penalty * distance(o, d) for o, d in training_set)
        total = sum(self.trip_cost(network, o, d) for o, d in training_set)
        return _normalized(total, worst, self.name)


class ConstructionCostEvaluator(Evaluator):
    """Building cost relative to a super highway along every commute's straight line."""

    name = "construction_cost"

    def __init__(self, unit_cost: Sequence[float] = (1.0, 2.0, 4.0), fixed_overhead: float = 0.0):
        self.unit_cost = _per_quality(unit_cost, "unit_cost")
        self.fixed_overhead = float(fixed_overhead)

    def segment_cost(self, length: float, quality: Quality) -> float:
        return (self.fixed_overhead + length) * self.unit_cost[quality]

    def evaluate(self, network: RoadNetwork, training_set: TrainingSet, cities) -> float:
        total = sum(self.segment_cost(s.length, s.quality) for s in network)
        worst = sum(
            self.segment_cost(distance(o, d), Quality.SUPER_HIGHWAY) for o, d in training_set
        )
        return _normalized(total, worst, self.name)


class NoiseEvaluator(Evaluator):
    """
    Noise heard in the cities, decaying exponentially with distance to a road.

    Plain roads are silent (noise[ROAD] == 0 by default) so building roads at
    all is not punished.
    """

    name = "noise"

    def __init__(self, noise: Sequence[float] = (0.0, 1.0, 3.0), half_life: float = 2.0):
        self.noise = _per_quality(noise, "noise")
        if half_life <= 0:
            raise ValueError(f"half_life must be positive, got {half_life}")
        self.half_life = float(half_life)

    def evaluate(self, network: RoadNetwork, training_set: TrainingSet, cities) -> float:
        worst = len(cities) * self.noise[Quality.SUPER_HIGHWAY]
        loud = [s for s in network if self.noise[s.quality] > 0]
        if not loud:
            return _normalized(0.0, worst, self.name)
        starts = np.array([(s.start.x, s.start.y) for s in loud], dtype=float)
        ends = np.array([(s.end.x, s.end.y) for s in loud], dtype=float)
        factor = np.array([self.noise[s.quality] for s in loud], dtype=float)
        total = 0.0
        for city in cities:
            d = point_segment_distances(city, starts, ends)
            total += float(np.sum(factor * np.exp(-d / self.half_life)))
        return _normalized(total, worst, self.name)


def evaluate_all(
    evaluators: Sequence[Evaluator], network: RoadNetwork, training_set: TrainingSet, cities
) -> tuple[float, ...]:
    return tuple(float(e.evaluate(network, training_set, cities)) for e in evaluators)


def normalize_weights(weights: Sequence[float], arity: int) -> np.ndarray:
    """Weights scaled to sum to 1. Arity must match the evaluator count."""
    w = np.asarray(weights, dtype=float)
    if w.shape != (arity,):
        raise ValueError(f"expected {arity} weights, got {len(w)}")
    if not np.all(np.isfinite(w)) or np.any(w < 0):
        raise ValueError(f"weights must be finite and non-negative, got {w.tolist()}")
    total = w.sum()
    if total <= 0:
        raise ValueError("weights must sum to a positive value")
    return w / total


def weighted_cost(costs: Sequence[float], weights: Sequence[float]) -> float:
    return float(np.dot(normalize_weights(weights, len(costs)), np.asarray(costs, dtype=float)))
