from itertools import combinations

import numpy as np
import pytest

from road_evo.domain.entities.geography import Point, Quality, RoadSegment
from road_evo.domain.evaluators import (
    CommuteTimeEvaluator,
    ConstructionCostEvaluator,
    NoiseEvaluator,
)
from road_evo.domain.geometry import segment_intersection
from road_evo.domain.network import RoadNetwork
from road_evo.domain.pathfinders import GreedyPathFinder


class ScriptedRandom:
    """RandomSource that replays fixed draws; running out is a test bug."""

    def __init__(self, ints=(), floats=()):
        self.ints = list(ints)
        self.floats = list(floats)

    def integers(self, n: int) -> int:
        assert self.ints, f"script ran out of ints (asked for one below {n})"
        v = self.ints.pop(0)
        assert 0 <= v < n, f"scripted int {v} not in [0, {n})"
        return v

    def random(self) -> float:
        assert self.floats, "script ran out of floats"
        return self.floats.pop(0)


@pytest.fixture
def scripted():
    return ScriptedRandom


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def evaluators():
    return (
        CommuteTimeEvaluator(GreedyPathFinder()),
        ConstructionCostEvaluator(),
        NoiseEvaluator(),
    )


@pytest.fixture
def line_network() -> RoadNetwork:
    """(0,0)-(10,0) as a plain road."""
    return RoadNetwork().add_segment(RoadSegment(Point(0, 0), Point(10, 0), Quality.ROAD))


def crossings(net: RoadNetwork) -> list:
    return [
        (s, t)
        for s, t in combinations(net.segments, 2)
        if segment_intersection(s.start, s.end, t.start, t.end) is not None
    ]


@pytest.fixture
def find_crossings():
    return crossings
