from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from road_evo.domain.entities.geography import Point

if TYPE_CHECKING:
    from road_evo.domain.network import RoadNetwork
    from road_evo.domain.problem import ProblemDescription
    from road_evo.domain.training import TrainingSet


# ------------- Environment --------------------
@runtime_checkable
class RandomSource(Protocol):
    """
    The only randomness the core consumes. numpy.random.Generator fits as is;
    tests substitute scripted sources.
    """

    def random(self) -> float:
        """Uniform float in [0, 1)."""

    def integers(self, n: int) -> int:
        """Uniform int in [0, n)."""


# ------------- Network queries --------------------
@runtime_checkable
class PathFinder(Protocol):
    """
    Responsibilities:
      • Return the points visited travelling from a towards b on the network.
      • First/last elements are the closest reachable approach points; they
        need not equal a and b.
    """

    def find_path(self, network: RoadNetwork, a: Point, b: Point) -> list[Point]: ...


# ------------- Problem --------------------
@runtime_checkable
class TrainingSetSampler(Protocol):
    """Draw the commute demand (origin/destination pairs) for a problem."""

    def sample(self, problem: ProblemDescription, rng: RandomSource) -> TrainingSet: ...


@runtime_checkable
class Evaluator(Protocol):
    """
    One cost objective. Output is normalised by a theoretical worst case so
    objectives are comparable (roughly within [0, 1]).
    """

    name: str

    def evaluate(
        self, network: RoadNetwork, training_set: TrainingSet, cities: Sequence[Point]
    ) -> float: ...


# ------------- Evolution --------------------
@runtime_checkable
class MutationOperator(Protocol):
    """Return a mutated network, or the same network when nothing applies."""

    def __call__(self, network: RoadNetwork, ctx) -> RoadNetwork: ...
