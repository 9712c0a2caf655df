# road_evo/domain/state.py
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from road_evo.app.protocols import Evaluator, RandomSource, TrainingSetSampler
from road_evo.domain.entities.geography import Point, RoadSegment
from road_evo.domain.evaluators import weighted_cost
from road_evo.domain.network import RoadNetwork
from road_evo.domain.problem import ProblemDescription, random_cities
from road_evo.domain.training import PerCityTrainingSampler, TrainingSet


@dataclass(frozen=True)
class SessionState:
    """
    Everything one evolution session knows. Values only: every transition
    returns a new state, and any change to the network, training set or
    problem re-evaluates current_cost.
    """

    problem: ProblemDescription
    network: RoadNetwork = field(default_factory=RoadNetwork)
    training_set: TrainingSet = ()
    current_cost: tuple[float, ...] = ()
    generation: int = 0

    @classmethod
    def create(
        cls,
        problem: ProblemDescription,
        rng: RandomSource,
        network: RoadNetwork | None = None,
    ) -> SessionState:
        s = cls(problem=problem, network=network if network is not None else RoadNetwork())
        return s.with_training_set(problem.sample_training_set(rng))

    # --------------- transitions -----------------------------

    def evaluated(self) -> SessionState:
        return replace(self, current_cost=self.problem.evaluate(self.network, self.training_set))

    def with_network(self, network: RoadNetwork) -> SessionState:
        return replace(self, network=network).evaluated()

    def with_training_set(self, training_set: TrainingSet) -> SessionState:
        return replace(self, training_set=tuple(training_set)).evaluated()

    def with_problem(self, problem: ProblemDescription, rng: RandomSource) -> SessionState:
        """Swap the problem and resample its commute demand."""
        return replace(self, problem=problem).with_training_set(problem.sample_training_set(rng))

    def next_generation(self) -> SessionState:
        return replace(self, generation=self.generation + 1)

    # --------------- read accessors -----------------------------

    @property
    def segments(self) -> list[RoadSegment]:
        return self.network.segments

    @property
    def vertices(self) -> list[Point]:
        return self.network.vertices()

    @property
    def cities(self) -> tuple[Point, ...]:
        return self.problem.cities

    def cost_by_evaluator(self) -> dict[str, float]:
        return dict(zip(self.problem.evaluator_names, self.current_cost))

    def weighted_cost(self, weights: Sequence[float]) -> float:
        return weighted_cost(self.current_cost, weights)


def create_session(
    map_width: int,
    map_height: int,
    num_cities: int,
    evaluators: Sequence[Evaluator],
    *,
    rng: RandomSource,
    training_sampler: TrainingSetSampler | None = None,
    margin: int = 1,
    cities_rng: RandomSource | None = None,
) -> SessionState:
    """Fresh session: random cities, empty network, sampled training set."""
    cities = random_cities(num_cities, map_width, map_height, cities_rng or rng, margin=margin)
    problem = ProblemDescription(
        width=map_width,
        height=map_height,
        cities=cities,
        evaluators=tuple(evaluators),
        training_sampler=training_sampler or PerCityTrainingSampler(),
    )
    return SessionState.create(problem, rng)


def set_city_position(
    state: SessionState, index: int, location: Point, *, rng: RandomSource
) -> SessionState:
    """Move one city; the network is kept, the training set is resampled."""
    return state.with_problem(state.problem.with_city(index, location), rng)
