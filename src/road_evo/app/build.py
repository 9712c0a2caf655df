# road_evo/app/build.py
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from road_evo.config.models import ScenarioModel
from road_evo.domain.entities.geography import Point
from road_evo.domain.geometry import is_finite_point, round_point
from road_evo.domain.problem import ProblemDescription, random_cities
from road_evo.domain.state import SessionState, set_city_position
from road_evo.evolution.engine import Evolution
from road_evo.io.evolution_logging import EvolutionLogging  # JSON logs
from road_evo.io.recorder import JsonlSink, MemorySink, Recorder
from road_evo.io.records import CityMoved, GenerationRecorded, SessionStarted
from road_evo.runtime.registries import make_evaluator, make_training_sampler
from road_evo.sim import rng as streams
from road_evo.sim.hooks import EvolutionHooks, NoopHooks
from road_evo.sim.rng import RNGRegistry


def _xy(p: Point) -> tuple[int, int]:
    q = round_point(p)
    return (q.x, q.y)


def _cities(model: ScenarioModel, rng: RNGRegistry) -> tuple[Point, ...]:
    if model.cities.locations is not None:
        return tuple(Point(x, y) for x, y in model.cities.locations)
    return random_cities(
        model.cities.count,
        model.map.width,
        model.map.height,
        rng.stream(streams.CITIES),
        margin=model.cities.margin,
    )


@dataclass
class Session:
    """
    Host-side holder of the one mutable slot: the current SessionState.

    Everything below it is a pure transition; tick/move_city/reset just swap
    the slot.
    """

    model: ScenarioModel
    rng: RNGRegistry
    problem: ProblemDescription
    evolution: Evolution
    hooks: EvolutionHooks
    weights: list[float]
    state: SessionState = field(init=False)

    def __post_init__(self):
        self.state = self._fresh_state()

    # --------------- lifecycle -----------------------------

    def _fresh_state(self) -> SessionState:
        state = SessionState.create(self.problem, self.rng.stream(streams.TRAINING_SET))
        self.hooks.session_start(
            generation=state.generation,
            cities=state.cities,
            training_pairs=len(state.training_set),
            cost=state.current_cost,
        )
        self.hooks.record(
            SessionStarted(
                run_id=self.model.run_id,
                generation=state.generation,
                name="session_started",
                seed=self.model.seed,
                cities=[_xy(c) for c in state.cities],
                training_pairs=len(state.training_set),
                cost=list(state.current_cost),
            )
        )
        return state

    def reset(self) -> SessionState:
        """
        Discard the network and start over. Random cities are drawn again from
        the cities stream; configured locations are restored.
        """
        self.problem = self.problem.with_cities(_cities(self.model, self.rng))
        self.state = self._fresh_state()
        return self.state

    def tick(self, steps: int | None = None) -> SessionState:
        prev = self.state
        n = self.model.evolution.batch_size if steps is None else steps
        self.state = self.evolution.advance(prev, self.weights, n)
        self.hooks.record(
            GenerationRecorded(
                run_id=self.model.run_id,
                generation=self.state.generation,
                name="generation",
                segments=len(self.state.network),
                vertices=len(self.state.vertices),
                cost=list(self.state.current_cost),
                weighted=self.weighted_cost(),
                accepted_in_batch=self.evolution.last_accepted,
            )
        )
        return self.state

    def move_city(self, index: int, location: Point | Sequence[float]) -> SessionState:
        p = location if isinstance(location, Point) else Point(*location)
        if is_finite_point(p):
            p = round_point(p)  # cities live on the integer grid
        self.state = set_city_position(
            self.state, index, p, rng=self.rng.stream(streams.TRAINING_SET)
        )
        self.problem = self.state.problem
        self.hooks.city_moved(
            index=index,
            location=p,
            generation=self.state.generation,
            cost=self.state.current_cost,
        )
        self.hooks.record(
            CityMoved(
                run_id=self.model.run_id,
                generation=self.state.generation,
                name="city_moved",
                index=index,
                location=_xy(p),
                cost=list(self.state.current_cost),
            )
        )
        return self.state

    def set_weights(self, weights: Sequence[float]) -> None:
        self.state.weighted_cost(weights)  # validates arity and values
        self.weights = [float(w) for w in weights]

    # --------------- read accessors -----------------------------

    def weighted_cost(self) -> float:
        return self.state.weighted_cost(self.weights)

    def snapshot(self) -> dict:
        s = self.state
        return {
            "generation": s.generation,
            "cities": [_xy(c) for c in s.cities],
            "vertices": [_xy(v) for v in s.vertices],
            "segments": [
                {"start": _xy(seg.start), "end": _xy(seg.end), "quality": int(seg.quality)}
                for seg in s.segments
            ],
            "cost": s.cost_by_evaluator(),
            "weighted": self.weighted_cost(),
        }


def _make_recorder(kind: str) -> Recorder | None:
    if kind == "stdout":
        return Recorder(JsonlSink())
    if kind == "memory":
        return Recorder(MemorySink())
    return None


def build(cfg: ScenarioModel | Mapping, *, worker: int = 0, use_logging: bool = True) -> Session:
    # 0) Validate config
    model = cfg if isinstance(cfg, ScenarioModel) else ScenarioModel.model_validate(cfg)

    # 1) RNG
    rng_registry = RNGRegistry(model.seed, scenario=model.name, worker=worker)

    # 2) Hooks (logging + analytics records)
    hooks = (
        EvolutionLogging(
            run_id=model.run_id,
            recorder=_make_recorder(model.log.records),
            level=model.log.level,
            debug=model.log.debug,
            sample_every=model.log.sample_every,
        )
        if use_logging
        else NoopHooks()
    )

    # 3) Problem
    cities = _cities(model, rng_registry)
    problem = ProblemDescription(
        width=model.map.width,
        height=model.map.height,
        cities=cities,
        evaluators=tuple(make_evaluator(e) for e in model.evaluators),
        training_sampler=make_training_sampler(model.training_set),
    )

    # 4) Search
    evolution = Evolution(
        rng=rng_registry.stream(streams.MUTATION),
        operators=tuple(model.evolution.mutation.operators),
        radius=model.evolution.mutation.radius,
        hooks=hooks,
    )
    weights = [float(w) for w in model.weights]

    return Session(
        model=model,
        rng=rng_registry,
        problem=problem,
        evolution=evolution,
        hooks=hooks,
        weights=weights,
    )
