# road_evo/evolution/engine.py
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

from road_evo.app.protocols import MutationOperator, RandomSource
from road_evo.domain.evaluators import normalize_weights, weighted_cost
from road_evo.domain.network import DeconflictionError
from road_evo.domain.state import SessionState
from road_evo.evolution.mutations import (
    CATALOG,
    DEFAULT_RADIUS,
    MutationContext,
    get_mutation,
    pick,
)
from road_evo.sim.hooks import EvolutionHooks, NoopHooks

__all__ = ["Evolution", "advance", "normalize_weights", "step", "weighted_cost"]


@dataclass
class Evolution:
    """
    Hill climber over road networks.

    Each step applies one uniformly chosen operator and keeps the candidate
    when its weighted cost does not exceed the current one; ties go to the
    candidate so the search can drift across plateaus.
    """

    rng: RandomSource
    operators: Sequence[str] = CATALOG
    radius: int = DEFAULT_RADIUS
    hooks: EvolutionHooks = field(default_factory=NoopHooks)
    # network changes kept by the most recent advance()
    last_accepted: int = field(default=0, init=False)

    def __post_init__(self):
        if not self.operators:
            raise ValueError("at least one mutation operator is required")
        self._ops: list[tuple[str, MutationOperator]] = [
            (name, get_mutation(name)) for name in self.operators
        ]

    def step(self, state: SessionState, weights: Sequence[float]) -> SessionState:
        t0 = time.perf_counter()
        before = weighted_cost(state.current_cost, weights)
        name, op = pick(self.rng, self._ops)
        ctx = MutationContext(rng=self.rng, cities=state.cities, radius=self.radius)
        try:
            candidate_net = op(state.network, ctx)
        except DeconflictionError as exc:
            self.hooks.error(
                reason="deconfliction", operator=name, generation=state.generation, error=str(exc)
            )
            raise

        if candidate_net is state.network:
            candidate, after = state, before
        else:
            candidate = state.with_network(candidate_net)
            after = weighted_cost(candidate.current_cost, weights)

        accepted = after <= before
        nxt = (candidate if accepted else state).next_generation()
        self.hooks.step(
            generation=nxt.generation,
            operator=name,
            accepted=accepted,
            before=before,
            after=after,
            cost=nxt.current_cost,
            segments=len(nxt.network),
            ms=(time.perf_counter() - t0) * 1000,
        )
        return nxt

    def advance(self, state: SessionState, weights: Sequence[float], steps: int) -> SessionState:
        """Run a bounded batch of steps; the host calls this once per tick."""
        if steps < 0:
            raise ValueError(f"steps must be >= 0, got {steps}")
        t0 = time.perf_counter()
        self.hooks.run_start(steps=steps, generation=state.generation)
        start_cost = weighted_cost(state.current_cost, weights)
        accepted = 0
        for _ in range(steps):
            prev = state
            state = self.step(state, weights)
            if state.network is not prev.network:
                accepted += 1
        self.last_accepted = accepted
        self.hooks.run_end(
            processed=steps,
            accepted=accepted,
            generation=state.generation,
            improvement=start_cost - weighted_cost(state.current_cost, weights),
            wall_ms=(time.perf_counter() - t0) * 1000,
        )
        return state


def step(state: SessionState, weights: Sequence[float], *, rng: RandomSource, **kw) -> SessionState:
    return Evolution(rng=rng, **kw).step(state, weights)


def advance(
    state: SessionState, weights: Sequence[float], steps: int, *, rng: RandomSource, **kw
) -> SessionState:
    return Evolution(rng=rng, **kw).advance(state, weights, steps)
