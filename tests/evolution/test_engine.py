import numpy as np
import pytest

from road_evo.domain.entities.geography import Point, Quality
from road_evo.domain.geometry import distance
from road_evo.domain.network import DeconflictionError
from road_evo.domain.problem import ProblemDescription
from road_evo.domain.state import SessionState, create_session
from road_evo.evolution import engine
from road_evo.evolution.engine import Evolution, advance, step
from road_evo.sim.hooks import NoopHooks

TWO_CITIES = (Point(0, 0), Point(10, 0))


class SpyHooks(NoopHooks):
    def __init__(self):
        self.steps, self.errors, self.runs = [], [], []

    def step(self, **kw):
        self.steps.append(kw)

    def error(self, **kw):
        self.errors.append(kw)

    def run_end(self, **kw):
        self.runs.append(kw)


@pytest.fixture
def two_city_state(evaluators) -> SessionState:
    problem = ProblemDescription(width=20, height=10, cities=TWO_CITIES, evaluators=evaluators)
    return SessionState.create(problem, np.random.default_rng(0))


def test_weighted_cost_never_increases(evaluators):
    g = np.random.default_rng(2024)
    state = create_session(30, 20, 5, evaluators, rng=g)
    evo = Evolution(rng=g)
    weights = [1.0, 0.5, 0.5]
    cost = state.weighted_cost(weights)
    for i in range(300):
        state = evo.step(state, weights)
        assert state.generation == i + 1
        new = state.weighted_cost(weights)
        assert new <= cost + 1e-12
        cost = new


def test_generation_counts_rejected_steps(two_city_state, scripted):
    # construction-only weights: any new road makes things worse
    r = scripted(ints=[0, 0, 2, 6, 3])
    hooks = SpyHooks()
    evo = Evolution(rng=r, operators=("create_segment",), hooks=hooks)
    out = evo.step(two_city_state, [0, 1, 0])
    assert out.generation == 1
    assert out.network is two_city_state.network
    assert hooks.steps[0]["accepted"] is False
    assert hooks.steps[0]["after"] > hooks.steps[0]["before"]


def test_ties_are_accepted(two_city_state, scripted):
    # noise-only weights and a plain road: cost stays at 0, candidate wins
    r = scripted(ints=[0, 0, 0, 6, 3])
    evo = Evolution(rng=r, operators=("create_segment",))
    out = evo.step(two_city_state, [0, 0, 1])
    assert out.generation == 1
    assert [(s.key, s.quality) for s in out.segments] == [
        ((Point(0, 0), Point(3, 0)), Quality.ROAD)
    ]
    assert out.current_cost[2] == 0.0


def test_noop_candidate_skips_re_evaluation(two_city_state, scripted):
    hooks = SpyHooks()
    evo = Evolution(rng=scripted(ints=[0]), operators=("remove_segment",), hooks=hooks)
    out = evo.step(two_city_state, [1, 1, 1])
    assert out.network is two_city_state.network
    assert out.current_cost == two_city_state.current_cost
    assert out.generation == 1
    assert hooks.steps[0]["accepted"] is True


def test_weights_are_normalised(evaluators):
    def run(weights):
        g = np.random.default_rng(99)
        s = create_session(30, 20, 4, evaluators, rng=g)
        return advance(s, weights, 60, rng=g)

    a, b = run([1, 2, 1]), run([10, 20, 10])
    assert [(s.key, s.quality) for s in a.segments] == [(s.key, s.quality) for s in b.segments]
    assert a.current_cost == b.current_cost


def test_bad_weights_raise(two_city_state, rng):
    with pytest.raises(ValueError):
        step(two_city_state, [1, 1], rng=rng)
    with pytest.raises(ValueError):
        step(two_city_state, [0, 0, 0], rng=rng)


def test_create_segment_eventually_links_both_cities(two_city_state):
    state = advance(
        two_city_state,
        [1, 0, 0],
        1500,
        rng=np.random.default_rng(7),
        operators=("create_segment",),
    )
    assert state.generation == 1500
    verts = state.vertices
    for city in TWO_CITIES:
        assert min(distance(city, v) for v in verts) <= 3
    assert all(s.quality in (0, 1, 2) for s in state.segments)
    assert state.current_cost[0] < 1.0


def test_advance_zero_steps_and_negative(two_city_state, rng):
    hooks = SpyHooks()
    out = advance(two_city_state, [1, 1, 1], 0, rng=rng, hooks=hooks)
    assert out is two_city_state
    assert hooks.runs[0]["processed"] == 0
    with pytest.raises(ValueError):
        advance(two_city_state, [1, 1, 1], -1, rng=rng)


def test_advance_reports_batch(two_city_state, rng):
    hooks = SpyHooks()
    out = advance(two_city_state, [1, 1, 1], 10, rng=rng, hooks=hooks)
    assert out.generation == 10
    assert len(hooks.steps) == 10
    assert [h["generation"] for h in hooks.steps] == list(range(1, 11))
    assert hooks.runs[0]["generation"] == 10


def test_last_accepted_matches_run_end(two_city_state, rng):
    hooks = SpyHooks()
    ev = Evolution(rng=rng, hooks=hooks)
    out = ev.advance(two_city_state, [1, 1, 1], 30)
    assert ev.last_accepted == hooks.runs[0]["accepted"]
    assert 0 <= ev.last_accepted <= 30
    assert (ev.last_accepted > 0) == (out.network is not two_city_state.network)

    # nothing to remove on an empty network: every step is a no-op
    idle = Evolution(rng=rng, operators=("remove_segment",))
    idle.advance(two_city_state, [1, 1, 1], 5)
    assert idle.last_accepted == 0


def test_deconfliction_failure_is_reported_and_raised(two_city_state, scripted, monkeypatch):
    def boom(network, ctx):
        raise DeconflictionError("does not converge")

    monkeypatch.setattr(engine, "get_mutation", lambda name: boom)
    hooks = SpyHooks()
    evo = Evolution(rng=scripted(ints=[0]), operators=("create_segment",), hooks=hooks)
    with pytest.raises(DeconflictionError):
        evo.step(two_city_state, [1, 1, 1])
    assert hooks.errors[0]["reason"] == "deconfliction"
    assert hooks.errors[0]["operator"] == "create_segment"


def test_empty_operator_list_rejected(rng):
    with pytest.raises(ValueError):
        Evolution(rng=rng, operators=())


def test_same_seed_same_run(evaluators):
    def run():
        g = np.random.default_rng(5)
        s = create_session(30, 20, 4, evaluators, rng=g)
        return advance(s, [1, 1, 1], 80, rng=g)

    a, b = run(), run()
    assert [(s.key, s.quality) for s in a.segments] == [(s.key, s.quality) for s in b.segments]
