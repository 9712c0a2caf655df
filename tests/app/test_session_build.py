# tests/app/test_session_build.py
import json
import math

import pytest

from road_evo.app.build import Session, build
from road_evo.domain.entities.geography import Point
from road_evo.domain.pathfinders import ShortestPathFinder
from road_evo.io.config import load_scenario
from road_evo.io.records import CityMoved, GenerationRecorded, SessionStarted


def _cfg(**over):
    cfg = {
        "name": "test",
        "run_id": "t-1",
        "seed": 1,
        "map": {"width": 30, "height": 20},
        "cities": {"count": 5},
    }
    cfg.update(over)
    return cfg


def test_build_runs():
    s = build(_cfg(), use_logging=False)
    assert isinstance(s, Session)
    assert s.state.generation == 0
    s.tick()
    assert s.state.generation == 10
    s.tick(3)
    assert s.state.generation == 13


def test_snapshot_shape():
    s = build(_cfg(), use_logging=False)
    s.tick()
    snap = s.snapshot()
    assert set(snap) == {"generation", "cities", "vertices", "segments", "cost", "weighted"}
    assert len(snap["cities"]) == 5
    assert set(snap["cost"]) == {"commute_time", "construction_cost", "noise"}
    for seg in snap["segments"]:
        assert seg["quality"] in (0, 1, 2)
    json.dumps(snap)  # plain data only


def test_same_seed_same_session():
    a, b = build(_cfg(), use_logging=False), build(_cfg(), use_logging=False)
    for _ in range(5):
        a.tick()
        b.tick()
    assert a.snapshot() == b.snapshot()


def test_different_seed_places_cities_differently():
    a = build(_cfg(seed=1), use_logging=False)
    b = build(_cfg(seed=2), use_logging=False)
    assert a.state.cities != b.state.cities


def test_explicit_city_locations():
    s = build(_cfg(cities={"locations": [(1, 1), (9, 4), (5, 8)]}), use_logging=False)
    assert s.state.cities == (Point(1, 1), Point(9, 4), Point(5, 8))


def test_move_city_resamples_and_keeps_generation():
    s = build(_cfg(), use_logging=False)
    s.tick()
    net = s.state.network
    s.move_city(0, (25, 15))
    assert s.state.cities[0] == Point(25, 15)
    assert s.state.generation == 10
    assert s.state.network is net
    assert s.problem.cities[0] == Point(25, 15)
    with pytest.raises(ValueError):
        s.move_city(0, (math.nan, 1))
    with pytest.raises(IndexError):
        s.move_city(9, (1, 1))


def test_reset_draws_new_random_cities():
    s = build(_cfg(), use_logging=False)
    first = s.state.cities
    s.tick()
    s.move_city(1, (2, 2))
    s.reset()
    assert s.state.generation == 0
    assert s.state.segments == []
    assert len(s.state.cities) == 5
    assert s.state.cities != first
    assert s.problem.cities == s.state.cities

    # the redraw comes from the seeded cities stream
    again = build(_cfg(), use_logging=False)
    again.reset()
    assert again.state.cities == s.state.cities


def test_reset_restores_configured_locations():
    locs = [(1, 1), (9, 4), (5, 8)]
    s = build(_cfg(cities={"locations": locs}), use_logging=False)
    s.move_city(1, (2, 2))
    s.reset()
    assert s.state.cities == (Point(1, 1), Point(9, 4), Point(5, 8))


def test_move_city_snaps_to_grid():
    s = build(_cfg(run_id="grid", log={"records": "memory", "level": "WARNING"}))
    s.move_city(0, (3.7, 2))
    assert s.state.cities[0] == Point(4, 2)
    assert s.snapshot()["cities"][0] == (4, 2)
    assert s.hooks.recorder.sinks[0].records[-1].location == (4, 2)
    s.move_city(0, (2.5, 1.4))
    assert s.state.cities[0] == Point(3, 1)


def test_generation_record_counts_accepted_changes():
    s = build(_cfg(log={"records": "memory", "level": "WARNING"}))
    s.tick(20)
    rec = s.hooks.recorder.sinks[0].records[-1]
    assert isinstance(rec, GenerationRecorded)
    assert rec.accepted_in_batch == s.evolution.last_accepted
    assert 0 <= rec.accepted_in_batch <= 20

    idle = build(
        _cfg(
            log={"records": "memory", "level": "WARNING"},
            evolution={"mutation": {"operators": ["remove_segment"]}},
        )
    )
    idle.tick(5)
    assert idle.hooks.recorder.sinks[0].records[-1].accepted_in_batch == 0


def test_set_weights_validates():
    s = build(_cfg(), use_logging=False)
    s.set_weights([0, 0, 2])
    assert s.weights == [0.0, 0.0, 2.0]
    with pytest.raises(ValueError):
        s.set_weights([1, 1])


def test_configured_weights_and_operators():
    s = build(
        _cfg(
            evolution={
                "batch_size": 4,
                "weights": [1, 0, 0],
                "mutation": {"operators": ["create_segment", "change_quality"], "radius": 2},
            }
        ),
        use_logging=False,
    )
    assert s.weights == [1.0, 0.0, 0.0]
    assert s.evolution.radius == 2
    assert tuple(s.evolution.operators) == ("create_segment", "change_quality")
    s.tick()
    assert s.state.generation == 4


def test_shortest_path_finder_is_selectable():
    s = build(
        _cfg(evaluators=[{"kind": "commute_time", "path_finder": {"kind": "shortest"}}]),
        use_logging=False,
    )
    (ev,) = s.problem.evaluators
    assert isinstance(ev.path_finder, ShortestPathFinder)
    assert s.weights == [1.0]


def test_memory_records_follow_the_session(capsys):
    s = build(_cfg(run_id="rec", log={"records": "memory", "level": "WARNING"}))
    s.tick()
    s.move_city(0, (3, 3))
    records = s.hooks.recorder.sinks[0].records
    assert [type(r) for r in records] == [SessionStarted, GenerationRecorded, CityMoved]
    assert all(r.run_id == "rec" for r in records)
    assert records[1].generation == 10
    assert records[2].location == (3, 3)


def test_load_scenario_round_trip(tmp_path):
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps(_cfg(training_set={"kind": "random_pairs", "pairs": 12})))
    model = load_scenario(path)
    s = build(model, use_logging=False)
    assert len(s.state.training_set) == 12
