# main.py
import argparse
import json

from road_evo.app.build import build
from road_evo.config.models import ScenarioModel
from road_evo.io.config import load_scenario


def run(model: ScenarioModel, ticks: int) -> dict:
    session = build(model)
    for _ in range(ticks):
        session.tick()
    return session.snapshot()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evolve a road network between cities")
    parser.add_argument("--scenario", help="Path to a JSON scenario file (defaults when omitted)")
    parser.add_argument("--ticks", type=int, default=100, help="Number of host ticks to run")
    parser.add_argument("--seed", type=int, default=None, help="Override the scenario seed")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    model = load_scenario(args.scenario) if args.scenario else ScenarioModel()
    if args.seed is not None:
        model = model.model_copy(update={"seed": args.seed})
    print(json.dumps(run(model, args.ticks)))
