# src/road_evo/io/config.py
import json
from pathlib import Path

from road_evo.config.models import ScenarioModel


def load_scenario(path: str | Path) -> ScenarioModel:
    """Read and validate a JSON scenario file."""
    with open(Path(path).expanduser(), encoding="utf-8") as f:
        return ScenarioModel.model_validate(json.load(f))
