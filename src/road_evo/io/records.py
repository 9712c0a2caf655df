# road_evo/io/records.py

from dataclasses import dataclass


# Base type for analytics records (emitted beside the logs, never fed back into the search)
@dataclass
class Record:
    run_id: str
    generation: int
    name: str  # stable record name


@dataclass
class SessionStarted(Record):
    seed: int
    cities: list[tuple[int, int]]
    training_pairs: int
    cost: list[float]


@dataclass
class GenerationRecorded(Record):
    segments: int
    vertices: int
    cost: list[float]
    weighted: float
    accepted_in_batch: int | None = None


@dataclass
class CityMoved(Record):
    index: int
    location: tuple[int, int]
    cost: list[float]
