from collections.abc import Sequence
from typing import Protocol


class EvolutionHooks(Protocol):
    def session_start(self, *, generation, cities, training_pairs, cost): ...
    def run_start(self, *, steps, generation): ...
    def run_end(self, *, processed, accepted, generation, wall_ms, **extra): ...
    def step(
        self,
        *,
        generation: int,
        operator: str,
        accepted: bool,
        before: float,
        after: float,
        cost: Sequence[float],
        segments: int,
        ms: float,
    ): ...
    def city_moved(self, *, index, location, generation, cost): ...
    def error(self, *, reason: str, **kw): ...
    def record(self, rec): ...


class NoopHooks:
    def session_start(self, **_):
        pass

    def run_start(self, **_):
        pass

    def run_end(self, **_):
        pass

    def step(self, **_):
        pass

    def city_moved(self, **_):
        pass

    def error(self, **_):
        pass

    def record(self, rec):
        pass
