# sim/rng.py
from functools import cache
from zlib import crc32

import numpy as np

# Streams the session draws from. Kept separate so that, e.g., moving a city
# (training_set draws) never shifts the mutation sequence.
CITIES = "cities"
TRAINING_SET = "training_set"
MUTATION = "mutation"


def _tag(value: object) -> int:
    return crc32(str(value).encode("utf-8")) & 0xFFFFFFFF


class RNGRegistry:
    """
    Named numpy Generator streams for one session.

    Each stream is seeded from (seed, scenario, worker, name), so the draws on
    one stream depend only on how often that stream was used.
    """

    def __init__(self, master_seed: int, *, scenario: str | int = 0, worker: int = 0):
        self.master_seed = master_seed & 0xFFFFFFFF
        self.scenario_tag = _tag(scenario)
        self.worker = worker & 0xFFFFFFFF

    @cache
    def stream(self, name: str) -> np.random.Generator:
        """The generator for name; asking again returns the same, already advanced, one."""
        seq = np.random.SeedSequence([self.master_seed, self.scenario_tag, self.worker, _tag(name)])
        return np.random.default_rng(seq)
