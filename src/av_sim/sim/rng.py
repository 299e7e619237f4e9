from __future__ import annotations

from functools import cache
from zlib import crc32

import numpy as np


def _u32(x: int) -> int:
    return int(x & 0xFFFFFFFF)


def _tag(s: str) -> int:
    return _u32(crc32(s.encode("utf-8")))


class RNGRegistry:
    """
    One numpy Generator (PCG64) per named stream, all derived from a single
    SeedSequence path: [seed, scenario, worker, crc32(name)].

    The map generator draws from "network" and the drift model from "drift",
    so changing drift settings never changes the generated map.

    seed=None draws OS entropy once; `seed` then holds the drawn value so an
    unlucky map can be reproduced by passing it back in.
    """

    def __init__(self, seed: int | None = None, *, scenario: str | int = 0, worker: int = 0):
        self.seeded = seed is not None
        self.seed = _u32(seed if seed is not None else int(np.random.SeedSequence().entropy))
        self.scenario_tag = _tag(str(scenario))
        self.worker = _u32(worker)

    @cache
    def stream(self, name: str) -> np.random.Generator:
        ss = np.random.SeedSequence(entropy=[self.seed, self.scenario_tag, self.worker, _tag(name)])
        return np.random.Generator(np.random.PCG64(ss))
