from __future__ import annotations

import numpy as np


class RNG:
    """Source of random deviates.

    Thin wrapper over `numpy.random.Generator`. Pass a `seed` for a
    reproducible stream; `None` draws fresh entropy from the OS.
    """

    def __init__(self, seed: int | None = None):
        self.seed = seed
        self._gen = np.random.default_rng(seed)

    def gaussian01(self) -> float:
        return float(self._gen.standard_normal())

    def gaussian(self, mean: float, stddev: float) -> float:
        return float(self._gen.normal(loc=float(mean), scale=float(stddev)))

    def uniform01(self) -> float:
        return float(self._gen.random())

    def uniform_real(self, low: float, high: float) -> float:
        return float(self._gen.uniform(low=float(low), high=float(high)))

    def uniform_int(self, low: int, high: int) -> int:
        """Integer in [low, high], both ends inclusive."""
        return int(self._gen.integers(int(low), int(high) + 1))
