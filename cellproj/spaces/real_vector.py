from __future__ import annotations

import itertools
from typing import Sequence

import numpy as np

from cellproj.core.rng import RNG


class RealVectorBounds:
    """Axis-aligned box [low, high] in R^N."""

    def __init__(self, low: Sequence[float], high: Sequence[float]):
        self.low = np.asarray(low, dtype=np.float64).reshape(-1).copy()
        self.high = np.asarray(high, dtype=np.float64).reshape(-1).copy()

    @classmethod
    def uniform(cls, dim: int, low: float, high: float) -> RealVectorBounds:
        return cls(np.full(int(dim), float(low)), np.full(int(dim), float(high)))

    def check(self) -> None:
        if self.low.shape != self.high.shape:
            raise ValueError("lower and upper bounds must have the same dimension")
        if np.any(self.low > self.high):
            raise ValueError("lower bound must not exceed upper bound")

    def get_difference(self) -> list[float]:
        return (self.high - self.low).tolist()

    def get_volume(self) -> float:
        return float(np.prod(self.high - self.low))


class RealVectorStateSampler:
    def __init__(self, space: RealVectorStateSpace, rng: RNG | None = None):
        self.space = space
        self.rng = rng or RNG()

    def sample_uniform(self, state: np.ndarray) -> None:
        b = self.space.get_bounds()
        for i in range(self.space.get_dimension()):
            state[i] = self.rng.uniform_real(b.low[i], b.high[i])


class RealVectorStateSpace:
    """Bounded R^N whose states are float64 arrays of length N."""

    _ids = itertools.count()

    def __init__(
        self,
        dimension: int,
        bounds: RealVectorBounds | None = None,
        *,
        name: str | None = None,
        seed: int | None = None,
    ):
        if dimension <= 0:
            raise ValueError("dimension must be > 0")
        self.dimension = int(dimension)
        self.bounds = bounds or RealVectorBounds.uniform(self.dimension, 0.0, 1.0)
        self.bounds.check()
        if self.bounds.low.size != self.dimension:
            raise ValueError("bounds dimension mismatch")
        self.name = name or f"RealVector{next(RealVectorStateSpace._ids)}"
        self.seed = seed
        self._samplers = 0

    def get_dimension(self) -> int:
        return self.dimension

    def get_name(self) -> str:
        return self.name

    def get_bounds(self) -> RealVectorBounds:
        return self.bounds

    def alloc_state(self) -> np.ndarray:
        return np.zeros(self.dimension, dtype=np.float64)

    def free_state(self, state: np.ndarray) -> None:
        # States are plain arrays; nothing to release.
        pass

    def alloc_state_sampler(self) -> RealVectorStateSampler:
        if self.seed is None:
            return RealVectorStateSampler(self)
        # Each sampler gets its own reproducible stream.
        rng = RNG(int(self.seed) + self._samplers)
        self._samplers += 1
        return RealVectorStateSampler(self, rng)

    def satisfies_bounds(self, state: np.ndarray) -> bool:
        s = np.asarray(state, dtype=np.float64)
        return bool(np.all(s >= self.bounds.low) and np.all(s <= self.bounds.high))

    def enforce_bounds(self, state: np.ndarray) -> None:
        np.clip(state, self.bounds.low, self.bounds.high, out=state)
