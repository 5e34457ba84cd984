from __future__ import annotations

import abc
import logging
import math
import sys
from dataclasses import dataclass
from typing import Any, Callable, Sequence, TextIO

import numpy as np


logger = logging.getLogger(__name__)

_EPS = float(np.finfo(np.float64).eps)


@dataclass(frozen=True, slots=True)
class ProjectionConfig:
    # Uniform samples drawn when inferring cell sizes.
    extents_samples: int = 1000
    # Cells per axis across the observed extent.
    dimension_splits: float = 2.0

    def __post_init__(self) -> None:
        if self.extents_samples <= 0:
            raise ValueError("extents_samples must be > 0")
        if float(self.dimension_splits) <= 0.0:
            raise ValueError("dimension_splits must be > 0")


class ProjectionEvaluator(abc.ABC):
    """Maps states of a space to M real values and discretizes them into cells.

    Subclasses provide `get_dimension` and `project`. This class owns the cell
    widths: set them explicitly with `set_cell_dimensions`, or leave them
    empty and `setup()` infers them by sampling the space.

    Lifecycle:
      - configure (optional `set_cell_dimensions`)
      - `setup()` once
      - any number of `project` / `compute_coordinates` calls

    The space is only used for inference and diagnostics. It must provide
    `alloc_state()`, `free_state(state)`, `alloc_state_sampler()` (an object
    with `sample_uniform(state)`) and `get_name()`.
    """

    def __init__(
        self,
        space: Any,
        *,
        cell_dimensions: Sequence[float] | None = None,
        config: ProjectionConfig | None = None,
    ):
        self.space = space
        self.config = config or ProjectionConfig()
        self.cell_dimensions: list[float] = []
        if cell_dimensions is not None:
            # Validation is deferred to setup(); subclasses may not know M yet.
            self.cell_dimensions = [float(c) for c in cell_dimensions]

    @abc.abstractmethod
    def get_dimension(self) -> int:
        ...

    @abc.abstractmethod
    def project(self, state: Any) -> np.ndarray:
        ...

    def set_cell_dimensions(self, cell_dimensions: Sequence[float]) -> None:
        self.cell_dimensions = [float(c) for c in cell_dimensions]
        self.check_cell_dimensions()

    def get_cell_dimensions(self) -> list[float]:
        return list(self.cell_dimensions)

    def check_cell_dimensions(self) -> None:
        dim = int(self.get_dimension())
        if dim <= 0:
            raise ValueError("dimension of projection needs to be larger than 0")
        if len(self.cell_dimensions) != dim:
            raise ValueError(
                f"number of cell dimensions ({len(self.cell_dimensions)}) "
                f"does not match projection dimension ({dim})"
            )

    def infer_cell_dimensions(self) -> None:
        dim = int(self.get_dimension())
        if dim <= 0:
            return

        sampler = self.space.alloc_state_sampler()
        state = self.space.alloc_state()
        low = np.full(dim, np.inf)
        high = np.full(dim, -np.inf)
        try:
            for _ in range(int(self.config.extents_samples)):
                sampler.sample_uniform(state)
                proj = np.asarray(self.project(state), dtype=np.float64)
                np.minimum(low, proj, out=low)
                np.maximum(high, proj, out=high)
        finally:
            self.space.free_state(state)

        self._assign_inferred_widths((high - low) / float(self.config.dimension_splits))

    def _assign_inferred_widths(self, widths: np.ndarray) -> None:
        # Collapsed axes get a coarse unit cell so planning can continue.
        out = [float(w) for w in widths]
        for j in range(len(out)):
            if out[j] < _EPS:
                out[j] = 1.0
                logger.warning(
                    "Inferred cell size for dimension %d of a projection for state space %s is 0. "
                    "Setting arbitrary value of 1 instead.",
                    j,
                    self.space.get_name(),
                )
        self.cell_dimensions = out

    def setup(self) -> None:
        if not self.cell_dimensions and self.get_dimension() > 0:
            self.infer_cell_dimensions()
        self.check_cell_dimensions()
        logger.debug("Projection of dimension %d ready, cell dimensions %s", self.get_dimension(), self.cell_dimensions)

    def compute_coordinates(self, projection: np.ndarray | Sequence[float]) -> tuple[int, ...]:
        return tuple(
            math.floor(float(projection[i]) / self.cell_dimensions[i]) for i in range(int(self.get_dimension()))
        )

    def compute_coordinates_for_state(self, state: Any) -> tuple[int, ...]:
        return self.compute_coordinates(self.project(state))

    def print_settings(self, out: TextIO | None = None) -> None:
        out = out or sys.stdout
        out.write(f"Projection of dimension {self.get_dimension()}\n")
        out.write("Cell dimensions: [" + " ".join(repr(c) for c in self.cell_dimensions) + "]\n")

    def print_projection(self, projection: np.ndarray | Sequence[float], out: TextIO | None = None) -> None:
        out = out or sys.stdout
        d = int(self.get_dimension())
        if d > 0:
            out.write(" ".join(repr(float(projection[i])) for i in range(d)) + "\n")
        else:
            out.write("NULL\n")


class FunctionProjectionEvaluator(ProjectionEvaluator):
    """Evaluator backed by a user function `fn(state) -> M values`."""

    def __init__(
        self,
        space: Any,
        dimension: int,
        fn: Callable[[Any], Sequence[float] | np.ndarray],
        *,
        cell_dimensions: Sequence[float] | None = None,
        config: ProjectionConfig | None = None,
    ):
        super().__init__(space, cell_dimensions=cell_dimensions, config=config)
        self.dimension = int(dimension)
        self.fn = fn

    def get_dimension(self) -> int:
        return self.dimension

    def project(self, state: Any) -> np.ndarray:
        return np.asarray(self.fn(state), dtype=np.float64)
