from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from cellproj.core.projection_evaluator import ProjectionConfig, ProjectionEvaluator
from cellproj.core.projection_matrix import ProjectionMatrix
from cellproj.core.rng import RNG
from cellproj.spaces.real_vector import RealVectorStateSpace


class RealVectorLinearProjectionEvaluator(ProjectionEvaluator):
    """Projection of R^N states through a fixed `ProjectionMatrix`."""

    def __init__(
        self,
        space: RealVectorStateSpace,
        projection: ProjectionMatrix | np.ndarray | Sequence[Sequence[float]],
        *,
        cell_dimensions: Sequence[float] | None = None,
        config: ProjectionConfig | None = None,
    ):
        super().__init__(space, cell_dimensions=cell_dimensions, config=config)
        if isinstance(projection, ProjectionMatrix):
            self.projection = projection
        else:
            self.projection = ProjectionMatrix(projection)

    def get_dimension(self) -> int:
        return self.projection.to_dim

    def project(self, state: np.ndarray) -> np.ndarray:
        return self.projection.project(state)


class RealVectorRandomLinearProjectionEvaluator(RealVectorLinearProjectionEvaluator):
    """Random orthonormal projection, rows scaled by the bounds extents."""

    def __init__(
        self,
        space: RealVectorStateSpace,
        dimension: int,
        *,
        cell_dimensions: Sequence[float] | None = None,
        config: ProjectionConfig | None = None,
        rng: RNG | None = None,
    ):
        matrix = ProjectionMatrix()
        matrix.compute_random(
            space.get_dimension(),
            int(dimension),
            space.get_bounds().get_difference(),
            rng=rng,
        )
        super().__init__(space, matrix, cell_dimensions=cell_dimensions, config=config)


class RealVectorOrthogonalProjectionEvaluator(ProjectionEvaluator):
    """Keeps only the selected components of the state.

    Without explicit cell dimensions, widths come from the space bounds of the
    kept components rather than from sampling.
    """

    def __init__(
        self,
        space: RealVectorStateSpace,
        components: Sequence[int],
        *,
        cell_dimensions: Sequence[float] | None = None,
        config: ProjectionConfig | None = None,
    ):
        super().__init__(space, cell_dimensions=cell_dimensions, config=config)
        self.components = [int(c) for c in components]
        n = space.get_dimension()
        for c in self.components:
            if c < 0 or c >= n:
                raise ValueError(f"component {c} out of range for dimension {n}")

    def get_dimension(self) -> int:
        return len(self.components)

    def project(self, state: np.ndarray) -> np.ndarray:
        return np.asarray(state, dtype=np.float64)[self.components]

    def setup(self) -> None:
        if not self.cell_dimensions and self.components:
            b = self.space.get_bounds()
            idx = self.components
            self._assign_inferred_widths((b.high[idx] - b.low[idx]) / float(self.config.dimension_splits))
        super().setup()


class RealVectorIdentityProjectionEvaluator(RealVectorOrthogonalProjectionEvaluator):
    def __init__(
        self,
        space: RealVectorStateSpace,
        *,
        cell_dimensions: Sequence[float] | None = None,
        config: ProjectionConfig | None = None,
    ):
        super().__init__(
            space, range(space.get_dimension()), cell_dimensions=cell_dimensions, config=config
        )

    def project(self, state: np.ndarray) -> np.ndarray:
        return np.array(state, dtype=np.float64)


def default_projection(space: RealVectorStateSpace, *, rng: RNG | None = None) -> ProjectionEvaluator:
    """Identity for spaces of dimension <= 2, otherwise a random linear
    projection to max(2, ceil(log(N))) dimensions."""
    n = space.get_dimension()
    if n <= 2:
        return RealVectorIdentityProjectionEvaluator(space)
    p = max(2, int(math.ceil(math.log(float(n)))))
    return RealVectorRandomLinearProjectionEvaluator(space, p, rng=rng)
