from __future__ import annotations

import sys
from typing import Sequence, TextIO

import numpy as np

from cellproj.core.rng import RNG


_EPS = float(np.finfo(np.float64).eps)


class ProjectionMatrix:
    """Dense M x N linear map used to reduce states to M dimensions.

    Rows are produced by `compute_random`: Gaussian entries orthonormalized
    with Gram-Schmidt, optionally divided by a per-row scale factor.
    """

    def __init__(self, mat: np.ndarray | Sequence[Sequence[float]] | None = None):
        if mat is None:
            self.mat = np.zeros((0, 0), dtype=np.float64)
        else:
            m = np.array(mat, dtype=np.float64)
            if m.ndim != 2:
                raise ValueError("projection matrix must be 2D [M, N]")
            self.mat = m

    @property
    def from_dim(self) -> int:
        return int(self.mat.shape[1])

    @property
    def to_dim(self) -> int:
        return int(self.mat.shape[0])

    @staticmethod
    def compute_random_matrix(
        from_dim: int,
        to_dim: int,
        scale: Sequence[float] | None = None,
        *,
        rng: RNG | None = None,
    ) -> np.ndarray:
        """Random projection from `from_dim` (N) to `to_dim` (M) dimensions.

        The M rows are orthonormal when M <= N. If `scale` has exactly N
        entries, row i is divided by `scale[i]` (the output row index selects
        the divisor, so the first M entries are the ones used).
        """
        if from_dim <= 0:
            raise ValueError("from_dim must be > 0")
        if to_dim <= 0:
            raise ValueError("to_dim must be > 0")

        rng = rng or RNG()

        # Row-major draw, one deviate per entry.
        projection = np.empty((int(to_dim), int(from_dim)), dtype=np.float64)
        for i in range(int(to_dim)):
            for j in range(int(from_dim)):
                projection[i, j] = rng.gaussian01()

        for i in range(int(to_dim)):
            row = projection[i]
            for j in range(i):
                prev = projection[j]
                row -= float(np.dot(row, prev)) * prev
            row /= np.sqrt(float(np.dot(row, row)))

        if scale is not None and len(scale) == from_dim:
            for i in range(int(to_dim)):
                s = float(scale[i])
                if abs(s) < _EPS:
                    raise ValueError("scaling factor must be non-zero")
                projection[i] /= s

        return projection

    def compute_random(
        self,
        from_dim: int,
        to_dim: int,
        scale: Sequence[float] | None = None,
        *,
        rng: RNG | None = None,
    ) -> None:
        self.mat = ProjectionMatrix.compute_random_matrix(from_dim, to_dim, scale, rng=rng)

    def project(self, values: np.ndarray | Sequence[float]) -> np.ndarray:
        # Hot path: no shape check.
        return self.mat @ np.asarray(values, dtype=np.float64)

    def print(self, out: TextIO | None = None) -> None:
        out = out or sys.stdout
        for row in self.mat:
            out.write(" ".join(repr(float(v)) for v in row))
            out.write("\n")

    @staticmethod
    def parse(text: str) -> ProjectionMatrix:
        """Inverse of `print`."""
        rows = [[float(tok) for tok in line.split()] for line in text.splitlines() if line.strip()]
        if not rows:
            return ProjectionMatrix()
        width = len(rows[0])
        if any(len(r) != width for r in rows):
            raise ValueError("all rows must have the same length")
        return ProjectionMatrix(rows)
