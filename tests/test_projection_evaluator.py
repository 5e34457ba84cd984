from __future__ import annotations

import io
import logging
import math

import numpy as np
import pytest

from cellproj.core.projection_evaluator import FunctionProjectionEvaluator, ProjectionConfig
from cellproj.core.real_vector_projections import RealVectorLinearProjectionEvaluator
from cellproj.spaces.real_vector import RealVectorBounds, RealVectorStateSpace


class _CountingSpace:
    """Space double that records sampler and allocation traffic."""

    def __init__(self, dim: int, seed: int = 0):
        self.dim = dim
        self.rng = np.random.default_rng(seed)
        self.samples = 0
        self.allocated = 0
        self.freed = 0

    def get_name(self) -> str:
        return "counting"

    def alloc_state(self) -> np.ndarray:
        self.allocated += 1
        return np.zeros(self.dim)

    def free_state(self, state) -> None:  # noqa: ANN001
        self.freed += 1

    def alloc_state_sampler(self):  # noqa: ANN201
        space = self

        class _Sampler:
            def sample_uniform(self, state) -> None:  # noqa: ANN001
                space.samples += 1
                state[:] = space.rng.uniform(-1.0, 1.0, size=space.dim)

        return _Sampler()


def test_compute_coordinates_floors() -> None:
    ev = FunctionProjectionEvaluator(_CountingSpace(3), 3, lambda s: s)
    ev.set_cell_dimensions([0.5, 2.0, 1.0])
    assert ev.compute_coordinates([-0.1, 3.9, 2.0]) == (-1, 1, 2)


def test_compute_coordinates_matches_floor_division() -> None:
    rng = np.random.default_rng(0)
    widths = rng.uniform(0.01, 3.0, size=4).tolist()
    ev = FunctionProjectionEvaluator(_CountingSpace(4), 4, lambda s: s, cell_dimensions=widths)
    ev.setup()
    for _ in range(200):
        p = rng.uniform(-50.0, 50.0, size=4)
        coords = ev.compute_coordinates(p)
        assert coords == tuple(math.floor(p[i] / widths[i]) for i in range(4))
        assert all(isinstance(c, int) for c in coords)


def test_set_cell_dimensions_length_mismatch_fails() -> None:
    ev = FunctionProjectionEvaluator(_CountingSpace(3), 2, lambda s: s[:2])
    with pytest.raises(ValueError, match="does not match"):
        ev.set_cell_dimensions([1.0, 1.0, 1.0])


def test_zero_dimension_projection_fails() -> None:
    ev = FunctionProjectionEvaluator(_CountingSpace(3), 0, lambda s: [])
    with pytest.raises(ValueError, match="larger than 0"):
        ev.set_cell_dimensions([])
    with pytest.raises(ValueError):
        ev.setup()


def test_setup_validates_constructor_cell_dimensions() -> None:
    ev = FunctionProjectionEvaluator(_CountingSpace(3), 2, lambda s: s[:2], cell_dimensions=[1.0])
    with pytest.raises(ValueError):
        ev.setup()


def test_setup_infers_from_samples() -> None:
    space = _CountingSpace(2)
    ev = FunctionProjectionEvaluator(space, 2, lambda s: s, config=ProjectionConfig(extents_samples=300))
    ev.setup()

    assert space.samples == 300
    assert space.allocated == space.freed == 1
    widths = ev.get_cell_dimensions()
    assert len(widths) == 2
    # Extent of U(-1, 1) split in two cells.
    for w in widths:
        assert 0.9 < w <= 1.0


def test_dimension_splits_controls_width() -> None:
    space = _CountingSpace(1, seed=5)
    ev = FunctionProjectionEvaluator(space, 1, lambda s: s, config=ProjectionConfig(extents_samples=50, dimension_splits=4.0))
    ev.infer_cell_dimensions()
    rng = np.random.default_rng(5)
    vals = np.array([rng.uniform(-1.0, 1.0, size=1)[0] for _ in range(50)])
    assert ev.get_cell_dimensions()[0] == pytest.approx((vals.max() - vals.min()) / 4.0)


def test_constant_dimension_falls_back_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    space = RealVectorStateSpace(2, name="plane", seed=1)
    ev = FunctionProjectionEvaluator(space, 2, lambda s: [s[0], 5.0], config=ProjectionConfig(extents_samples=200))
    with caplog.at_level(logging.WARNING, logger="cellproj.core.projection_evaluator"):
        ev.setup()

    widths = ev.get_cell_dimensions()
    assert widths[1] == 1.0
    assert 0.4 < widths[0] <= 0.5
    assert any("dimension 1" in r.getMessage() and "plane" in r.getMessage() for r in caplog.records)
    assert all(r.levelno == logging.WARNING for r in caplog.records)


def test_failed_inference_frees_state_and_keeps_config() -> None:
    space = _CountingSpace(2)

    def boom(state):  # noqa: ANN001
        raise RuntimeError("projection failed")

    ev = FunctionProjectionEvaluator(space, 2, boom)
    with pytest.raises(RuntimeError):
        ev.setup()
    assert space.freed == 1
    assert ev.get_cell_dimensions() == []


def test_setup_is_idempotent_until_cleared() -> None:
    space = _CountingSpace(2)
    ev = FunctionProjectionEvaluator(space, 2, lambda s: s, config=ProjectionConfig(extents_samples=10))
    ev.setup()
    ev.setup()
    assert space.samples == 10

    ev.cell_dimensions = []
    ev.setup()
    assert space.samples == 20


def test_explicit_cell_dimensions_skip_inference() -> None:
    space = _CountingSpace(2)
    ev = FunctionProjectionEvaluator(space, 2, lambda s: s, cell_dimensions=[0.1, 0.2])
    ev.setup()
    assert space.samples == 0
    assert ev.get_cell_dimensions() == [0.1, 0.2]


def test_print_settings_and_projection() -> None:
    ev = FunctionProjectionEvaluator(_CountingSpace(2), 2, lambda s: s)
    ev.set_cell_dimensions([0.5, 2.0])

    buf = io.StringIO()
    ev.print_settings(buf)
    assert buf.getvalue() == "Projection of dimension 2\nCell dimensions: [0.5 2.0]\n"

    buf = io.StringIO()
    ev.print_projection(np.array([1.25, -3.0]), buf)
    assert buf.getvalue() == "1.25 -3.0\n"


def test_print_projection_null_for_empty_projection() -> None:
    ev = FunctionProjectionEvaluator(_CountingSpace(2), 0, lambda s: [])
    buf = io.StringIO()
    ev.print_projection([], buf)
    assert buf.getvalue() == "NULL\n"


def test_linear_projection_end_to_end() -> None:
    space = RealVectorStateSpace(4, RealVectorBounds.uniform(4, -5.0, 5.0))
    mat = [[1.0, 0.0, 0.0, 0.0], [0.0, 1.0, 0.0, 0.0]]
    ev = RealVectorLinearProjectionEvaluator(space, mat, cell_dimensions=[1.0, 1.0])
    ev.setup()

    assert ev.get_dimension() == 2
    assert ev.compute_coordinates_for_state(np.array([0.4, 0.0, 0.0, 0.0])) == (0, 0)
    assert ev.compute_coordinates(ev.project(np.array([1.6, 0.0, 0.0, 0.0])))[0] == 1
