from __future__ import annotations

import argparse
import csv
import time
from pathlib import Path

from cellproj.core.projection_evaluator import ProjectionConfig
from cellproj.core.real_vector_projections import RealVectorRandomLinearProjectionEvaluator
from cellproj.core.rng import RNG
from cellproj.spaces.real_vector import RealVectorBounds, RealVectorStateSpace
from cellproj.utils.metrics import summarize_cell_occupancy


def _parse_floats(text: str) -> list[float]:
    return [float(t) for t in text.split(",") if t.strip()]


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Cell coverage of a random linear projection")
    ap.add_argument("--dim", type=int, default=7, help="state space dimension N")
    ap.add_argument("--proj-dim", type=int, default=2, help="projection dimension M (<= N)")
    ap.add_argument("--low", type=float, default=-1.0, help="lower bound on every axis")
    ap.add_argument("--high", type=float, default=1.0, help="upper bound on every axis")
    ap.add_argument("--samples", type=int, default=5000, help="states to discretize")
    ap.add_argument("--extents-samples", type=int, default=1000, help="samples used to infer cell sizes")
    ap.add_argument("--splits", type=float, default=2.0, help="cells per axis across the inferred extent")
    ap.add_argument("--cell-dims", type=str, default="", help="comma separated cell widths (skips inference)")
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--out", type=str, default="outputs/cell_coverage.csv")
    ap.add_argument("--print-matrix", action="store_true")
    ap.add_argument("--print-settings", action="store_true")

    args = ap.parse_args(argv)

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    space = RealVectorStateSpace(
        int(args.dim),
        RealVectorBounds.uniform(int(args.dim), float(args.low), float(args.high)),
        seed=int(args.seed),
    )
    cfg = ProjectionConfig(extents_samples=int(args.extents_samples), dimension_splits=float(args.splits))
    cell_dims = _parse_floats(str(args.cell_dims)) or None
    proj = RealVectorRandomLinearProjectionEvaluator(
        space,
        int(args.proj_dim),
        cell_dimensions=cell_dims,
        config=cfg,
        rng=RNG(int(args.seed)),
    )

    t0 = time.perf_counter()
    proj.setup()
    setup_ms = (time.perf_counter() - t0) * 1000.0

    if args.print_matrix:
        proj.projection.print()
    if args.print_settings:
        proj.print_settings()

    sampler = space.alloc_state_sampler()
    state = space.alloc_state()
    coords = []
    t0 = time.perf_counter()
    for _ in range(int(args.samples)):
        sampler.sample_uniform(state)
        coords.append(proj.compute_coordinates_for_state(state))
    project_ms = (time.perf_counter() - t0) * 1000.0
    space.free_state(state)

    summary = summarize_cell_occupancy(coords)

    row = {
        "dim": space.get_dimension(),
        "proj_dim": proj.get_dimension(),
        "low": float(args.low),
        "high": float(args.high),
        "samples": int(args.samples),
        "extents_samples": cfg.extents_samples,
        "splits": cfg.dimension_splits,
        "seed": int(args.seed),
        "cell_dims": " ".join(f"{c:.6g}" for c in proj.get_cell_dimensions()),
        "cells": summary.cells,
        "max_per_cell": summary.max_per_cell,
        "mean_per_cell": summary.mean_per_cell,
        "std_per_cell": summary.std_per_cell,
        "setup_ms": setup_ms,
        "project_ms": project_ms,
    }

    write_header = not out_path.exists()
    with out_path.open("a", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=list(row.keys()))
        if write_header:
            w.writeheader()
        w.writerow(row)

    print("Cells:", summary.cells)
    print("Max per cell:", summary.max_per_cell)
    print("Wrote:", out_path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
