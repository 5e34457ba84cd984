from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable

import numpy as np


@dataclass(frozen=True, slots=True)
class OccupancySummary:
    n: int
    cells: int
    max_per_cell: int
    mean_per_cell: float
    std_per_cell: float


def summarize_cell_occupancy(coords: Iterable[tuple[int, ...]]) -> OccupancySummary:
    """How evenly a batch of cell coordinates spreads over distinct cells."""
    counts = Counter(tuple(c) for c in coords)
    if not counts:
        return OccupancySummary(n=0, cells=0, max_per_cell=0, mean_per_cell=0.0, std_per_cell=0.0)

    arr = np.asarray(list(counts.values()), dtype=np.float64)
    return OccupancySummary(
        n=int(arr.sum()),
        cells=int(arr.size),
        max_per_cell=int(arr.max()),
        mean_per_cell=float(np.mean(arr)),
        std_per_cell=float(np.std(arr)),
    )
