"""Steering helpers shared by hostiles and explorers.

Both agent types use the same naive movement: find the nearest interesting
tile by Manhattan distance, then step a fixed amount along each axis toward
it.  Steps are not normalised, so diagonal travel covers ground faster than
axis-aligned travel.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray


def nearest_cell(
    mask: NDArray[np.bool_],
    x: float,
    y: float,
) -> tuple[int, int, float] | None:
    """Find the flagged cell closest to ``(x, y)`` by Manhattan distance.

    Ties go to the first cell in row-major order.

    Args:
        mask: Boolean ``[y, x]`` array of candidate cells.
        x: Continuous column position.
        y: Continuous row position.

    Returns:
        ``(cell_x, cell_y, distance)``, or None if no cell is flagged.
    """
    ys, xs = np.nonzero(mask)
    if xs.size == 0:
        return None
    dist = np.abs(xs - x) + np.abs(ys - y)
    best = int(np.argmin(dist))
    return int(xs[best]), int(ys[best]), float(dist[best])


def step_toward(
    x: float,
    y: float,
    target_x: float,
    target_y: float,
    speed: float,
) -> tuple[float, float]:
    """Move ``speed`` along each axis toward the target (sign of delta)."""
    return (
        x + float(np.sign(target_x - x)) * speed,
        y + float(np.sign(target_y - y)) * speed,
    )


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return math.floor(value + 0.5)
