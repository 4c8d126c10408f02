from __future__ import annotations

import numpy as np


def sse(values) -> float:
    """Sum of squared deviations from the mean (population second moment times n)."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    return float(np.sum((arr - arr.mean()) ** 2))


def variance_reduction(parent_sse: float, left_sse: float, right_sse: float) -> float:
    """SSE reduction obtained by a split."""
    return float(parent_sse - (left_sse + right_sse))


def r_squared(tss: float, sse_value: float) -> float:
    """R² = 1 - SSE/TSS (0 when the response has no variation)."""
    if tss == 0.0:
        return 0.0
    return float(1.0 - (sse_value / tss))
