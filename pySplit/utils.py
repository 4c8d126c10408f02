from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np


def ensure_observations(x, y=None) -> Tuple[np.ndarray, np.ndarray, Optional[str]]:
    """Convert observations to two float arrays and extract the predictor name.

    ``x`` is either the predictor column (with ``y`` the response column) or,
    when ``y`` is None, a sequence of ``(predictor, response)`` pairs.
    """
    name: Optional[str] = None
    if y is None:
        pairs = np.asarray(x, dtype=float)
        if pairs.size == 0:
            return np.empty(0), np.empty(0), None
        if pairs.ndim != 2 or pairs.shape[1] != 2:
            raise ValueError("Observations must be (predictor, response) pairs.")
        x_arr, y_arr = pairs[:, 0], pairs[:, 1]
    else:
        if hasattr(x, "to_numpy"):
            series_name = getattr(x, "name", None)
            name = None if series_name is None else str(series_name)
            x = x.to_numpy(dtype=float)
        x_arr = np.asarray(x, dtype=float).reshape(-1)
        y_arr = np.asarray(y, dtype=float).reshape(-1)

    if x_arr.shape[0] != y_arr.shape[0]:
        raise ValueError(
            f"Shape mismatch: predictor has {x_arr.shape[0]} values, response has {y_arr.shape[0]}"
        )
    if not np.all(np.isfinite(x_arr)):
        raise ValueError("Predictor contains NaN or Inf")
    if not np.all(np.isfinite(y_arr)):
        raise ValueError("Response contains NaN or Inf")
    return np.ascontiguousarray(x_arr), np.ascontiguousarray(y_arr), name


def ensure_columns(X) -> Tuple[np.ndarray, List[str]]:
    """Convert a predictor table to a 2D float array and extract column names."""
    if hasattr(X, "to_frame") and getattr(X, "ndim", 2) == 1:
        X = X.to_frame()
    if hasattr(X, "to_numpy"):
        names = [str(c) for c in getattr(X, "columns", [])]
        X_arr = X.to_numpy(dtype=float)
    else:
        X_arr = np.asarray(X, dtype=float)
        if X_arr.ndim == 1:
            X_arr = X_arr.reshape(-1, 1)
        names = [f"x{i}" for i in range(X_arr.shape[1])]
    if X_arr.ndim != 2:
        raise ValueError("X must be 2D.")
    return X_arr, names


def sse_from_stats(sum_y, sum_y2, n) -> np.ndarray:
    """Within-group SSE from first and second sums, elementwise over groups.

    Rounding can push a near-zero SSE slightly negative; it is clipped to 0.
    """
    sum_y = np.asarray(sum_y, dtype=float)
    sum_y2 = np.asarray(sum_y2, dtype=float)
    n = np.asarray(n, dtype=float)
    return np.maximum(sum_y2 - (sum_y * sum_y) / n, 0.0)


def candidate_positions(x_sorted: np.ndarray, min_group_size: int) -> np.ndarray:
    """Positions of the last left-hand observation for every admissible threshold.

    A threshold is a distinct value of the sorted predictor; position ``p``
    puts ``x_sorted[: p + 1]`` on the left. Positions leaving fewer than
    ``min_group_size`` observations on either side are dropped.
    """
    n = x_sorted.shape[0]
    positions = np.nonzero(x_sorted[:-1] != x_sorted[1:])[0]
    left_n = positions + 1
    keep = (left_n >= min_group_size) & (n - left_n >= min_group_size)
    return positions[keep]


def first_minimum(scores: np.ndarray, rtol: float = 1e-9) -> int:
    """Index of the first score equal, within ``rtol``, to the minimum."""
    best = float(np.min(scores))
    tied = np.nonzero(scores <= best + rtol * abs(best))[0]
    return int(tied[0])
