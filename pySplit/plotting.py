from __future__ import annotations

from typing import Optional

import matplotlib.pyplot as plt
import numpy as np

from .splits import SplitResult
from .utils import ensure_observations


def plot_split_scores(result: SplitResult, ax: Optional[plt.Axes] = None) -> plt.Axes:
    """Plot the score of every candidate threshold and mark the chosen one."""
    if result.candidates is None:
        raise ValueError("Result carries no candidate scores.")
    if ax is None:
        _, ax = plt.subplots(figsize=(6, 4))
    candidates = result.candidates
    ax.plot(candidates.thresholds, candidates.scores, marker="o", ms=3, color="#1d3557")
    ax.axvline(result.threshold, color="#e76f51", linestyle="--", label="threshold")
    ax.set_xlabel(result.predictor or "predictor")
    ax.set_ylabel("SSE" if result.criterion == "sse" else "p-value")
    ax.legend()
    ax.set_title(f"Candidate splits ({result.criterion})")
    return ax


def plot_split(x, y, result: SplitResult, ax: Optional[plt.Axes] = None) -> plt.Axes:
    """Scatter the observations with the threshold and both group means."""
    x_arr, y_arr, _ = ensure_observations(x, y)
    if ax is None:
        _, ax = plt.subplots(figsize=(6, 4))
    ax.scatter(x_arr, y_arr, alpha=0.6, s=20, color="#1d3557")
    ax.axvline(result.threshold, color="#e76f51", linestyle="--", label="threshold")

    lo, hi = float(np.min(x_arr)), float(np.max(x_arr))
    ax.hlines(result.left_mean, lo, result.threshold, color="#2a9d8f", label="left mean")
    ax.hlines(result.right_mean, result.threshold, hi, color="#264653", label="right mean")
    ax.set_xlabel(result.predictor or "predictor")
    ax.set_ylabel("response")
    ax.legend()
    ax.set_title("Best split")
    return ax
