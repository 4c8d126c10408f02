from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, NamedTuple, Optional

import numpy as np
import pandas as pd

from .exceptions import DegenerateGroupError, InsufficientDataError
from .metrics import r_squared, sse, variance_reduction
from .significance import resolve_test
from .utils import (
    candidate_positions,
    ensure_columns,
    ensure_observations,
    first_minimum,
    sse_from_stats,
)

logger = logging.getLogger(__name__)

SSE = "sse"
SIGNIFICANCE = "significance"

_CRITERIA = {
    "sse": SSE,
    "sum-of-squares-error": SSE,
    "significance": SIGNIFICANCE,
    "significance-test": SIGNIFICANCE,
}
_DEFAULT_MIN_GROUP_SIZE = {SSE: 1, SIGNIFICANCE: 2}


def resolve_criterion(criterion: str) -> str:
    if isinstance(criterion, str) and criterion.lower() in _CRITERIA:
        return _CRITERIA[criterion.lower()]
    raise ValueError(
        f"Unknown criterion {criterion!r}; expected 'sse' or 'significance'"
    )


class SplitEvaluation(NamedTuple):
    threshold: float
    score: float
    left_mean: float
    right_mean: float
    n_left: int
    n_right: int


class CandidateScores:
    """Scores of every admissible threshold, in ascending threshold order.

    Records are built on access, so the sequence can be iterated any number
    of times and always yields the same values.
    """

    def __init__(
        self,
        thresholds: np.ndarray,
        scores: np.ndarray,
        left_means: np.ndarray,
        right_means: np.ndarray,
        left_counts: np.ndarray,
        n_samples: int,
    ) -> None:
        self.thresholds = _frozen(thresholds)
        self.scores = _frozen(scores)
        self.left_means = _frozen(left_means)
        self.right_means = _frozen(right_means)
        self.left_counts = _frozen(left_counts)
        self.n_samples = int(n_samples)

    def __len__(self) -> int:
        return int(self.thresholds.shape[0])

    def __getitem__(self, index: int) -> SplitEvaluation:
        if index < 0:
            index += len(self)
        if not 0 <= index < len(self):
            raise IndexError("candidate index out of range")
        n_left = int(self.left_counts[index])
        return SplitEvaluation(
            threshold=float(self.thresholds[index]),
            score=float(self.scores[index]),
            left_mean=float(self.left_means[index]),
            right_mean=float(self.right_means[index]),
            n_left=n_left,
            n_right=self.n_samples - n_left,
        )

    def __iter__(self) -> Iterator[SplitEvaluation]:
        for i in range(len(self)):
            yield self[i]

    def __repr__(self) -> str:
        return f"CandidateScores(n_candidates={len(self)})"

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(list(self), columns=list(SplitEvaluation._fields))


def _frozen(values) -> np.ndarray:
    arr = np.array(values)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class SplitResult:
    """Best split of one predictor under one criterion."""

    criterion: str
    threshold: float
    score: float
    left_mean: float
    right_mean: float
    n_left: int
    n_right: int
    gain: float
    parent_sse: float
    predictor: Optional[str] = None
    candidates: Optional[CandidateScores] = field(default=None, repr=False, compare=False)

    @property
    def r_squared(self) -> float:
        return r_squared(self.parent_sse, self.parent_sse - self.gain)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "predictor": self.predictor,
            "criterion": self.criterion,
            "threshold": self.threshold,
            "score": self.score,
            "left_mean": self.left_mean,
            "right_mean": self.right_mean,
            "n_left": self.n_left,
            "n_right": self.n_right,
            "gain": self.gain,
            "parent_sse": self.parent_sse,
            "n_candidates": len(self.candidates) if self.candidates is not None else 0,
        }


def _sse_scores(y_sorted: np.ndarray, positions: np.ndarray) -> np.ndarray:
    # Centering first keeps sum(y^2) - sum(y)^2 / n from cancelling on large responses.
    y_c = y_sorted - y_sorted.mean()
    n = y_c.size
    csum_y = np.cumsum(y_c)
    csum_y2 = np.cumsum(y_c * y_c)
    total_sum = csum_y[-1]
    total_sum2 = csum_y2[-1]

    left_n = (positions + 1).astype(float)
    right_n = n - left_n
    left_sum = csum_y[positions]
    left_sum2 = csum_y2[positions]
    right_sum = total_sum - left_sum
    right_sum2 = total_sum2 - left_sum2

    return sse_from_stats(left_sum, left_sum2, left_n) + sse_from_stats(right_sum, right_sum2, right_n)


def evaluate_splits(
    x,
    y=None,
    criterion: str = SSE,
    min_group_size: Optional[int] = None,
    test=None,
    n_permutations: int = 999,
    random_state=None,
    predictor: Optional[str] = None,
) -> SplitResult:
    """Score every admissible threshold of one predictor and return the best.

    Parameters
    ----------
    x, y : array-like
        Predictor and response values. When ``y`` is None, ``x`` must be a
        sequence of ``(predictor, response)`` pairs.
    criterion : {'sse', 'significance'}
        ``'sse'`` minimises the within-group sum of squared errors;
        ``'significance'`` minimises the p-value of a two-sample test.
        ``'sum-of-squares-error'`` and ``'significance-test'`` are accepted
        as aliases.
    min_group_size : Optional[int]
        Minimum observations on each side of a threshold. Defaults to 1 for
        ``'sse'`` and 2 for ``'significance'``.
    test : {'welch', 'ctree', 'permutation'} or callable, optional
        Test used by the significance criterion (default Welch's t-test).
    n_permutations : int
        Number of relabellings for the ``'permutation'`` test.
    random_state : int | numpy.random.Generator | None
        Randomness for the ``'permutation'`` test.
    predictor : Optional[str]
        Name reported in the result (defaults to the pandas series name).

    Raises
    ------
    InsufficientDataError
        Fewer than ``2 * min_group_size`` observations, or a constant predictor.
    DegenerateGroupError
        No threshold leaves ``min_group_size`` observations on both sides.
    """
    criterion = resolve_criterion(criterion)
    if min_group_size is None:
        min_group_size = _DEFAULT_MIN_GROUP_SIZE[criterion]
    min_group_size = int(min_group_size)
    if min_group_size < 1:
        raise ValueError("min_group_size must be >= 1")

    x_arr, y_arr, name = ensure_observations(x, y)
    if predictor is None:
        predictor = name
    n = x_arr.size
    if n == 0 or n < 2 * min_group_size:
        raise InsufficientDataError(
            f"Need at least {2 * min_group_size} observations, got {n}"
        )

    order = np.argsort(x_arr, kind="mergesort")
    x_sorted = x_arr[order]
    y_sorted = y_arr[order]
    if x_sorted[0] == x_sorted[-1]:
        raise InsufficientDataError("Predictor has a single distinct value")

    positions = candidate_positions(x_sorted, min_group_size)
    if positions.size == 0:
        raise DegenerateGroupError(
            f"No threshold leaves {min_group_size} observations on each side"
        )

    left_n = positions + 1
    csum_y = np.cumsum(y_sorted)
    left_sum = csum_y[positions]
    left_means = left_sum / left_n
    right_means = (csum_y[-1] - left_sum) / (n - left_n)

    if criterion == SSE:
        scores = _sse_scores(y_sorted, positions)
    else:
        stat_test = resolve_test(test, n_permutations=n_permutations, random_state=random_state)
        scores = np.array(
            [stat_test(y_sorted[: p + 1], y_sorted[p + 1 :]) for p in positions],
            dtype=float,
        )
        # An undefined p-value carries no evidence for the split.
        scores[~np.isfinite(scores)] = 1.0

    best = first_minimum(scores)
    pos = int(positions[best])
    left_y = y_sorted[: pos + 1]
    right_y = y_sorted[pos + 1 :]
    parent_sse = sse(y_sorted)

    candidates = CandidateScores(
        thresholds=x_sorted[positions],
        scores=scores,
        left_means=left_means,
        right_means=right_means,
        left_counts=left_n,
        n_samples=n,
    )
    result = SplitResult(
        criterion=criterion,
        threshold=float(x_sorted[pos]),
        score=float(scores[best]),
        left_mean=float(np.mean(left_y)),
        right_mean=float(np.mean(right_y)),
        n_left=int(left_y.size),
        n_right=int(right_y.size),
        gain=variance_reduction(parent_sse, sse(left_y), sse(right_y)),
        parent_sse=parent_sse,
        predictor=predictor,
        candidates=candidates,
    )
    logger.debug(
        "%s split on %s: %d candidates, threshold=%s score=%.6g",
        criterion,
        predictor or "x",
        len(candidates),
        result.threshold,
        result.score,
    )
    return result


def find_best_split(X, y, criterion: str = SSE, **kwargs) -> Optional[SplitResult]:
    """Evaluate every column of ``X`` and return the best split across them.

    Columns without a usable split are skipped. Returns None when no column
    can be split. Extra keyword arguments go to :func:`evaluate_splits`.
    """
    X_arr, names = ensure_columns(X)
    y_arr = np.asarray(y, dtype=float).reshape(-1)
    if X_arr.shape[0] != y_arr.shape[0]:
        raise ValueError(
            f"Shape mismatch: X has {X_arr.shape[0]} samples, y has {y_arr.shape[0]}"
        )

    best: Optional[SplitResult] = None
    for j, name in enumerate(names):
        try:
            candidate = evaluate_splits(
                X_arr[:, j], y_arr, criterion=criterion, predictor=name, **kwargs
            )
        except (InsufficientDataError, DegenerateGroupError) as exc:
            logger.debug("No usable split on %s: %s", name, exc)
            continue
        if best is None or candidate.score < best.score:
            best = candidate
    return best


class SplitEvaluator:
    """Configured split search over one predictor or a table of predictors.

    Parameters
    ----------
    criterion : str
        ``'sse'`` or ``'significance'``.
    min_group_size : Optional[int]
        Minimum observations per side; None uses the criterion default.
    test : str or callable, optional
        Significance test (``'welch'``, ``'ctree'``, ``'permutation'``).
    n_permutations : int
        Relabellings used by the permutation test.
    random_state : Optional[int]
        Seed for the permutation test.
    """

    def __init__(
        self,
        criterion: str = SSE,
        min_group_size: Optional[int] = None,
        test=None,
        n_permutations: int = 999,
        random_state: Optional[int] = None,
    ) -> None:
        self.criterion = resolve_criterion(criterion)
        self.min_group_size = min_group_size
        self.test = test
        self.n_permutations = n_permutations
        self.random_state = random_state
        self._check_params()

        self.result_: Optional[SplitResult] = None

    def _check_params(self) -> None:
        if self.min_group_size is not None and int(self.min_group_size) < 1:
            raise ValueError("min_group_size must be >= 1")
        if int(self.n_permutations) < 1:
            raise ValueError("n_permutations must be >= 1")
        resolve_test(self.test, n_permutations=self.n_permutations, random_state=self.random_state)

    def _kwargs(self) -> Dict[str, Any]:
        return {
            "criterion": self.criterion,
            "min_group_size": self.min_group_size,
            "test": self.test,
            "n_permutations": self.n_permutations,
            "random_state": self.random_state,
        }

    def evaluate(self, x, y=None) -> SplitResult:
        self.result_ = evaluate_splits(x, y, **self._kwargs())
        return self.result_

    def evaluate_frame(self, X, y) -> Optional[SplitResult]:
        self.result_ = find_best_split(X, y, **self._kwargs())
        return self.result_

    def get_params(self, deep: bool = True) -> Dict[str, Any]:
        return self._kwargs()

    def set_params(self, **params) -> "SplitEvaluator":
        for key, value in params.items():
            if key not in self._kwargs():
                raise ValueError(f"Unknown parameter {key}")
            if key == "criterion":
                value = resolve_criterion(value)
            setattr(self, key, value)
        self._check_params()
        return self
