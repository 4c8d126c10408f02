"""Two-sample tests used to score candidate splits by significance.

Every test takes the response values of the left and right groups and
returns a p-value; a smaller p-value means a stronger split. Any callable
with that signature can be passed wherever a test is expected.
"""

from __future__ import annotations

from typing import Callable, Union

import numpy as np
from scipy import stats

StatisticalTest = Callable[[np.ndarray, np.ndarray], float]


def welch_t_test(left, right) -> float:
    """Two-sided Welch t-test p-value.

    Two constant groups are perfectly separated when their values differ
    (p = 0) and indistinguishable otherwise (p = 1). Groups with a single
    observation have no variance estimate and score p = 1.
    """
    left = np.asarray(left, dtype=float)
    right = np.asarray(right, dtype=float)
    if left.size < 2 or right.size < 2:
        return 1.0
    if np.ptp(left) == 0 and np.ptp(right) == 0:
        return 0.0 if left[0] != right[0] else 1.0

    p_value = float(stats.ttest_ind(left, right, equal_var=False).pvalue)
    return p_value if np.isfinite(p_value) else 1.0


def _centered_statistic(left: np.ndarray, y: np.ndarray) -> float:
    # T = sum of left responses minus its conditional expectation n_left * mean(y).
    return float(left.sum() - left.size * y.mean())


def conditional_inference_test(left, right) -> float:
    """Asymptotic conditional-inference test for a binary partition.

    Uses the linear statistic of Hothorn, Hornik & Zeileis (2006) with the
    identity influence function. Under the permutation null its conditional
    variance is ``var(y) * n_left * n_right / (n - 1)`` (population variance),
    and the squared standardized statistic is referred to chi-square(1).
    """
    left = np.asarray(left, dtype=float)
    right = np.asarray(right, dtype=float)
    y = np.concatenate([left, right])
    n = y.size
    if left.size == 0 or right.size == 0 or n < 2:
        return 1.0

    variance = float(y.var() * left.size * right.size / (n - 1))
    if variance <= 0.0:
        return 1.0
    t = _centered_statistic(left, y)
    return float(stats.chi2.sf(t * t / variance, df=1))


class PermutationTest:
    """Monte-Carlo conditional-inference test.

    Parameters
    ----------
    n_permutations : int
        Number of random relabellings of the responses.
    random_state : int | numpy.random.Generator | None
        Seed or generator; None means seed 0, so results never depend on
        OS entropy. The generator is created once, so repeated calls on the
        same instance draw fresh permutations.
    """

    def __init__(self, n_permutations: int = 999, random_state=0) -> None:
        if int(n_permutations) < 1:
            raise ValueError("n_permutations must be >= 1")
        self.n_permutations = int(n_permutations)
        self.random_state = random_state
        self._rng = np.random.default_rng(0 if random_state is None else random_state)

    def __call__(self, left, right) -> float:
        left = np.asarray(left, dtype=float)
        right = np.asarray(right, dtype=float)
        y = np.concatenate([left, right])
        n_left = left.size
        if n_left == 0 or right.size == 0:
            return 1.0

        observed = abs(_centered_statistic(left, y))
        center = n_left * y.mean()
        shuffled = self._rng.permuted(np.tile(y, (self.n_permutations, 1)), axis=1)
        permuted = np.abs(shuffled[:, :n_left].sum(axis=1) - center)

        exceed = int(np.count_nonzero(permuted >= observed * (1.0 - 1e-12)))
        return (1.0 + exceed) / (1.0 + self.n_permutations)

    def __repr__(self) -> str:
        return f"PermutationTest(n_permutations={self.n_permutations}, random_state={self.random_state!r})"


TESTS = ("welch", "ctree", "permutation")


def resolve_test(
    test: Union[str, StatisticalTest, None] = None,
    n_permutations: int = 999,
    random_state=None,
) -> StatisticalTest:
    """Turn a test name (or a callable) into a statistical test."""
    if test is None or test == "welch":
        return welch_t_test
    if callable(test):
        return test
    if test == "ctree":
        return conditional_inference_test
    if test == "permutation":
        return PermutationTest(n_permutations=n_permutations, random_state=random_state)
    raise ValueError(f"Unknown test {test!r}; expected one of {TESTS} or a callable")
