"""pySplit: single-predictor split search for regression trees.

Scores every admissible threshold of a numeric predictor either by the
within-group sum of squared errors (as CART and AID do) or by the p-value of
a two-sample test (an approximation of conditional-inference trees).
"""

from .exceptions import DegenerateGroupError, InsufficientDataError, SplitError
from .significance import PermutationTest, conditional_inference_test, welch_t_test
from .splits import (
    CandidateScores,
    SplitEvaluation,
    SplitEvaluator,
    SplitResult,
    evaluate_splits,
    find_best_split,
)

__all__ = [
    "CandidateScores",
    "DegenerateGroupError",
    "InsufficientDataError",
    "PermutationTest",
    "SplitError",
    "SplitEvaluation",
    "SplitEvaluator",
    "SplitResult",
    "conditional_inference_test",
    "evaluate_splits",
    "find_best_split",
    "welch_t_test",
]
