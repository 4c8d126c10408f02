import numpy as np
import pandas as pd
import pytest

from pySplit import DegenerateGroupError, InsufficientDataError, evaluate_splits
from pySplit.metrics import sse
from pySplit.utils import candidate_positions, first_minimum, sse_from_stats


CARS = [(10000, 12000), (15000, 11000), (20000, 9000), (25000, 8500)]


def _brute_force_sse(x, y, threshold):
    left = y[x <= threshold]
    right = y[x > threshold]
    return sse(left) + sse(right)


def test_four_car_example_picks_lowest_sse():
    result = evaluate_splits(CARS, criterion="sum-of-squares-error")

    assert [c.threshold for c in result.candidates] == [10000.0, 15000.0, 20000.0]
    assert [c.score for c in result.candidates] == pytest.approx([3.5e6, 625000.0, 4666666.667])
    assert result.threshold == 15000.0
    assert result.score == pytest.approx(625000.0)
    assert result.left_mean == pytest.approx(11500.0)
    assert result.right_mean == pytest.approx(8750.0)
    assert (result.n_left, result.n_right) == (2, 2)


def test_sse_is_minimal_over_brute_force():
    rng = np.random.default_rng(0)
    x = rng.uniform(0, 100, size=60)
    y = np.where(x > 40, 3.0, 1.0) + rng.normal(0, 0.5, size=60)

    result = evaluate_splits(x, y)
    brute = [_brute_force_sse(x, y, c.threshold) for c in result.candidates]

    assert [c.score for c in result.candidates] == pytest.approx(brute)
    assert result.score <= min(brute) + 1e-9
    assert result.score == pytest.approx(_brute_force_sse(x, y, result.threshold))


def test_means_match_partition():
    rng = np.random.default_rng(1)
    x = rng.integers(0, 10, size=40).astype(float)
    y = rng.normal(size=40)

    result = evaluate_splits(x, y)
    assert result.left_mean == pytest.approx(y[x <= result.threshold].mean())
    assert result.right_mean == pytest.approx(y[x > result.threshold].mean())
    assert result.n_left + result.n_right == 40
    for c in result.candidates:
        assert c.left_mean == pytest.approx(y[x <= c.threshold].mean())
        assert c.right_mean == pytest.approx(y[x > c.threshold].mean())


def test_threshold_inside_observed_range():
    rng = np.random.default_rng(2)
    x = rng.normal(size=30)
    y = rng.normal(size=30)

    for criterion in ("sse", "significance"):
        result = evaluate_splits(x, y, criterion=criterion)
        assert x.min() <= result.threshold < x.max()
        assert result.threshold in set(x)


def test_evaluation_is_idempotent():
    rng = np.random.default_rng(3)
    x = rng.uniform(size=25)
    y = rng.normal(size=25)

    first = evaluate_splits(x, y)
    second = evaluate_splits(x, y)
    assert first == second
    assert list(first.candidates) == list(second.candidates)


def test_candidates_can_be_iterated_again():
    result = evaluate_splits(CARS)
    assert list(result.candidates) == list(result.candidates)
    assert len(result.candidates) == 3
    assert result.candidates[-1].threshold == 20000.0


def test_candidates_to_frame():
    frame = evaluate_splits(CARS).candidates.to_frame()
    assert list(frame.columns) == ["threshold", "score", "left_mean", "right_mean", "n_left", "n_right"]
    assert frame["n_left"].tolist() == [1, 2, 3]
    assert frame["n_right"].tolist() == [3, 2, 1]


def test_ties_prefer_smallest_threshold():
    result = evaluate_splits([1.0, 2.0, 3.0, 4.0], [0.0, 1.0, 0.0, 1.0])
    assert result.candidates[0].score == pytest.approx(result.candidates[2].score)
    assert result.threshold == 1.0


def test_min_group_size_two_drops_edge_candidates():
    x = np.arange(1.0, 9.0)
    y = np.array([5.0, 4.0, 6.0, 5.5, 1.0, 2.0, 1.5, 0.5])

    result = evaluate_splits(x, y, criterion="significance", min_group_size=2)
    assert [c.threshold for c in result.candidates] == [2.0, 3.0, 4.0, 5.0, 6.0]
    assert all(c.n_left >= 2 and c.n_right >= 2 for c in result.candidates)


def test_repeated_predictor_values_share_a_side():
    x = [1.0, 1.0, 2.0, 2.0, 3.0]
    y = [1.0, 1.2, 5.0, 5.2, 5.1]

    result = evaluate_splits(x, y)
    assert [c.threshold for c in result.candidates] == [1.0, 2.0]
    assert result.threshold == 1.0
    assert result.n_left == 2


def test_identical_predictor_values_fail():
    with pytest.raises(InsufficientDataError):
        evaluate_splits([3.0, 3.0, 3.0, 3.0], [1.0, 2.0, 3.0, 4.0])


def test_too_few_observations_fail():
    with pytest.raises(InsufficientDataError):
        evaluate_splits([1.0, 2.0, 3.0], [1.0, 2.0, 3.0], criterion="significance")
    with pytest.raises(InsufficientDataError):
        evaluate_splits([], [])


def test_no_candidate_with_enough_observations_fails():
    with pytest.raises(DegenerateGroupError):
        evaluate_splits([1.0, 1.0, 1.0, 2.0], [1.0, 2.0, 3.0, 4.0], criterion="significance")


def test_invalid_arguments():
    with pytest.raises(ValueError):
        evaluate_splits(CARS, criterion="gini")
    with pytest.raises(ValueError):
        evaluate_splits(CARS, min_group_size=0)
    with pytest.raises(ValueError):
        evaluate_splits([1.0, 2.0], [1.0])
    with pytest.raises(ValueError):
        evaluate_splits([1.0, np.nan, 3.0], [1.0, 2.0, 3.0])


def test_inputs_are_not_mutated():
    x = np.array([4.0, 1.0, 3.0, 2.0])
    y = np.array([1.0, 2.0, 3.0, 4.0])
    evaluate_splits(x, y)
    assert x.tolist() == [4.0, 1.0, 3.0, 2.0]
    assert y.tolist() == [1.0, 2.0, 3.0, 4.0]


def test_series_name_becomes_predictor():
    frame = pd.DataFrame(CARS, columns=["mileage", "price"])
    result = evaluate_splits(frame["mileage"], frame["price"])
    assert result.predictor == "mileage"
    assert result.to_dict()["n_candidates"] == 3


def test_gain_and_r_squared():
    result = evaluate_splits(CARS)
    assert result.gain == pytest.approx(result.parent_sse - result.score)
    assert 0.0 <= result.r_squared <= 1.0


def test_helpers():
    x_sorted = np.array([1.0, 1.0, 2.0, 3.0, 3.0, 4.0])
    assert candidate_positions(x_sorted, 1).tolist() == [1, 2, 4]
    assert candidate_positions(x_sorted, 2).tolist() == [1, 2]
    assert first_minimum(np.array([3.0, 1.0, 2.0, 1.0])) == 1
    assert sse_from_stats([6.0, 1.0], [14.0, 1.0], [3, 1]).tolist() == pytest.approx([2.0, 0.0])
    assert sse_from_stats(1.0, 0.9, 1) == 0.0
