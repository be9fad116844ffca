"""Unit tests for grading and role-weighted scoring."""

import pytest

from dotacoach.constants import Role
from dotacoach.models.grading import (
    comparison_for_percentile,
    grade_for_percentile,
    round_half_up,
    tier_for_percentile,
)
from dotacoach.models.scoring import PerformanceScorer, weights_for


@pytest.mark.parametrize(
    "percentile, grade",
    [(99, "S"), (90, "S"), (89.9, "A"), (80, "A"), (70, "B"), (50, "C"), (49.9, "D"), (0, "D")],
)
def test_grade_boundaries(percentile, grade):
    assert grade_for_percentile(percentile) == grade


def test_comparison_and_tier_labels():
    assert comparison_for_percentile(95) == "Exceptional"
    assert comparison_for_percentile(61) == "Above Average"
    assert comparison_for_percentile(5) == "Very Poor"
    assert tier_for_percentile(75) == "high"
    assert tier_for_percentile(40) == "medium"
    assert tier_for_percentile(39.9) == "low"


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(93.5) == 94
    assert round_half_up(93.49) == 93


def test_role_weights_sum_to_one():
    for role in Role:
        assert sum(weights_for(role).values()) == pytest.approx(1.0)
    assert weights_for("hard_support") == weights_for(Role.HARD_SUPPORT)


def test_weighted_mean_ignores_unscored_metrics():
    scorer = PerformanceScorer()
    result = scorer.score(
        {"gold_per_min": 80, "last_hits": 60},
        {"gold_per_min": 0.5, "last_hits": 0.5, "deaths": 0.2},
    )
    assert result.score == 70
    assert result.grade == "B"


def test_half_rounds_up():
    assert PerformanceScorer().score({"x": 70.5}, {"x": 1.0}).score == 71


def test_no_weight_scores_zero():
    result = PerformanceScorer().score({"x": 90}, {"y": 1.0})
    assert result.to_dict() == {"score": 0, "grade": "D"}


@pytest.mark.parametrize("role", list(Role))
@pytest.mark.parametrize("percentile", [0, 50, 77.4, 99])
def test_equal_percentiles_score_that_percentile(role, percentile):
    weights = weights_for(role)
    result = PerformanceScorer().score({metric: percentile for metric in weights}, weights)
    assert result.score == round_half_up(percentile)
    assert result.grade == grade_for_percentile(result.score)
