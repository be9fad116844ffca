import pytest

from dotacoach.models.trends import (
    compare_performance,
    consistency,
    improvement_slope,
    trend_direction,
)


def test_trend_direction():
    assert trend_direction([50] * 5 + [70] * 5) == "improving"
    assert trend_direction([70] * 5 + [50] * 5) == "declining"
    assert trend_direction([50] * 5 + [55] * 5) == "stable"
    assert trend_direction([10, 90]) == "stable"


def test_consistency():
    assert consistency([50]) == 100
    assert consistency([50, 50]) == 100
    assert consistency([40, 60]) == 90


def test_improvement_slope():
    assert improvement_slope([10, 20]) == 0.0
    assert improvement_slope([10, 20, 30]) == pytest.approx(10.0)


def test_compare_performance_from_dicts():
    results = [
        {"metric_scores": {"gold_per_min": {"percentile": 40.0}}, "overall_score": 45},
        {"metric_scores": {"gold_per_min": {"percentile": 60.0}}, "overall_score": 55},
        {"metric_scores": {"gold_per_min": {"percentile": 80.0}}, "overall_score": 65},
    ]
    summary = compare_performance(results)
    assert summary["gold_per_min"]["current"] == 80.0
    assert summary["gold_per_min"]["average"] == 60.0
    assert summary["gold_per_min"]["improvement"] == pytest.approx(20.0)
    assert summary["gold_per_min"]["matches"] == 3
    assert summary["overall_score"]["current"] == 65.0


def test_compare_performance_empty():
    assert compare_performance([]) == {}
