"""Unit tests for benchmark percentile scoring."""

import pytest

from dotacoach.constants import Role
from dotacoach.models.benchmarks import (
    SOURCE_BENCHMARK,
    SOURCE_DEFAULT,
    SOURCE_STATIC,
    BenchmarkEngine,
    MetricScore,
    interpolate_percentile,
    static_percentile,
)
from dotacoach.models.scoring import weights_for

CURVE = [(10, 100), (50, 300), (90, 600)]


class TestInterpolation:
    def test_exact_point(self):
        assert interpolate_percentile(300, CURVE) == 50.0

    def test_between_points(self):
        assert interpolate_percentile(450, CURVE) == pytest.approx(70.0)

    def test_below_first_point_scales_from_zero(self):
        assert interpolate_percentile(50, CURVE) == pytest.approx(5.0)
        assert interpolate_percentile(0, CURVE) == 0.0

    def test_above_last_point_extrapolates(self):
        assert interpolate_percentile(900, CURVE) == pytest.approx(95.0)

    def test_capped_at_99(self):
        assert interpolate_percentile(100000, CURVE) == 99.0

    def test_monotonic_in_value(self):
        values = [0, 25, 100, 150, 299, 300, 301, 599, 600, 700, 5000]
        percentiles = [interpolate_percentile(v, CURVE) for v in values]
        assert percentiles == sorted(percentiles)
        assert all(0 <= p <= 99 for p in percentiles)

    def test_empty_curve_rejected(self):
        with pytest.raises(ValueError):
            interpolate_percentile(1, [])


class TestStaticTable:
    def test_tiers(self):
        assert static_percentile(250, "last_hits") == 75.0
        assert static_percentile(300, "last_hits") == 95.0
        assert static_percentile(10, "last_hits") == 10.0

    def test_inverse_metric(self):
        assert static_percentile(2, "deaths") == 95.0
        assert static_percentile(8, "deaths") == 50.0
        assert static_percentile(13, "deaths") == 10.0

    def test_unknown_metric(self):
        assert static_percentile(1, "courier_kills") is None


class TestBenchmarkEngine:
    def test_score_against_distribution(self, sample_distributions):
        score = BenchmarkEngine().score(650, sample_distributions["gold_per_min"], "gold_per_min", 0.25)
        assert score.percentile == 90.0
        assert score.grade == "S"
        assert score.comparison == "Excellent"
        assert score.source == SOURCE_BENCHMARK
        assert score.weight == 0.25

    def test_static_fallback(self):
        score = BenchmarkEngine().score(250, None, "last_hits")
        assert score.percentile == 75.0
        assert score.source == SOURCE_STATIC
        assert score.interpretation.startswith("Excellent farming")

    def test_unknown_metric_is_neutral(self):
        score = BenchmarkEngine().score(3, None, "courier_kills")
        assert score.percentile == 50.0
        assert score.source == SOURCE_DEFAULT
        assert score.interpretation == "Unable to determine performance level"

    def test_percentile_rounded_for_display(self):
        score = BenchmarkEngine().score(1000, [(10, 0), (90, 3000)], "tower_damage")
        assert score.percentile == 36.7
        assert score.raw_percentile == pytest.approx(36.6667, abs=1e-3)
        assert "raw_percentile" not in score.to_dict()

    def test_score_all_uses_per_minute_alias(self, sample_carry, sample_distributions):
        scores = BenchmarkEngine().score_all(
            sample_carry, sample_distributions, weights_for(Role.CARRY), duration_minutes=35.0
        )
        assert set(scores) == {"last_hits", "gold_per_min", "hero_damage", "tower_damage", "deaths"}
        assert scores["last_hits"].value == 300.0
        assert scores["last_hits"].percentile == 99.0
        assert scores["last_hits"].source == SOURCE_BENCHMARK
        assert scores["hero_damage"].percentile == pytest.approx(92.9)
        assert scores["deaths"].source == SOURCE_STATIC

    def test_score_all_without_duration_skips_alias(self, sample_carry, sample_distributions):
        scores = BenchmarkEngine().score_all(sample_carry, sample_distributions, {"last_hits": 1.0})
        assert scores["last_hits"].source == SOURCE_STATIC
        assert scores["last_hits"].percentile == 95.0


def _metric(metric, percentile, weight=0.2):
    return MetricScore(
        metric=metric,
        value=0.0,
        percentile=percentile,
        grade="D",
        weight=weight,
        interpretation="",
        comparison="Poor",
        source=SOURCE_STATIC,
        raw_percentile=percentile,
    )


def test_recommendations_target_weakest_metrics():
    scores = {
        "obs_placed": _metric("obs_placed", 10, 0.35),
        "sen_placed": _metric("sen_placed", 40, 0.25),
        "assists": _metric("assists", 60, 0.2),
        "deaths": _metric("deaths", 30, 0.05),
    }
    points = BenchmarkEngine().recommendations(scores, Role.HARD_SUPPORT)

    assert [p.title for p in points] == ["Improve Obs Placed", "Improve Deaths", "Improve Sen Placed"]
    assert [p.priority for p in points] == [1, 2, 2]
    assert points[0].category == "Vision"
    assert "Hard Support" in points[0].description
    assert points[0].action_items[0] == "Ward before objectives"


def test_recommendations_respect_limit():
    scores = {m: _metric(m, 5) for m in ("kills", "deaths", "assists", "hero_damage")}
    assert len(BenchmarkEngine().recommendations(scores, "Mid", limit=2)) == 2
