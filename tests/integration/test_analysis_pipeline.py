"""Integration tests for the full analysis pipeline.

Runs the real gateway, cache, detector, engine and insight generator against
a stubbed HTTP session serving OpenDota-shaped payloads.
"""

import pytest

from dotacoach.constants import Role
from dotacoach.exceptions import NotFoundError
from dotacoach.pipeline import AnalysisResult, MatchAnalysisPipeline, analysis_key, merge_coaching
from dotacoach.models.insights import CoachingPoint
from tests.fixtures.sample_api_responses import (
    SAMPLE_ACCOUNT_ID,
    SAMPLE_MATCH_ID,
    get_sample_match,
    with_player_overrides,
)
from tests.mocks import StubResponse


@pytest.fixture
def pipeline(config, cache, gateway):
    return MatchAnalysisPipeline(config, cache, gateway)


class TestMatchAnalysis:
    """End to end analysis of the sample radiant carry."""

    def test_full_analysis(self, pipeline):
        result = pipeline.analyze(SAMPLE_MATCH_ID, SAMPLE_ACCOUNT_ID)

        assert isinstance(result, AnalysisResult)
        assert result.role == Role.CARRY
        assert result.role_source == "heuristic"
        assert result.confidence is None
        assert result.won is True
        assert result.overall_score == 94
        assert result.overall_grade == "S"
        assert result.metric_scores["gold_per_min"].percentile == 90.0
        assert result.metric_scores["last_hits"].percentile == 99.0
        assert result.metric_scores["tower_damage"].percentile == pytest.approx(91.7)
        assert result.fallbacks == []
        assert result.warnings == ["deaths: no benchmark series, static table used"]

    def test_insights_and_phases(self, pipeline):
        result = pipeline.analyze(SAMPLE_MATCH_ID, SAMPLE_ACCOUNT_ID)

        assert result.mistakes == []
        assert result.strengths[0].title == "Excellent KDA Ratio"
        assert [c.title for c in result.coaching_points] == ["Farm Between Waves", "Minimap Habit"]
        assert result.improvement_score == 83
        assert result.assessment.result == "Victory"
        assert result.assessment.impact_score == 100
        assert result.assessment.grade == "S"
        assert [t.category for t in result.actionable_tips] == ["Map Awareness", "Farming"]
        assert len(result.next_steps) == 3
        assert result.phases["laning"]["outcome"] == "Drew"
        assert result.phases["combat"]["efficiency"]["kill_participation"] == 72

    def test_result_serializes_to_plain_json_types(self, pipeline):
        data = pipeline.analyze(SAMPLE_MATCH_ID, SAMPLE_ACCOUNT_ID).to_dict()
        assert data["role"] == "Carry"
        assert data["metric_scores"]["deaths"]["source"] == "static"
        assert data["mistakes"] == []
        assert "raw_percentile" not in data["metric_scores"]["gold_per_min"]
        assert data["overall_assessment"]["kda"] == "10/2/8"
        assert data["actionable_tips"][0]["tip"] == "Check minimap every 3-5 seconds"
        assert data["next_steps"][0]["timeframe"] == "Short-term (1-2 weeks)"
        assert AnalysisResult.from_dict(data).to_dict() == data

    def test_lane_role_hint_sets_confidence(self, config, cache, gateway, opendota_session):
        payload = with_player_overrides(get_sample_match(), 0, lane_role=1)
        opendota_session.add(f"/matches/{SAMPLE_MATCH_ID}", StubResponse(200, payload))
        result = MatchAnalysisPipeline(config, cache, gateway).analyze(SAMPLE_MATCH_ID, SAMPLE_ACCOUNT_ID)
        assert result.role == Role.CARRY
        assert result.confidence == 85
        assert result.role_source == "hint"


class TestCaching:
    def test_second_analysis_served_from_cache(self, pipeline, cache, opendota_session):
        first = pipeline.analyze(SAMPLE_MATCH_ID, SAMPLE_ACCOUNT_ID)
        second = pipeline.analyze(SAMPLE_MATCH_ID, SAMPLE_ACCOUNT_ID)

        assert first.to_dict() == second.to_dict()
        assert cache.has(analysis_key(SAMPLE_MATCH_ID, SAMPLE_ACCOUNT_ID))
        assert opendota_session.calls_to(f"/matches/{SAMPLE_MATCH_ID}") == 1
        assert opendota_session.calls_to("/benchmarks") == 1

    def test_upstream_payloads_cached_when_analysis_bypasses_cache(self, pipeline, opendota_session):
        pipeline.analyze(SAMPLE_MATCH_ID, SAMPLE_ACCOUNT_ID, use_cache=False)
        pipeline.analyze(SAMPLE_MATCH_ID, SAMPLE_ACCOUNT_ID, use_cache=False)
        assert opendota_session.calls_to(f"/matches/{SAMPLE_MATCH_ID}") == 1

    def test_analysis_expires_with_ttl(self, pipeline, clock, opendota_session):
        pipeline.analyze(SAMPLE_MATCH_ID, SAMPLE_ACCOUNT_ID)
        clock.advance(pipeline.config.analysis_ttl + 1)
        pipeline.analyze(SAMPLE_MATCH_ID, SAMPLE_ACCOUNT_ID)
        # match payload lives longer than the analysis
        assert opendota_session.calls_to(f"/matches/{SAMPLE_MATCH_ID}") == 1
        assert opendota_session.calls_to("/benchmarks") == 1


class TestDegradation:
    """Optional inputs failing upstream fall back instead of aborting."""

    def test_benchmarks_unavailable_uses_static_tables(self, pipeline, opendota_session):
        opendota_session.add("/benchmarks", StubResponse(500, None, reason="Internal Server Error"))
        result = pipeline.analyze(SAMPLE_MATCH_ID, SAMPLE_ACCOUNT_ID)

        assert len(result.fallbacks) == 1
        assert result.fallbacks[0].startswith("benchmarks:")
        assert {s.source for s in result.metric_scores.values()} == {"static"}
        assert result.overall_score == 88
        assert result.overall_grade == "A"
        assert result.warnings == []

    def test_item_constants_unavailable(self, pipeline, opendota_session):
        opendota_session.add("/constants/items", StubResponse(502, None, reason="Bad Gateway"))
        result = pipeline.analyze(SAMPLE_MATCH_ID, SAMPLE_ACCOUNT_ID)
        assert result.fallbacks[0].startswith("item_constants:")
        assert result.role == Role.CARRY

    def test_missing_series_warns(self, config, cache, gateway, opendota_session):
        payload = with_player_overrides(get_sample_match(), 0, lh_t=None, xp_t=None, gold_t=None, dn_t=None)
        opendota_session.add(f"/matches/{SAMPLE_MATCH_ID}", StubResponse(200, payload))
        result = MatchAnalysisPipeline(config, cache, gateway).analyze(SAMPLE_MATCH_ID, SAMPLE_ACCOUNT_ID)
        assert "no per-minute series; laning progression is empty" in result.warnings
        assert result.phases["laning"]["progression"]["last_hits"] == []

    def test_player_not_in_match(self, pipeline, cache):
        with pytest.raises(NotFoundError):
            pipeline.analyze(SAMPLE_MATCH_ID, 424242)
        assert not cache.has(analysis_key(SAMPLE_MATCH_ID, 424242))

    def test_unknown_match(self, pipeline):
        with pytest.raises(NotFoundError):
            pipeline.analyze(1, SAMPLE_ACCOUNT_ID)


class TestBatchOperations:
    def test_warm_prefetches_matches(self, pipeline, cache):
        results = pipeline.warm([SAMPLE_MATCH_ID, 1])
        assert [r.success for r in results] == [True, False]
        assert cache.has(f"/matches/{SAMPLE_MATCH_ID}")

    def test_trends_skips_failed_matches(self, pipeline):
        summary = pipeline.trends([SAMPLE_MATCH_ID, 1], SAMPLE_ACCOUNT_ID)

        assert summary["account_id"] == SAMPLE_ACCOUNT_ID
        assert summary["matches"] == [SAMPLE_MATCH_ID]
        assert list(summary["failed"]) == ["1"]
        assert summary["metrics"]["gold_per_min"]["current"] == 90.0
        assert summary["metrics"]["overall_score"]["current"] == 94.0
        assert summary["metrics"]["overall_score"]["trend"] == "stable"

    def test_pipeline_context_manager_closes_gateway(self, config, cache, gateway, opendota_session):
        with MatchAnalysisPipeline(config, cache, gateway) as pipeline:
            assert pipeline.sweeper.running
        assert not pipeline.sweeper.running
        assert opendota_session.closed


def test_merge_coaching_dedupes_and_sorts():
    a = CoachingPoint(category="Vision", title="Ward More", description="", priority=2)
    b = CoachingPoint(category="Vision", title="Ward More", description="dup", priority=1)
    c = CoachingPoint(category="Farming", title="Farm", description="", priority=1)
    merged = merge_coaching([a], [b, c])
    assert [(p.title, p.description) for p in merged] == [("Farm", ""), ("Ward More", "")]
