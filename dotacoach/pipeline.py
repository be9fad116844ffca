"""Match analysis pipeline.

Wires the gateway, role detector, benchmark engine, scorer and insight
generator together for one ``(match_id, account_id)`` pair. Upstream failures
for optional inputs (benchmarks, item constants) degrade to fallbacks that are
listed on the result; a missing match or player is an error.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence
import logging

from dotacoach.config import Config
from dotacoach.constants import Role
from dotacoach.exceptions import DotaCoachError
from dotacoach.ingestion import DataGateway, opendota
from dotacoach.ingestion.gateway import BatchResult
from dotacoach.models.benchmarks import SOURCE_STATIC, BenchmarkEngine, MetricScore
from dotacoach.models.insights import (
    CoachingPoint,
    Finding,
    InsightGenerator,
    NextStep,
    OverallAssessment,
    Tip,
)
from dotacoach.models.phases import analyze_phases
from dotacoach.models.roles import RoleDetector
from dotacoach.models.scoring import PerformanceScorer, weights_for
from dotacoach.models.trends import compare_performance
from dotacoach.ops.metrics import MetricsRecorder, NullMetricsRecorder
from dotacoach.storage import CacheStore, CacheSweeper, FileCache, TTLCache

logger = logging.getLogger(__name__)


def analysis_key(match_id: int, account_id: int) -> str:
    return f"analysis:{int(match_id)}:{int(account_id)}"


@dataclass
class AnalysisResult:
    match_id: int
    account_id: int
    hero_id: int
    role: Role
    confidence: Optional[int]
    role_source: str
    metric_scores: Dict[str, MetricScore]
    overall_score: int
    overall_grade: str
    mistakes: List[Finding] = field(default_factory=list)
    strengths: List[Finding] = field(default_factory=list)
    coaching_points: List[CoachingPoint] = field(default_factory=list)
    improvement_score: int = 0
    improvement_areas: Dict[str, int] = field(default_factory=dict)
    assessment: Optional[OverallAssessment] = None
    actionable_tips: List[Tip] = field(default_factory=list)
    next_steps: List[NextStep] = field(default_factory=list)
    phases: Dict[str, Any] = field(default_factory=dict)
    won: Optional[bool] = None
    start_time: Optional[int] = None
    fallbacks: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_id": self.match_id,
            "account_id": self.account_id,
            "hero_id": self.hero_id,
            "role": self.role.value,
            "confidence": self.confidence,
            "role_source": self.role_source,
            "metric_scores": {k: v.to_dict() for k, v in self.metric_scores.items()},
            "overall_score": self.overall_score,
            "overall_grade": self.overall_grade,
            "overall_assessment": self.assessment.to_dict() if self.assessment else None,
            "mistakes": [m.to_dict() for m in self.mistakes],
            "strengths": [s.to_dict() for s in self.strengths],
            "coaching_points": [c.to_dict() for c in self.coaching_points],
            "improvement_score": self.improvement_score,
            "improvement_areas": dict(self.improvement_areas),
            "actionable_tips": [t.to_dict() for t in self.actionable_tips],
            "next_steps": [s.to_dict() for s in self.next_steps],
            "phases": self.phases,
            "won": self.won,
            "start_time": self.start_time,
            "fallbacks": list(self.fallbacks),
            "warnings": list(self.warnings),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisResult":
        def _finding(raw: Dict[str, Any]) -> Finding:
            return Finding(
                kind=raw["type"],
                category=raw["category"],
                title=raw["title"],
                description=raw["description"],
                impact=raw.get("impact", ""),
                improvement=raw.get("improvement", ""),
                priority=raw.get("priority"),
            )

        return cls(
            match_id=data["match_id"],
            account_id=data["account_id"],
            hero_id=data["hero_id"],
            role=Role.parse(data["role"]),
            confidence=data.get("confidence"),
            role_source=data["role_source"],
            metric_scores={
                metric: MetricScore(raw_percentile=raw["percentile"], **raw)
                for metric, raw in data.get("metric_scores", {}).items()
            },
            overall_score=data["overall_score"],
            overall_grade=data["overall_grade"],
            mistakes=[_finding(m) for m in data.get("mistakes", [])],
            strengths=[_finding(s) for s in data.get("strengths", [])],
            coaching_points=[
                CoachingPoint(
                    category=c["category"],
                    title=c["title"],
                    description=c["description"],
                    action_items=tuple(c.get("action_items", ())),
                    priority=c["priority"],
                    timeframe=c.get("timeframe", ""),
                )
                for c in data.get("coaching_points", [])
            ],
            improvement_score=data.get("improvement_score", 0),
            improvement_areas=dict(data.get("improvement_areas", {})),
            assessment=(
                OverallAssessment.from_dict(data["overall_assessment"])
                if data.get("overall_assessment")
                else None
            ),
            actionable_tips=[Tip.from_dict(t) for t in data.get("actionable_tips", [])],
            next_steps=[NextStep.from_dict(s) for s in data.get("next_steps", [])],
            phases=data.get("phases", {}),
            won=data.get("won"),
            start_time=data.get("start_time"),
            fallbacks=list(data.get("fallbacks", [])),
            warnings=list(data.get("warnings", [])),
        )


def merge_coaching(*groups: Iterable[CoachingPoint]) -> List[CoachingPoint]:
    """Concatenate coaching groups, drop repeated titles, sort by priority."""
    seen = set()
    merged = []
    for group in groups:
        for point in group:
            if point.title in seen:
                continue
            seen.add(point.title)
            merged.append(point)
    return sorted(merged, key=lambda p: p.priority)


def build_cache(config: Config, metrics: Optional[MetricsRecorder] = None) -> CacheStore:
    if config.cache_dir:
        return FileCache(
            config.cache_dir,
            default_ttl=config.cache_default_ttl,
            ttl_prefixes=config.cache_ttl_prefixes,
        )
    return TTLCache(
        default_ttl=config.cache_default_ttl,
        ttl_prefixes=config.cache_ttl_prefixes,
        metrics=metrics,
    )


class MatchAnalysisPipeline:
    def __init__(
        self,
        config: Config,
        cache: CacheStore,
        gateway: DataGateway,
        role_detector: Optional[RoleDetector] = None,
        benchmark_engine: Optional[BenchmarkEngine] = None,
        scorer: Optional[PerformanceScorer] = None,
        insight_generator: Optional[InsightGenerator] = None,
        sweeper: Optional[CacheSweeper] = None,
    ) -> None:
        self.config = config
        self.cache = cache
        self.gateway = gateway
        self.role_detector = role_detector or RoleDetector()
        self.benchmark_engine = benchmark_engine or BenchmarkEngine()
        self.scorer = scorer or PerformanceScorer()
        self.insight_generator = insight_generator or InsightGenerator()
        self.sweeper = sweeper or CacheSweeper(cache, interval=config.sweep_interval)

    @classmethod
    def from_config(cls, config: Config, metrics: Optional[MetricsRecorder] = None) -> "MatchAnalysisPipeline":
        metrics = metrics or NullMetricsRecorder()
        cache = build_cache(config, metrics)
        gateway = DataGateway(config, cache, metrics=metrics)
        return cls(config, cache, gateway)

    def __enter__(self) -> "MatchAnalysisPipeline":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def start(self) -> None:
        self.sweeper.start()

    def close(self) -> None:
        self.sweeper.stop()
        self.gateway.close()

    def analyze(self, match_id: int, account_id: int, use_cache: bool = True) -> AnalysisResult:
        if not use_cache:
            return self._analyze(match_id, account_id)
        payload = self.cache.get_or_set(
            analysis_key(match_id, account_id),
            lambda: self._analyze(match_id, account_id).to_dict(),
            ttl=self.config.analysis_ttl,
        )
        return AnalysisResult.from_dict(payload)

    def warm(self, match_ids: Iterable[int]) -> List[BatchResult]:
        return opendota.warm_matches(self.gateway, match_ids)

    def trends(self, match_ids: Sequence[int], account_id: int) -> Dict[str, Any]:
        """Analyze each match and summarize percentiles oldest first."""
        analyses: List[AnalysisResult] = []
        failed: Dict[str, str] = {}
        for match_id in match_ids:
            try:
                analyses.append(self.analyze(match_id, account_id))
            except DotaCoachError as exc:
                logger.warning("Skipping match %s in trends: %s", match_id, exc)
                failed[str(match_id)] = str(exc)

        analyses.sort(key=lambda a: (a.start_time or 0, a.match_id))
        return {
            "account_id": account_id,
            "matches": [a.match_id for a in analyses],
            "failed": failed,
            "metrics": compare_performance(analyses),
        }

    def _load_item_names(self, fallbacks: List[str]) -> Dict[int, str]:
        try:
            return opendota.item_names_by_id(opendota.fetch_item_constants(self.gateway))
        except DotaCoachError as exc:
            logger.warning("Item constants unavailable, support items not counted: %s", exc)
            fallbacks.append(f"item_constants: {exc}")
            return {}

    def _load_distributions(self, hero_id: int, fallbacks: List[str]) -> Dict[str, Any]:
        if not hero_id:
            fallbacks.append("benchmarks: hero unknown")
            return {}
        try:
            return opendota.fetch_benchmark_distributions(self.gateway, hero_id)
        except DotaCoachError as exc:
            logger.warning("Benchmarks for hero %s unavailable, using static tables: %s", hero_id, exc)
            fallbacks.append(f"benchmarks: {exc}")
            return {}

    def _analyze(self, match_id: int, account_id: int) -> AnalysisResult:
        match = opendota.fetch_match_record(self.gateway, match_id)
        player = match.player_for_account(account_id)
        fallbacks: List[str] = []
        warnings: List[str] = []

        item_names = self._load_item_names(fallbacks)
        distributions = self._load_distributions(player.hero_id, fallbacks)

        detection = self.role_detector.detect(player, match, item_names)
        weights = weights_for(detection.role)
        metric_scores = self.benchmark_engine.score_all(
            player,
            distributions,
            weights,
            duration_minutes=match.duration_minutes,
        )
        if distributions:
            for metric, score in metric_scores.items():
                if score.source == SOURCE_STATIC:
                    warnings.append(f"{metric}: no benchmark series, static table used")
        overall = self.scorer.score(metric_scores, weights)

        insights = self.insight_generator.generate(player, match, detection.role)
        coaching = merge_coaching(
            self.benchmark_engine.recommendations(metric_scores, detection.role),
            insights.coaching_points,
        )

        if not player.lh_t:
            warnings.append("no per-minute series; laning progression is empty")
        try:
            phases = analyze_phases(player, match, detection.role)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Phase analysis failed for match %s: %s", match_id, exc)
            fallbacks.append(f"phases: {exc}")
            phases = {}

        logger.info(
            "Analyzed match %s for %s: %s %s (%d)",
            match_id,
            account_id,
            detection.role.value,
            overall.grade,
            overall.score,
        )
        return AnalysisResult(
            match_id=match.match_id,
            account_id=int(account_id),
            hero_id=player.hero_id,
            role=detection.role,
            confidence=detection.confidence,
            role_source=detection.source,
            metric_scores=metric_scores,
            overall_score=overall.score,
            overall_grade=overall.grade,
            mistakes=insights.mistakes,
            strengths=insights.strengths,
            coaching_points=coaching,
            improvement_score=insights.improvement_score,
            improvement_areas=insights.improvement_areas,
            assessment=insights.assessment,
            actionable_tips=insights.actionable_tips,
            next_steps=insights.next_steps,
            phases=phases,
            won=match.player_won(player),
            start_time=match.start_time,
            fallbacks=fallbacks,
            warnings=warnings,
        )


__all__ = [
    "AnalysisResult",
    "MatchAnalysisPipeline",
    "analysis_key",
    "build_cache",
    "merge_coaching",
]
