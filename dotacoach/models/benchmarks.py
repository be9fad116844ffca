"""Percentile scoring of raw metrics against hero benchmark distributions.

When OpenDota has a distribution for the metric, the value is interpolated
along its ``(percentile, value)`` curve. Otherwise a static four-tier table
is used, and metrics with neither get a neutral 50.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union
import logging

from dotacoach.constants import (
    BENCHMARK_ALIASES,
    EXTRAPOLATION_BONUS,
    GENERIC_INTERPRETATION,
    INTERPRETATIONS,
    METRIC_CATEGORIES,
    METRIC_RECOMMENDATIONS,
    PERCENTILE_CAP,
    STATIC_BENCHMARKS,
    STATIC_TIER_PERCENTILES,
    UNKNOWN_INTERPRETATION,
    Role,
)
from dotacoach.models.grading import comparison_for_percentile, grade_for_percentile, tier_for_percentile
from dotacoach.models.insights import CoachingPoint
from dotacoach.normalization import BenchmarkDistribution, BenchmarkPoint, PlayerRecord

logger = logging.getLogger(__name__)

SOURCE_BENCHMARK = "benchmark"
SOURCE_STATIC = "static"
SOURCE_DEFAULT = "default"

DistributionLike = Union[BenchmarkDistribution, Sequence[Tuple[float, float]], Sequence[BenchmarkPoint]]


@dataclass(frozen=True)
class MetricScore:
    metric: str
    value: float
    percentile: float
    grade: str
    weight: float
    interpretation: str
    comparison: str
    source: str
    raw_percentile: float = field(default=0.0, repr=False, compare=False)

    def to_dict(self) -> Dict[str, object]:
        return {
            "metric": self.metric,
            "value": self.value,
            "percentile": self.percentile,
            "grade": self.grade,
            "weight": self.weight,
            "interpretation": self.interpretation,
            "comparison": self.comparison,
            "source": self.source,
        }


def _points(distribution: Optional[DistributionLike]) -> List[BenchmarkPoint]:
    if distribution is None:
        return []
    raw = distribution.points if isinstance(distribution, BenchmarkDistribution) else distribution
    points = []
    for item in raw:
        if isinstance(item, BenchmarkPoint):
            points.append(item)
        else:
            percentile, value = item
            points.append(BenchmarkPoint(percentile=float(percentile), value=float(value)))
    return points


def interpolate_percentile(value: float, distribution: DistributionLike) -> float:
    """Percentile of ``value`` on an ordered ``(percentile, value)`` curve.

    Below the first point the percentile scales linearly from 0. Above the
    last point it grows by ``EXTRAPOLATION_BONUS`` points per 100% over the top
    value. The result is always within ``[0, PERCENTILE_CAP]``.
    """
    points = _points(distribution)
    if not points:
        raise ValueError("empty distribution")

    result: Optional[float] = None
    for index, point in enumerate(points):
        if point.value < value:
            continue
        if index == 0:
            if point.value > 0:
                result = min(point.percentile, value / point.value * point.percentile)
            else:
                result = 0.0 if value < point.value else point.percentile
        else:
            prev = points[index - 1]
            span = point.value - prev.value
            ratio = (value - prev.value) / span if span > 0 else 1.0
            result = prev.percentile + ratio * (point.percentile - prev.percentile)
        break

    if result is None:
        top = points[-1]
        if top.value > 0:
            result = top.percentile + (value - top.value) / top.value * EXTRAPOLATION_BONUS
        else:
            result = top.percentile
        result = min(PERCENTILE_CAP, result)

    return max(0.0, min(PERCENTILE_CAP, result))


def static_percentile(value: float, metric: str) -> Optional[float]:
    """Tier bucket from the static table, or None for unknown metrics."""
    table = STATIC_BENCHMARKS.get(metric)
    if table is None:
        return None
    inverse = bool(table.get("inverse", False))
    for tier in ("excellent", "good", "average", "poor"):
        threshold = table[tier]
        if (value <= threshold) if inverse else (value >= threshold):
            return float(STATIC_TIER_PERCENTILES[tier])
    return float(STATIC_TIER_PERCENTILES["below"])


def interpretation_for(metric: str, percentile: float) -> str:
    texts = INTERPRETATIONS.get(metric, GENERIC_INTERPRETATION)
    return texts[tier_for_percentile(percentile)]


def _label(metric: str) -> str:
    return metric.replace("_per_min", " per minute").replace("_", " ").title()


class BenchmarkEngine:
    def score(
        self,
        value: float,
        distribution: Optional[DistributionLike],
        metric: str,
        weight: float = 1.0,
    ) -> MetricScore:
        value = float(value)
        points = _points(distribution)
        if points:
            percentile = interpolate_percentile(value, points)
            source = SOURCE_BENCHMARK
        else:
            static = static_percentile(value, metric)
            if static is None:
                return MetricScore(
                    metric=metric,
                    value=value,
                    percentile=50.0,
                    grade=grade_for_percentile(50.0),
                    weight=weight,
                    interpretation=UNKNOWN_INTERPRETATION,
                    comparison=comparison_for_percentile(50.0),
                    source=SOURCE_DEFAULT,
                    raw_percentile=50.0,
                )
            percentile = static
            source = SOURCE_STATIC

        return MetricScore(
            metric=metric,
            value=value,
            percentile=round(percentile, 1),
            grade=grade_for_percentile(percentile),
            weight=weight,
            interpretation=interpretation_for(metric, percentile),
            comparison=comparison_for_percentile(percentile),
            source=source,
            raw_percentile=percentile,
        )

    def score_all(
        self,
        player: PlayerRecord,
        distributions: Optional[Mapping[str, BenchmarkDistribution]],
        weights: Mapping[str, float],
        duration_minutes: Optional[float] = None,
    ) -> Dict[str, MetricScore]:
        """Score every weighted metric for ``player``.

        A metric without its own distribution can use a per-minute series
        (``last_hits_per_min`` for ``last_hits``), comparing the player's
        total divided by match minutes.
        """
        distributions = distributions or {}
        scores: Dict[str, MetricScore] = {}
        for metric, weight in weights.items():
            value = player.metric(metric)
            distribution = distributions.get(metric)
            if distribution is None and metric in BENCHMARK_ALIASES and duration_minutes:
                alias, per_minute = BENCHMARK_ALIASES[metric]
                alias_distribution = distributions.get(alias)
                if alias_distribution is not None:
                    scaled = value / duration_minutes if per_minute else value
                    score = self.score(scaled, alias_distribution, metric, weight)
                    scores[metric] = MetricScore(
                        metric=metric,
                        value=value,
                        percentile=score.percentile,
                        grade=score.grade,
                        weight=weight,
                        interpretation=score.interpretation,
                        comparison=score.comparison,
                        source=score.source,
                        raw_percentile=score.raw_percentile,
                    )
                    continue
            scores[metric] = self.score(value, distribution, metric, weight)
        return scores

    def recommendations(
        self,
        metric_scores: Mapping[str, MetricScore],
        role: Union[Role, str],
        limit: int = 3,
    ) -> List[CoachingPoint]:
        """Coaching for the weakest weighted metrics below the 50th percentile."""
        role = Role.parse(role)
        weak = sorted(
            (s for s in metric_scores.values() if s.weight > 0 and s.raw_percentile < 50),
            key=lambda s: (s.raw_percentile, -s.weight),
        )
        points = []
        for score in weak[:limit]:
            advice = METRIC_RECOMMENDATIONS.get(score.metric)
            if advice is None:
                continue
            points.append(
                CoachingPoint(
                    category=METRIC_CATEGORIES.get(score.metric, "General"),
                    title=f"Improve {_label(score.metric)}",
                    description=(
                        f"{advice['suggestion']} ({score.comparison.lower()} for a "
                        f"{role.value} at the {score.percentile:g}th percentile)"
                    ),
                    action_items=tuple(advice["actionable"]),
                    priority=1 if score.raw_percentile < 25 else 2,
                    timeframe=str(advice.get("timeframe", "")),
                )
            )
        return points
