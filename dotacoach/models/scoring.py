"""Role-weighted overall score."""

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Union

from dotacoach.constants import ROLE_METRIC_WEIGHTS, Role
from dotacoach.models.grading import grade_for_percentile, round_half_up


@dataclass(frozen=True)
class OverallScore:
    score: int
    grade: str

    def to_dict(self) -> Dict[str, object]:
        return {"score": self.score, "grade": self.grade}


def weights_for(role: Union[Role, str]) -> Dict[str, float]:
    return dict(ROLE_METRIC_WEIGHTS[Role.parse(role)])


class PerformanceScorer:
    def score(
        self,
        metric_scores: Union[Mapping[str, object], Iterable[object]],
        weights: Mapping[str, float],
    ) -> OverallScore:
        """Weighted mean of percentiles, rounded half up.

        ``metric_scores`` maps metric name to a ``MetricScore`` or a bare
        percentile. Metrics without a weight are ignored, and a weighted
        metric that was not scored contributes nothing.
        """
        percentiles = _percentiles(metric_scores)
        total_weight = 0.0
        weighted = 0.0
        for metric, weight in weights.items():
            if metric not in percentiles or weight <= 0:
                continue
            weighted += percentiles[metric] * weight
            total_weight += weight

        if total_weight <= 0:
            overall = 0
        else:
            overall = round_half_up(weighted / total_weight)
        return OverallScore(score=overall, grade=grade_for_percentile(overall))


def _percentiles(metric_scores) -> Dict[str, float]:
    if isinstance(metric_scores, Mapping):
        items = metric_scores.items()
    else:
        items = ((s.metric, s) for s in metric_scores)
    result = {}
    for metric, score in items:
        percentile = getattr(score, "raw_percentile", None)
        if percentile is None:
            percentile = getattr(score, "percentile", score)
        result[metric] = float(percentile)
    return result
