"""Cross-match percentile trends."""

from typing import Any, Dict, List, Mapping, Sequence

import numpy as np

TREND_WINDOW = 5
TREND_THRESHOLD = 10.0


def _percentiles_by_metric(results: Sequence[Any]) -> Dict[str, List[float]]:
    series: Dict[str, List[float]] = {}
    for result in results:
        if isinstance(result, Mapping):
            scores = result.get("metric_scores") or {}
            overall = result.get("overall_score")
        else:
            scores = result.metric_scores
            overall = result.overall_score
        for metric, score in scores.items():
            percentile = score.get("percentile") if isinstance(score, Mapping) else score.percentile
            series.setdefault(metric, []).append(float(percentile))
        if overall is not None:
            series.setdefault("overall_score", []).append(float(overall))
    return series


def trend_direction(values: Sequence[float], window: int = TREND_WINDOW) -> str:
    """Compare the last ``window`` values with the ``window`` before them."""
    recent = values[-window:]
    earlier = values[-2 * window:-window]
    if not recent or not earlier:
        return "stable"
    difference = float(np.mean(recent)) - float(np.mean(earlier))
    if difference > TREND_THRESHOLD:
        return "improving"
    if difference < -TREND_THRESHOLD:
        return "declining"
    return "stable"


def consistency(values: Sequence[float]) -> int:
    """100 minus the population standard deviation, floored at 0."""
    if len(values) < 2:
        return 100
    return int(round(max(0.0, 100.0 - float(np.std(values)))))


def improvement_slope(values: Sequence[float]) -> float:
    """Least-squares slope per match; 0 with fewer than three matches."""
    if len(values) < 3:
        return 0.0
    x = np.arange(1, len(values) + 1, dtype=float)
    slope, _intercept = np.polyfit(x, np.asarray(values, dtype=float), 1)
    return round(float(slope), 1)


def compare_performance(results: Sequence[Any]) -> Dict[str, Dict[str, Any]]:
    """Summarize percentiles across analyses given oldest first."""
    summary = {}
    for metric, values in _percentiles_by_metric(results).items():
        summary[metric] = {
            "current": values[-1],
            "average": round(float(np.mean(values)), 1),
            "trend": trend_direction(values),
            "consistency": consistency(values),
            "improvement": improvement_slope(values),
            "matches": len(values),
        }
    return summary
