"""Analysis models: roles, benchmarks, scoring, insights and phases."""

from dotacoach.models.benchmarks import BenchmarkEngine, MetricScore, interpolate_percentile
from dotacoach.models.grading import grade_for_percentile, round_half_up
from dotacoach.models.insights import (
    CoachingPoint,
    Finding,
    InsightGenerator,
    InsightReport,
    NextStep,
    OverallAssessment,
    Rule,
    Tip,
)
from dotacoach.models.roles import RoleDetection, RoleDetector, role_description
from dotacoach.models.scoring import OverallScore, PerformanceScorer, weights_for

__all__ = [
    "BenchmarkEngine",
    "CoachingPoint",
    "Finding",
    "InsightGenerator",
    "InsightReport",
    "MetricScore",
    "NextStep",
    "OverallAssessment",
    "OverallScore",
    "PerformanceScorer",
    "RoleDetection",
    "RoleDetector",
    "Rule",
    "Tip",
    "grade_for_percentile",
    "interpolate_percentile",
    "role_description",
    "round_half_up",
    "weights_for",
]
