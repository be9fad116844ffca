"""Shared percentile to grade mapping and rounding."""

from decimal import Decimal, ROUND_HALF_UP

from dotacoach.constants import (
    COMPARISON_LABELS,
    GRADE_BOUNDARIES,
    LOWEST_COMPARISON,
    LOWEST_GRADE,
)


def grade_for_percentile(percentile: float) -> str:
    """>=90 S, >=80 A, >=70 B, >=50 C, else D."""
    for lower, grade in GRADE_BOUNDARIES:
        if percentile >= lower:
            return grade
    return LOWEST_GRADE


def comparison_for_percentile(percentile: float) -> str:
    for lower, label in COMPARISON_LABELS:
        if percentile >= lower:
            return label
    return LOWEST_COMPARISON


def tier_for_percentile(percentile: float) -> str:
    if percentile >= 75:
        return "high"
    if percentile >= 40:
        return "medium"
    return "low"


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (``round`` uses banker's rounding)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
