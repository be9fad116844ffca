"""Typed records for raw match data."""

from dotacoach.normalization.records import (
    BenchmarkDistribution,
    BenchmarkPoint,
    MatchRecord,
    PlayerRecord,
    parse_benchmarks,
    parse_distribution,
)

__all__ = [
    "BenchmarkDistribution",
    "BenchmarkPoint",
    "MatchRecord",
    "PlayerRecord",
    "parse_benchmarks",
    "parse_distribution",
]
