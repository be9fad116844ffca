"""Operational helpers."""

from dotacoach.ops.rate_limiter import RateLimiter
from dotacoach.ops.metrics import MetricsRecorder, InMemoryMetricsRecorder, NullMetricsRecorder

__all__ = ["RateLimiter", "MetricsRecorder", "InMemoryMetricsRecorder", "NullMetricsRecorder"]
