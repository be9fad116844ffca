"""Dota match performance analysis package."""

__all__ = [
    "cli",
    "config",
    "constants",
    "exceptions",
    "ingestion",
    "normalization",
    "models",
    "ops",
    "pipeline",
    "storage",
]

__version__ = "0.1.0"
