"""Upstream data access."""

from dotacoach.ingestion.gateway import BatchResult, DataGateway, GatewayRequest, cache_key
from dotacoach.ingestion import opendota

__all__ = [
    "BatchResult",
    "DataGateway",
    "GatewayRequest",
    "cache_key",
    "opendota",
]
