"""OpenDota endpoint helpers on top of ``DataGateway``."""

from typing import Any, Dict, Iterable, List, Optional
import logging

from dotacoach.exceptions import MalformedDataError
from dotacoach.ingestion.gateway import BatchResult, DataGateway, GatewayRequest
from dotacoach.normalization import BenchmarkDistribution, MatchRecord, parse_benchmarks

logger = logging.getLogger(__name__)


def match_endpoint(match_id: int) -> str:
    return f"/matches/{int(match_id)}"


def fetch_match(gateway: DataGateway, match_id: int, use_cache: bool = True) -> Dict[str, Any]:
    """Raw match payload."""
    return gateway.fetch(match_endpoint(match_id), use_cache=use_cache)


def fetch_match_record(gateway: DataGateway, match_id: int, use_cache: bool = True) -> MatchRecord:
    return MatchRecord.from_payload(fetch_match(gateway, match_id, use_cache=use_cache))


def fetch_player(gateway: DataGateway, account_id: int) -> Dict[str, Any]:
    return gateway.fetch(f"/players/{int(account_id)}")


def fetch_player_matches(
    gateway: DataGateway,
    account_id: int,
    limit: Optional[int] = 20,
    hero_id: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Recent match summaries for a player, newest first."""
    payload = gateway.fetch(
        f"/players/{int(account_id)}/matches",
        params={"limit": limit, "hero_id": hero_id},
    )
    if not isinstance(payload, list):
        raise MalformedDataError("player_matches", "expected a list")
    return payload


def fetch_benchmarks(gateway: DataGateway, hero_id: int) -> Dict[str, Any]:
    return gateway.fetch("/benchmarks", params={"hero_id": int(hero_id)})


def fetch_benchmark_distributions(gateway: DataGateway, hero_id: int) -> Dict[str, BenchmarkDistribution]:
    return parse_benchmarks(fetch_benchmarks(gateway, hero_id))


def fetch_hero_constants(gateway: DataGateway) -> List[Dict[str, Any]]:
    payload = gateway.fetch("/heroes")
    if not isinstance(payload, list):
        raise MalformedDataError("heroes", "expected a list")
    return payload


def fetch_item_constants(gateway: DataGateway) -> Dict[str, Any]:
    payload = gateway.fetch("/constants/items")
    if not isinstance(payload, dict):
        raise MalformedDataError("items", "expected an object")
    return payload


def item_names_by_id(item_constants: Dict[str, Any]) -> Dict[int, str]:
    """Invert ``/constants/items`` (name -> {id, ...}) into id -> name."""
    names: Dict[int, str] = {}
    for name, data in item_constants.items():
        if not isinstance(data, dict) or data.get("id") is None:
            continue
        try:
            names[int(data["id"])] = str(name)
        except (TypeError, ValueError):
            continue
    return names


def warm_matches(gateway: DataGateway, match_ids: Iterable[int]) -> List[BatchResult]:
    """Pre-fetch match payloads into the cache."""
    requests_ = [GatewayRequest(endpoint=match_endpoint(match_id)) for match_id in match_ids]
    results = gateway.batch(requests_)
    failed = sum(1 for result in results if not result.success)
    if failed:
        logger.warning("Warmed %d matches, %d failed", len(results) - failed, failed)
    else:
        logger.info("Warmed %d matches", len(results))
    return results
