"""Cached, rate-limited HTTP gateway to the match data provider.

Every read goes through the cache first. Misses wait on the rate limiter so
dispatches are spaced by the configured minimum delay, then hit the API with
a pooled ``requests`` session. HTTP 429 backs off for a fixed delay and is
retried a bounded number of times before surfacing.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
from urllib.parse import urlencode
import logging
import time

import requests
from requests.adapters import HTTPAdapter

from dotacoach.config import Config
from dotacoach.exceptions import (
    DotaCoachError,
    MalformedDataError,
    NotFoundError,
    RateLimitError,
    UpstreamError,
)
from dotacoach.ops.metrics import MetricsRecorder, NullMetricsRecorder
from dotacoach.ops.rate_limiter import RateLimiter
from dotacoach.storage import MISSING, CacheStore

logger = logging.getLogger(__name__)

SOURCE_NAME = "opendota"


@dataclass(frozen=True)
class GatewayRequest:
    endpoint: str
    params: Dict[str, Any] = field(default_factory=dict)
    use_cache: bool = True


@dataclass
class BatchResult:
    request: Union[str, GatewayRequest]
    success: bool
    data: Any = None
    error: Optional[Exception] = None


def cache_key(endpoint: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Stable cache key for an ``(endpoint, params)`` pair.

    The endpoint comes first so per-prefix TTLs (``/matches/`` etc.) apply.
    """
    if not params:
        return endpoint
    query = urlencode(sorted((str(k), str(v)) for k, v in params.items() if v is not None))
    return f"{endpoint}?{query}" if query else endpoint


class DataGateway:
    """Read-only client for the OpenDota REST API."""

    def __init__(
        self,
        config: Config,
        cache: CacheStore,
        session: Optional[requests.Session] = None,
        rate_limiter: Optional[RateLimiter] = None,
        metrics: Optional[MetricsRecorder] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.cache = cache
        self._metrics = metrics or NullMetricsRecorder()
        self._sleep = sleep
        self._limiter = rate_limiter or RateLimiter(default_interval=config.min_request_delay)

        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=config.max_concurrent_requests,
                pool_maxsize=config.max_concurrent_requests,
                max_retries=0,  # 429 handling lives in fetch()
            )
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self._session = session

    def __enter__(self) -> "DataGateway":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def build_url(self, endpoint: str) -> str:
        if not endpoint.startswith("/"):
            endpoint = "/" + endpoint
        return self.config.base_url.rstrip("/") + endpoint

    def fetch(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        use_cache: bool = True,
        ttl: Optional[float] = None,
    ) -> Any:
        """Return the JSON payload for ``endpoint``, from cache when possible."""
        params = {k: v for k, v in (params or {}).items() if v is not None}
        key = cache_key(endpoint, params)
        if use_cache:
            cached = self.cache.get(key, MISSING)
            if cached is not MISSING:
                logger.debug("Cache hit for %s", key)
                return cached

        payload = self._request(endpoint, params)
        if use_cache:
            self.cache.set(key, payload, ttl)
        return payload

    def batch(self, requests_: Sequence[Union[str, GatewayRequest]]) -> List[BatchResult]:
        """Fetch several requests; results are parallel to the input list.

        Dispatches run on a thread pool but still pass through the rate
        limiter, so only the network waits overlap. A failing request is
        reported in its slot and does not abort the others.
        """
        if not requests_:
            return []

        def _run(request: Union[str, GatewayRequest]) -> BatchResult:
            if isinstance(request, GatewayRequest):
                endpoint, params, use_cache = request.endpoint, request.params, request.use_cache
            else:
                endpoint, params, use_cache = str(request), None, True
            try:
                data = self.fetch(endpoint, params, use_cache=use_cache)
                return BatchResult(request=request, success=True, data=data)
            except DotaCoachError as exc:
                logger.warning("Batch request %s failed: %s", endpoint, exc)
                return BatchResult(request=request, success=False, error=exc)

        workers = max(1, min(self.config.max_concurrent_requests, len(requests_)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="gateway") as pool:
            return list(pool.map(_run, requests_))

    def _request(self, endpoint: str, params: Dict[str, Any]) -> Any:
        url = self.build_url(endpoint)
        query = dict(params)
        if self.config.api_key:
            query["api_key"] = self.config.api_key

        attempts = 0
        while True:
            self._limiter.wait(SOURCE_NAME)
            started = time.perf_counter()
            try:
                response = self._session.get(url, params=query, timeout=self.config.request_timeout)
            except requests.RequestException as exc:
                self._metrics.increment("gateway.failures")
                logger.warning("Network error fetching %s: %s", endpoint, exc)
                raise UpstreamError(None, f"network error: {exc}", endpoint=endpoint) from exc
            finally:
                self._metrics.timing("gateway.request", (time.perf_counter() - started) * 1000)
            self._metrics.increment("gateway.requests")

            status = response.status_code
            if status == 429:
                if attempts < self.config.max_retries:
                    attempts += 1
                    self._metrics.increment("gateway.retries")
                    logger.warning(
                        "Rate limit hit on %s, retrying in %.1fs (attempt %d/%d)",
                        endpoint,
                        self.config.rate_limit_backoff,
                        attempts,
                        self.config.max_retries,
                    )
                    self._sleep(self.config.rate_limit_backoff)
                    continue
                self._metrics.increment("gateway.failures")
                raise RateLimitError(endpoint=endpoint, retry_after=self.config.rate_limit_backoff)
            if status == 404:
                raise NotFoundError("resource", endpoint)
            if not 200 <= status < 300:
                self._metrics.increment("gateway.failures")
                reason = getattr(response, "reason", "") or "request failed"
                raise UpstreamError(status, reason, endpoint=endpoint)

            try:
                return response.json()
            except ValueError as exc:
                raise MalformedDataError(endpoint, f"response is not JSON: {exc}") from exc
