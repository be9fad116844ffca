"""Test doubles for the analysis pipeline: clock, HTTP session, gateway."""

from typing import Any, Dict, List, Optional

from dotacoach.exceptions import NotFoundError
from dotacoach.ingestion.gateway import BatchResult, GatewayRequest, cache_key


class FakeClock:
    """Manually advanced clock; ``sleep`` moves time forward instead of blocking."""

    def __init__(self, start: float = 1000.0):
        self.now = float(start)
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class StubResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, reason: str = "OK", body_is_json: bool = True):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason
        self._body_is_json = body_is_json

    def json(self):
        if not self._body_is_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class StubSession:
    """Routes GETs by URL suffix to queued responses.

    A route holds a list of responses consumed in order; the last one repeats.
    An exception instance in the list is raised instead of returned.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes: Dict[str, List[Any]] = {}
        for suffix, responses in (routes or {}).items():
            self.add(suffix, responses)
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def add(self, suffix: str, responses: Any) -> None:
        if not isinstance(responses, list):
            responses = [responses]
        self.routes[suffix] = list(responses)

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        for suffix in sorted(self.routes, key=len, reverse=True):
            if url.endswith(suffix):
                queue = self.routes[suffix]
                response = queue.pop(0) if len(queue) > 1 else queue[0]
                if isinstance(response, Exception):
                    raise response
                return response
        return StubResponse(404, {"error": "Not Found"}, reason="Not Found")

    def calls_to(self, suffix: str) -> int:
        return sum(1 for call in self.calls if call["url"].endswith(suffix))

    def close(self):
        self.closed = True


class StubGateway:
    """In-memory stand-in for ``DataGateway`` keyed by endpoint."""

    def __init__(self, payloads: Optional[Dict[str, Any]] = None):
        self.payloads = dict(payloads or {})
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def fetch(self, endpoint, params=None, use_cache=True, ttl=None):
        self.calls.append({"endpoint": endpoint, "params": dict(params or {})})
        key = cache_key(endpoint, {k: v for k, v in (params or {}).items() if v is not None})
        for candidate in (key, endpoint):
            if candidate in self.payloads:
                payload = self.payloads[candidate]
                if isinstance(payload, Exception):
                    raise payload
                return payload
        raise NotFoundError("resource", endpoint)

    def batch(self, requests_):
        results = []
        for request in requests_:
            endpoint = request.endpoint if isinstance(request, GatewayRequest) else request
            try:
                results.append(BatchResult(request=request, success=True, data=self.fetch(endpoint)))
            except Exception as exc:
                results.append(BatchResult(request=request, success=False, error=exc))
        return results

    def close(self):
        self.closed = True
