"""
Pytest configuration and shared fixtures for match analysis tests.
"""

import pytest

from dotacoach.config import Config
from dotacoach.ingestion import DataGateway
from dotacoach.normalization import MatchRecord, parse_benchmarks
from dotacoach.ops.metrics import InMemoryMetricsRecorder
from dotacoach.ops.rate_limiter import RateLimiter
from dotacoach.storage import TTLCache
from tests.fixtures.sample_api_responses import (
    SAMPLE_ACCOUNT_ID,
    get_sample_benchmarks,
    get_sample_item_constants,
    get_sample_match,
)
from tests.mocks import FakeClock, StubResponse, StubSession


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host OpenDota/dotacoach settings out of tests."""
    for key in (
        "OPENDOTA_API_URL",
        "OPENDOTA_API_KEY",
        "OPENDOTA_REQUEST_DELAY",
        "OPENDOTA_TIMEOUT",
        "OPENDOTA_MAX_RETRIES",
        "OPENDOTA_RATE_LIMIT_BACKOFF",
        "OPENDOTA_MAX_CONCURRENT",
        "DOTACOACH_CACHE_TTL",
        "DOTACOACH_CACHE_TTL_PREFIXES",
        "DOTACOACH_SWEEP_INTERVAL",
        "DOTACOACH_ANALYSIS_TTL",
        "DOTACOACH_CACHE_DIR",
        "DOTACOACH_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def metrics():
    return InMemoryMetricsRecorder()


@pytest.fixture
def config():
    return Config(request_delay_override=0.5, rate_limit_backoff=5.0, max_retries=1)


@pytest.fixture
def cache(clock, metrics):
    return TTLCache(default_ttl=300, ttl_prefixes=Config().cache_ttl_prefixes, clock=clock, metrics=metrics)


@pytest.fixture
def sample_match_payload():
    return get_sample_match()


@pytest.fixture
def sample_match(sample_match_payload):
    return MatchRecord.from_payload(sample_match_payload)


@pytest.fixture
def sample_carry(sample_match):
    return sample_match.player_for_account(SAMPLE_ACCOUNT_ID)


@pytest.fixture
def sample_distributions():
    return parse_benchmarks(get_sample_benchmarks())


@pytest.fixture
def opendota_session(sample_match_payload):
    return StubSession({
        "/matches/7400000001": StubResponse(200, sample_match_payload),
        "/benchmarks": StubResponse(200, get_sample_benchmarks()),
        "/constants/items": StubResponse(200, get_sample_item_constants()),
    })


@pytest.fixture
def gateway(config, cache, opendota_session, clock, metrics):
    limiter = RateLimiter(default_interval=config.min_request_delay, clock=clock, sleep=clock.sleep)
    gw = DataGateway(
        config,
        cache,
        session=opendota_session,
        rate_limiter=limiter,
        metrics=metrics,
        sleep=clock.sleep,
    )
    yield gw
    gw.close()
