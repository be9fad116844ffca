from dotacoach.ops.rate_limiter import RateLimiter
from tests.mocks import FakeClock


def test_first_call_does_not_wait():
    clock = FakeClock()
    limiter = RateLimiter(default_interval=1.0, clock=clock, sleep=clock.sleep)
    assert limiter.wait("opendota") == 0.0
    assert clock.sleeps == []


def test_back_to_back_calls_are_spaced():
    clock = FakeClock()
    limiter = RateLimiter(default_interval=1.0, clock=clock, sleep=clock.sleep)
    limiter.wait("opendota")
    clock.advance(0.25)
    assert limiter.wait("opendota") == 0.75
    assert limiter.last_dispatch("opendota") == 1001.0


def test_elapsed_interval_needs_no_sleep():
    clock = FakeClock()
    limiter = RateLimiter(default_interval=1.0, clock=clock, sleep=clock.sleep)
    limiter.wait("opendota")
    clock.advance(2.0)
    assert limiter.wait("opendota") == 0.0


def test_sources_are_tracked_independently():
    clock = FakeClock()
    limiter = RateLimiter(default_interval=1.0, overrides={"fast": 0.1}, clock=clock, sleep=clock.sleep)
    limiter.wait("opendota")
    assert limiter.wait("fast") == 0.0
    assert limiter.wait("fast") == 0.1
    limiter.set_interval("opendota", 0.0)
    assert limiter.wait("opendota") == 0.0
