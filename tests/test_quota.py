import pytest

from aiquiz.core.exceptions import DailyLimitExceededError, RateLimitExceededError
from aiquiz.utils.quota import (
    AnonymousQuota,
    QuotaCache,
    RegisteredQuota,
    SlidingWindowLimiter,
    select_quota,
)


class StubUserAPI:
    def __init__(self, used=0, limit=10, unlimited=False):
        self.used = used
        self.limit = limit
        self.unlimited = unlimited
        self.status_requests = 0
        self.recorded = 0

    def get_daily_calls(self):
        self.status_requests += 1
        return {
            "dailyUsed": self.used,
            "dailyLimit": None if self.unlimited else self.limit,
            "unlimited": self.unlimited,
        }

    def record_call(self):
        self.recorded += 1
        if not self.unlimited:
            self.used += 1
        return {"message": "Call recorded successfully"}


def test_eleventh_call_in_window_is_rejected(mono_clock):
    limiter = SlidingWindowLimiter(10, 60, clock=mono_clock)
    for expected_left in range(9, -1, -1):
        assert limiter.acquire() == expected_left
        mono_clock.advance(seconds=1)

    with pytest.raises(RateLimitExceededError) as exc_info:
        limiter.acquire()
    # Oldest call was 10 seconds ago
    assert exc_info.value.reset_in_seconds == 50
    assert "10 AI explanations" in str(exc_info.value)
    assert "wait 50 seconds" in str(exc_info.value)


def test_capacity_returns_one_slot_per_expired_call(mono_clock):
    start = mono_clock.now
    limiter = SlidingWindowLimiter(10, 60, clock=mono_clock)
    for _ in range(10):
        limiter.acquire()
        mono_clock.advance(seconds=1)

    mono_clock.now = start + 60
    assert limiter.check().remaining_calls == 1
    mono_clock.now = start + 60.5
    assert limiter.check().remaining_calls == 1
    mono_clock.now = start + 61
    assert limiter.check().remaining_calls == 2
    mono_clock.now = start + 69
    assert limiter.check() == (True, 10, 0)


def test_check_does_not_record(mono_clock):
    limiter = SlidingWindowLimiter(2, 60, clock=mono_clock)
    for _ in range(5):
        assert limiter.check().allowed
    assert limiter.check().remaining_calls == 2


def test_quota_cache_ttl(mono_clock):
    cache = QuotaCache(5, clock=mono_clock)
    assert cache.get() is None
    cache.set({"dailyUsed": 1})
    mono_clock.advance(seconds=4)
    assert cache.get() == {"dailyUsed": 1}
    mono_clock.advance(seconds=1)
    assert cache.get() is None

    cache.set("x")
    cache.invalidate()
    assert cache.get() is None


def test_anonymous_quota_status(mono_clock):
    quota = AnonymousQuota(SlidingWindowLimiter(10, 60, clock=mono_clock))
    quota.acquire()
    status = quota.status()
    assert status.remaining_calls == 9
    assert status.reset_in_seconds == 60
    assert status.unlimited is False


def test_registered_quota_daily_limit():
    api = StubUserAPI(used=9, limit=10)
    quota = RegisteredQuota(api)
    quota.acquire()
    assert api.used == 10

    with pytest.raises(DailyLimitExceededError) as exc_info:
        quota.acquire()
    assert str(exc_info.value) == (
        "You've reached your daily limit of 10 AI explanations. Resets tomorrow."
    )
    assert api.recorded == 1


def test_registered_quota_unlimited_bypasses_counting():
    api = StubUserAPI(unlimited=True)
    quota = RegisteredQuota(api)
    for _ in range(50):
        quota.acquire()
    assert api.recorded == 0
    assert quota.status().unlimited is True


def test_registered_status_is_cached(mono_clock):
    api = StubUserAPI(used=3, limit=10)
    quota = RegisteredQuota(api, QuotaCache(5, clock=mono_clock))

    assert quota.status().remaining_calls == 7
    quota.status()
    assert api.status_requests == 1

    mono_clock.advance(seconds=5)
    quota.status()
    assert api.status_requests == 2

    # A recorded call drops the cached status
    quota.acquire()
    assert quota.status().daily_used == 4


def test_select_quota():
    anonymous = AnonymousQuota()
    api = StubUserAPI()
    assert select_quota(None, anonymous, api) is anonymous
    assert isinstance(select_quota({"username": "alice"}, anonymous, api), RegisteredQuota)
