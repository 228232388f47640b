"""AI explanation quotas.

Anonymous callers get a sliding window (10 calls per 60 seconds by default)
kept in memory by the quota object. Logged-in users are counted per day on
the server; unlimited users are not counted at all. A short-lived cache keeps
the quota display from querying the server on every refresh.
"""

import logging
import math
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, NamedTuple, Optional, Union

from aiquiz.config import (
    ANON_RATE_LIMIT_CALLS,
    ANON_RATE_LIMIT_WINDOW_SECONDS,
    QUOTA_CACHE_TTL_SECONDS,
)
from aiquiz.core.exceptions import DailyLimitExceededError, RateLimitExceededError
from aiquiz.schemas.quota import QuotaStatus
from aiquiz.utils.api_client import UserAPI

logger = logging.getLogger(__name__)


class WindowCheck(NamedTuple):
    allowed: bool
    remaining_calls: int
    reset_in_seconds: int


class SlidingWindowLimiter:
    """At most `max_calls` calls in any `window_seconds` long window."""

    def __init__(
        self,
        max_calls: int = ANON_RATE_LIMIT_CALLS,
        window_seconds: float = ANON_RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self.clock = clock
        self._calls: Deque[float] = deque()

    def _prune(self, now: float) -> None:
        while self._calls and now - self._calls[0] >= self.window_seconds:
            self._calls.popleft()

    def check(self) -> WindowCheck:
        """Report the window state without recording a call."""
        now = self.clock()
        self._prune(now)
        remaining = self.max_calls - len(self._calls)
        reset = 0
        if self._calls:
            reset = math.ceil(self.window_seconds - (now - self._calls[0]))
        return WindowCheck(remaining > 0, remaining, reset)

    def acquire(self) -> int:
        """Record a call.

        Returns:
            Calls left in the window after this one.

        Raises:
            RateLimitExceededError: If the window is full.
        """
        allowed, remaining, reset = self.check()
        if not allowed:
            logger.info("Anonymous AI quota exhausted; resets in %d seconds", reset)
            raise RateLimitExceededError(self.max_calls, reset)
        self._calls.append(self.clock())
        return remaining - 1


class QuotaCache:
    """Holds one value for `ttl_seconds`."""

    def __init__(
        self,
        ttl_seconds: float = QUOTA_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._value: Any = None
        self._stored_at: Optional[float] = None

    def get(self) -> Any:
        if self._stored_at is None or self.clock() - self._stored_at >= self.ttl_seconds:
            return None
        return self._value

    def set(self, value: Any) -> None:
        self._value = value
        self._stored_at = self.clock()

    def invalidate(self) -> None:
        self._value = None
        self._stored_at = None


class AnonymousQuota:
    """Sliding-window quota for callers who are not logged in."""

    def __init__(self, limiter: Optional[SlidingWindowLimiter] = None):
        self.limiter = limiter or SlidingWindowLimiter()

    def acquire(self) -> None:
        self.limiter.acquire()

    def status(self) -> QuotaStatus:
        _, remaining, reset = self.limiter.check()
        return QuotaStatus(remaining_calls=remaining, reset_in_seconds=reset)


class RegisteredQuota:
    """Daily quota of a logged-in user, counted by the server."""

    def __init__(self, user_api: UserAPI, cache: Optional[QuotaCache] = None):
        self.user_api = user_api
        self.cache = cache or QuotaCache()

    def _daily_calls(self, refresh: bool = False) -> Dict[str, Any]:
        data = None if refresh else self.cache.get()
        if data is None:
            data = self.user_api.get_daily_calls()
            self.cache.set(data)
        return data

    def acquire(self) -> None:
        """Count one call for today, before the explanation is requested.

        Raises:
            DailyLimitExceededError: If today's calls are used up.
            ApiError: If the server cannot be asked.
        """
        data = self._daily_calls(refresh=True)
        if data.get("unlimited"):
            return
        limit = data.get("dailyLimit") or 0
        if data.get("dailyUsed", 0) >= limit:
            logger.info("Daily AI quota of %d exhausted", limit)
            raise DailyLimitExceededError(limit)
        self.user_api.record_call()
        self.cache.invalidate()

    def status(self) -> QuotaStatus:
        data = self._daily_calls()
        if data.get("unlimited"):
            return QuotaStatus(unlimited=True, daily_used=data.get("dailyUsed", 0))
        limit = data.get("dailyLimit") or 0
        used = data.get("dailyUsed", 0)
        return QuotaStatus(
            remaining_calls=max(0, limit - used),
            daily_limit=limit,
            daily_used=used,
        )


Quota = Union[AnonymousQuota, RegisteredQuota]


def select_quota(
    current_user: Optional[Dict[str, Any]],
    anonymous: AnonymousQuota,
    user_api: UserAPI,
) -> Quota:
    """Pick the quota regime for the login state.

    The anonymous quota is passed in so its window survives logging in and
    out.
    """
    if current_user:
        return RegisteredQuota(user_api)
    return anonymous
