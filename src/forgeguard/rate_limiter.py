"""RateLimiter — Dual-window sliding rate limiting for credential minting.

Counts successful mints in a trailing minute and a trailing hour. State lives
in an injected StorageBackend, so it survives restarts when the backend is
durable.

Usage:
    limiter = RateLimiter(FileBackend("~/.forgeguard"))

    status = limiter.check_rate_limit()
    if not status.allowed:
        return f"Try again in {format_time_until_allowed(status.next_allowed_time)}"

    submit_credential()
    limiter.record_action()  # only after the submission succeeded

Checking and recording are separate steps with no lock between them; two
processes sharing a store can both pass the check before either records.
"""

from __future__ import annotations

import json
import logging
import math
import sqlite3
import time
from dataclasses import dataclass, field
from typing import Optional

from forgeguard.storage import StorageBackend

logger = logging.getLogger(__name__)

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * 60 * 1000
WARNING_RATIO = 0.8
DEFAULT_STORAGE_KEY = "freelanceforge_rate_limits"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class RateLimitState:
    """Action timestamps (epoch ms) still inside each window."""
    minute_timestamps: list[int] = field(default_factory=list)
    hour_timestamps: list[int] = field(default_factory=list)

    def prune(self, now: int) -> None:
        minute_floor = now - MINUTE_MS
        hour_floor = now - HOUR_MS
        self.minute_timestamps = [ts for ts in self.minute_timestamps if ts > minute_floor]
        self.hour_timestamps = [ts for ts in self.hour_timestamps if ts > hour_floor]

    def to_json(self) -> str:
        return json.dumps({
            "minuteTimestamps": self.minute_timestamps,
            "hourTimestamps": self.hour_timestamps,
        })

    @classmethod
    def from_json(cls, raw: str) -> "RateLimitState":
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("rate limit state must be an object")
        return cls(
            minute_timestamps=_timestamps(data.get("minuteTimestamps", [])),
            hour_timestamps=_timestamps(data.get("hourTimestamps", [])),
        )


def _timestamps(values) -> list[int]:
    if not isinstance(values, list):
        raise ValueError("timestamps must be a list")
    return sorted(
        int(v) for v in values
        if isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)
    )


@dataclass
class RateLimitStatus:
    """Result of a rate limit check."""
    allowed: bool
    minute_count: int
    hour_count: int
    next_allowed_time: Optional[int] = None  # epoch ms, set only when denied

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "minute_count": self.minute_count,
            "hour_count": self.hour_count,
            "next_allowed_time": self.next_allowed_time,
        }


class RateLimiter:
    """Sliding-window limiter: at most ``minute_limit`` actions per rolling
    minute and ``hour_limit`` per rolling hour."""

    def __init__(
        self,
        storage: StorageBackend,
        minute_limit: int = 10,
        hour_limit: int = 100,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ):
        self._storage = storage
        self.minute_limit = minute_limit
        self.hour_limit = hour_limit
        self.storage_key = storage_key

    def _load(self) -> RateLimitState:
        try:
            raw = self._storage.get(self.storage_key)
        except (OSError, ValueError, sqlite3.Error) as e:
            logger.warning("Failed to read rate limit data: %s", e)
            return RateLimitState()
        if raw is None:
            return RateLimitState()
        try:
            return RateLimitState.from_json(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Failed to parse rate limit data, starting fresh: %s", e)
            return RateLimitState()

    def _save(self, state: RateLimitState) -> None:
        try:
            self._storage.set(self.storage_key, state.to_json())
        except (OSError, ValueError, sqlite3.Error) as e:
            logger.warning("Failed to save rate limit data: %s", e)

    def check_rate_limit(self, now: Optional[int] = None) -> RateLimitStatus:
        """Check whether another action is allowed right now.

        Does not record the attempt and does not write to storage.

        Args:
            now: Current time in epoch milliseconds (defaults to the clock)
        """
        if now is None:
            now = _now_ms()

        state = self._load()
        state.prune(now)
        minute_count = len(state.minute_timestamps)
        hour_count = len(state.hour_timestamps)

        if minute_count >= self.minute_limit:
            return RateLimitStatus(
                allowed=False,
                minute_count=minute_count,
                hour_count=hour_count,
                next_allowed_time=min(state.minute_timestamps) + MINUTE_MS,
            )

        if hour_count >= self.hour_limit:
            return RateLimitStatus(
                allowed=False,
                minute_count=minute_count,
                hour_count=hour_count,
                next_allowed_time=min(state.hour_timestamps) + HOUR_MS,
            )

        return RateLimitStatus(allowed=True, minute_count=minute_count, hour_count=hour_count)

    def record_action(self, now: Optional[int] = None) -> None:
        """Record a completed action. Call only after the operation succeeded."""
        if now is None:
            now = _now_ms()

        state = self._load()
        state.prune(now)
        state.minute_timestamps.append(now)
        state.hour_timestamps.append(now)
        self._save(state)

    def get_warning_message(self, minute_count: int, hour_count: int) -> Optional[str]:
        """Soft warning once either window is at 80% of its ceiling."""
        if minute_count >= self.minute_limit * WARNING_RATIO:
            return (f"Approaching rate limit: {minute_count}/{self.minute_limit} "
                    f"credentials minted in the last minute")
        if hour_count >= self.hour_limit * WARNING_RATIO:
            return (f"Approaching rate limit: {hour_count}/{self.hour_limit} "
                    f"credentials minted in the last hour")
        return None

    def reset(self) -> None:
        """Forget all recorded actions."""
        self._storage.delete(self.storage_key)


def format_time_until_allowed(next_allowed_time: int, now: Optional[int] = None) -> str:
    """Human-readable wait, e.g. "42 seconds" or "3 minutes"."""
    if now is None:
        now = _now_ms()
    diff = max(0, next_allowed_time - now)
    if diff < MINUTE_MS:
        return f"{math.ceil(diff / 1000)} seconds"
    return f"{math.ceil(diff / MINUTE_MS)} minutes"
