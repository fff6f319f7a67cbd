"""
Expiration policies for cached upstream payloads.

A policy turns "a write happening now" into two numbers: when the key-value
store should drop the entry, and how long clients may treat the response as
fresh. The two are deliberately allowed to differ.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union


@dataclass(frozen=True)
class RollingPolicy:
    """Entry lives ``duration_seconds`` from write time (times the buffer factor in the store)."""

    duration_seconds: int

    def __post_init__(self) -> None:
        if self.duration_seconds <= 0:
            raise ValueError("duration_seconds must be positive")


@dataclass(frozen=True)
class DailyFixedPolicy:
    """Entry expires at the next occurrence of ``utc_hour``:00:00 UTC."""

    utc_hour: int

    def __post_init__(self) -> None:
        if not 0 <= self.utc_hour <= 23:
            raise ValueError("utc_hour must be in [0, 23]")


ExpirationPolicy = Union[RollingPolicy, DailyFixedPolicy]


@dataclass(frozen=True)
class StoreExpiration:
    """Backing-store expiration; exactly one of the two forms is set."""

    ttl_seconds: Optional[int] = None
    at_unix_seconds: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.ttl_seconds is None) == (self.at_unix_seconds is None):
            raise ValueError("exactly one of ttl_seconds or at_unix_seconds must be set")


@dataclass(frozen=True)
class ExpirationWindow:
    store_expiration: StoreExpiration
    client_freshness_seconds: int


def next_daily_occurrence(utc_hour: int, now: datetime) -> datetime:
    """
    Return the next instant at ``utc_hour``:00:00 UTC strictly after ``now``.

    ``now`` landing exactly on the hour counts as already past.
    """
    now = _as_utc(now)
    candidate = now.replace(hour=utc_hour, minute=0, second=0, microsecond=0)
    if now >= candidate:
        candidate += timedelta(days=1)
    return candidate


def compute_expiration(
    policy: ExpirationPolicy,
    now: datetime,
    *,
    buffer_factor: float,
) -> ExpirationWindow:
    """Compute store expiration and client freshness for a write at ``now``."""
    if isinstance(policy, RollingPolicy):
        if buffer_factor <= 1.0:
            raise ValueError("buffer_factor must be greater than 1")
        ttl = int(round(policy.duration_seconds * buffer_factor))
        return ExpirationWindow(
            store_expiration=StoreExpiration(ttl_seconds=ttl),
            client_freshness_seconds=policy.duration_seconds,
        )

    if isinstance(policy, DailyFixedPolicy):
        now = _as_utc(now)
        expires_at = next_daily_occurrence(policy.utc_hour, now)
        remaining = (expires_at - now).total_seconds()
        return ExpirationWindow(
            store_expiration=StoreExpiration(at_unix_seconds=int(expires_at.timestamp())),
            client_freshness_seconds=max(0, math.floor(remaining)),
        )

    raise TypeError(f"Unsupported expiration policy: {policy!r}")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
