"""Monotonic time sources used to timestamp recorded events."""

from __future__ import annotations

import time
from typing import Protocol

NS_PER_SECOND = 1_000_000_000


def seconds_to_ns(seconds: float) -> int:
    return int(round(float(seconds) * NS_PER_SECOND))


def ns_to_seconds(ns: int) -> float:
    return ns / NS_PER_SECOND


class Clock(Protocol):
    """Protocol describing a monotonic nanosecond time source."""

    def now_ns(self) -> int:
        """Return the current time point in nanoseconds."""


class MonotonicClock:
    """Default clock backed by :func:`time.monotonic_ns`.

    The monotonic clock is unaffected by system time changes or NTP slews, so
    intervals measured with it never jump or run backwards.
    """

    def now_ns(self) -> int:
        return time.monotonic_ns()


class ManualClock:
    """Deterministic clock that only moves when told to.

    Useful in tests and when replaying a recorded trace of event times through
    an estimator.
    """

    def __init__(self, start_ns: int = 0) -> None:
        self._now_ns = int(start_ns)

    def now_ns(self) -> int:
        return self._now_ns

    def advance(self, seconds: float) -> int:
        return self.advance_ns(seconds_to_ns(seconds))

    def advance_ns(self, ns: int) -> int:
        if ns < 0:
            raise ValueError("ManualClock cannot move backwards")
        self._now_ns += int(ns)
        return self._now_ns

    def set_ns(self, ns: int) -> None:
        if ns < self._now_ns:
            raise ValueError("ManualClock cannot move backwards")
        self._now_ns = int(ns)


__all__ = [
    "Clock",
    "ManualClock",
    "MonotonicClock",
    "NS_PER_SECOND",
    "ns_to_seconds",
    "seconds_to_ns",
]
