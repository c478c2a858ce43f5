"""Estimate the occurrence rate of events from manually recorded samples.

Typical use inside a render or processing loop::

    estimator = RateEstimator()
    while running:
        if something_happened:
            estimator.add_sample()
        rate = estimator.fps(2.0)
        if rate != INSUFFICIENT_DATA:
            print(f"Current FPS={rate:.1f}")
"""

from __future__ import annotations

import contextlib
import logging
import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, ContextManager, Optional

from .clock import Clock, MonotonicClock, ns_to_seconds, seconds_to_ns

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA = -1.0


class EstimationMethod(str, Enum):
    """Strategies for turning the samples inside a window into a rate."""

    COUNT_SAMPLES = "count_samples"
    AVERAGE_INTERVALS = "average_intervals"

    @classmethod
    def parse(cls, value: Any) -> "EstimationMethod":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            raise ValueError(f"Unknown estimation method: {value!r}") from exc


@dataclass(slots=True)
class _WindowScan:
    ready: bool
    count: int
    boundary_index: int
    youngest_ns: int
    boundary_ns: Optional[int] = None
    pruned: int = 0


class RateEstimator:
    """Estimate how fast events are currently arriving.

    Samples are appended with :meth:`add_sample` and the rate is computed on
    demand by :meth:`fps` over a trailing window ending at the current time.
    The estimator needs to have seen at least one sample older than the window
    before it reports anything; until then it returns :data:`INSUFFICIENT_DATA`.

    Args:
        clock: Source of monotonic nanosecond timestamps. Defaults to
            :class:`~fpsmeter.clock.MonotonicClock`.
        decay_factor: Weight of the previous rolling estimate in ``[0, 1)``.
            ``0`` disables smoothing.
        thread_safe: Guard the sample log and the rolling estimate with locks.
            Disable only when a single thread owns the estimator.
        prune_interval: Number of successful queries between discards of
            samples that fell behind the window boundary.
        debug: Emit a ``DEBUG`` trace of every record, scan and prune.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        *,
        decay_factor: float = 0.0,
        thread_safe: bool = True,
        prune_interval: int = 1000,
        debug: bool = False,
    ) -> None:
        if prune_interval <= 0:
            raise ValueError("prune_interval must be positive")
        self._clock: Clock = clock if clock is not None else MonotonicClock()
        self._samples: list[int] = []
        self._rolling = 0.0
        self._decay_factor = float(decay_factor)
        self._prune_interval = int(prune_interval)
        self._queries_since_prune = 0
        self._thread_safe = thread_safe
        self._debug = debug
        self._debug_start_ns = self._clock.now_ns() if debug else 0
        self._samples_lock = self._make_lock()
        self._rolling_lock = self._make_lock()

    def _make_lock(self) -> ContextManager[Any]:
        if self._thread_safe:
            return threading.Lock()
        return contextlib.nullcontext()

    @property
    def decay_factor(self) -> float:
        return self._decay_factor

    @property
    def rolling_estimate(self) -> float:
        return self._rolling

    @property
    def prune_interval(self) -> int:
        return self._prune_interval

    @property
    def thread_safe(self) -> bool:
        return self._thread_safe

    def set_decay_factor(self, factor: float = 0.0) -> None:
        """Set the smoothing weight; values outside ``[0, 1)`` are accepted as is."""

        self._decay_factor = float(factor)

    def add_sample(self) -> None:
        """Record that an event happened now."""

        with self._samples_lock:
            now_ns = self._clock.now_ns()
            self._samples.append(now_ns)
        if self._debug:
            logger.debug(
                "New sample stored (%.3fms since start)",
                ns_to_seconds(now_ns - self._debug_start_ns) * 1e3,
            )

    record_event = add_sample

    def fps(
        self,
        window_seconds: float = 1.0,
        soft_estimate: bool = False,
        method: EstimationMethod | str = EstimationMethod.COUNT_SAMPLES,
    ) -> float:
        """Estimate the current rate of samples per second.

        Larger windows give more stable estimates but smooth out (and thus
        lose) fast changes in the rate.

        Args:
            window_seconds: Length of the trailing window, ending now.
            soft_estimate: Return the rolling weighted average instead of the
                instantaneous estimate. The rolling average is updated either
                way.
            method: Estimation strategy, an :class:`EstimationMethod` member or
                its string value.

        Returns:
            Samples per second, or :data:`INSUFFICIENT_DATA` when the recorded
            history does not yet reach back past the start of the window.

        Raises:
            ValueError: If ``method`` is unknown or the window is not a positive
                finite number.
        """

        method = EstimationMethod.parse(method)
        if not math.isfinite(window_seconds) or window_seconds <= 0:
            raise ValueError(f"window_seconds must be a positive finite number, got {window_seconds!r}")
        window_ns = seconds_to_ns(window_seconds)
        now_ns = self._clock.now_ns()

        scan = self._scan(now_ns, window_ns, method)
        if not scan.ready:
            return INSUFFICIENT_DATA

        if method is EstimationMethod.COUNT_SAMPLES:
            instant = scan.count / window_seconds
        else:
            assert scan.boundary_ns is not None
            average_interval = ns_to_seconds(scan.youngest_ns - scan.boundary_ns) / scan.count
            instant = 1.0 / average_interval
            if self._debug:
                logger.debug(
                    "Average over %d intervals is %.3fms => %.3f/s",
                    scan.count,
                    average_interval * 1e3,
                    instant,
                )

        with self._rolling_lock:
            self._rolling = (
                self._decay_factor * self._rolling + (1.0 - self._decay_factor) * instant
            )
            rolling = self._rolling

        return rolling if soft_estimate else instant

    query = fps

    def reset(self, *, rolling: bool = False) -> None:
        """Discard all samples.

        The decay factor is kept. The rolling estimate is kept as well unless
        ``rolling`` is set, so a smoothed readout can resume where it left off.
        """

        with self._samples_lock:
            self._samples.clear()
            self._queries_since_prune = 0
        if rolling:
            with self._rolling_lock:
                self._rolling = 0.0
        if self._debug:
            logger.debug("Resetting (rolling=%s)", rolling)
            self._debug_start_ns = self._clock.now_ns()

    def __len__(self) -> int:
        with self._samples_lock:
            return len(self._samples)

    def _scan(self, now_ns: int, window_ns: int, method: EstimationMethod) -> _WindowScan:
        ages: list[int] = []
        with self._samples_lock:
            samples = self._samples
            if not samples:
                return _WindowScan(ready=False, count=0, boundary_index=-1, youngest_ns=now_ns)

            index = len(samples) - 1
            youngest_ns = samples[index]
            count = 0
            while index >= 0 and now_ns - samples[index] < window_ns:
                if self._debug:
                    ages.append(now_ns - samples[index])
                count += 1
                index -= 1

            if method is EstimationMethod.COUNT_SAMPLES:
                ready = index > 0
            else:
                ready = index >= 0 and count > 0

            scan = _WindowScan(
                ready=ready,
                count=count,
                boundary_index=index,
                youngest_ns=youngest_ns,
                boundary_ns=samples[index] if index >= 0 else None,
            )
            if ready:
                scan.pruned = self._maybe_prune(index)

        if self._debug:
            logger.debug(
                "Sampling %s: ages=%s ns, %d in window, boundary index %d",
                method.value,
                ages,
                count,
                index,
            )
            if scan.pruned:
                logger.debug("Discarded %d old samples", scan.pruned)
        return scan

    def _maybe_prune(self, boundary_index: int) -> int:
        # Caller holds the samples lock. The boundary sample and its
        # predecessor are kept so the same window still finds a boundary.
        self._queries_since_prune += 1
        if self._queries_since_prune < self._prune_interval:
            return 0
        self._queries_since_prune = 0
        stale = boundary_index - 1
        if stale <= 0:
            return 0
        del self._samples[:stale]
        return stale


__all__ = ["EstimationMethod", "INSUFFICIENT_DATA", "RateEstimator"]
