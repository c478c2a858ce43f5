"""Periodic rate readouts fanned out to structured sinks."""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import MutableSequence, Optional, Sequence

from ..estimator import INSUFFICIENT_DATA, EstimationMethod, RateEstimator

try:  # pragma: no cover - optional dependency
    from torch.utils.tensorboard import SummaryWriter
except Exception:  # pragma: no cover - tensorboard is optional
    SummaryWriter = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RateReading:
    """Container describing a single rate readout.

    Attributes:
        timestamp: Seconds since the UNIX epoch when the reading was taken.
        name: Identifier of the measured event stream (for example
            ``"render"`` or ``"decode"``).
        rate: Estimated events per second, or ``None`` while the estimator
            does not have enough history for the window.
        window_seconds: Length of the trailing window used for the estimate.
        method: Value of the :class:`EstimationMethod` used.
        soft: Whether ``rate`` is the rolling weighted average.
    """

    timestamp: float
    name: str
    rate: Optional[float]
    window_seconds: float
    method: str
    soft: bool = False

    @property
    def ready(self) -> bool:
        return self.rate is not None


class RateSink:
    """Abstract interface implemented by reading consumers."""

    def write(self, reading: RateReading) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def close(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class JsonlRateSink(RateSink):
    """Persists readings as structured JSON lines."""

    def __init__(self, path: os.PathLike[str] | str) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self._path.open("a", encoding="utf-8")
        self._lock = threading.Lock()

    def write(self, reading: RateReading) -> None:
        payload = {
            "timestamp": reading.timestamp,
            "name": reading.name,
            "rate": reading.rate,
            "window_seconds": reading.window_seconds,
            "method": reading.method,
            "soft": reading.soft,
        }
        with self._lock:
            self._file.write(json.dumps(payload, sort_keys=True) + "\n")
            self._file.flush()

    def close(self) -> None:
        with self._lock:
            self._file.close()


class LoggingRateSink(RateSink):
    """Writes readings to a standard library logger."""

    def __init__(self, log: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self._logger = log or logger
        self._level = level

    def write(self, reading: RateReading) -> None:
        if not reading.ready:
            self._logger.debug("%s: not enough samples for a %.2fs window", reading.name, reading.window_seconds)
            return
        self._logger.log(
            self._level,
            "%s: %.2f/s (%s, window=%.2fs%s)",
            reading.name,
            reading.rate,
            reading.method,
            reading.window_seconds,
            ", rolling" if reading.soft else "",
        )

    def close(self) -> None:
        return None


class TensorBoardRateSink(RateSink):
    """Emits readings to TensorBoard via :class:`SummaryWriter`."""

    def __init__(self, log_dir: os.PathLike[str] | str) -> None:
        if SummaryWriter is None:  # pragma: no cover - optional dependency
            raise RuntimeError("TensorBoard is not available in this environment")
        self._writer = SummaryWriter(log_dir=str(log_dir))
        self._step = 0

    def write(self, reading: RateReading) -> None:
        if reading.ready:
            self._writer.add_scalar(f"{reading.name}/rate", reading.rate, self._step)
        self._step += 1

    def close(self) -> None:
        self._writer.flush()
        self._writer.close()


class RateReporter:
    """Background poller that samples an estimator and feeds the sinks."""

    def __init__(
        self,
        estimator: RateEstimator,
        *,
        sinks: Sequence[RateSink] | None = None,
        name: str = "events",
        window_seconds: float = 1.0,
        soft_estimate: bool = False,
        method: EstimationMethod | str = EstimationMethod.COUNT_SAMPLES,
        poll_interval_s: float = 1.0,
        history: MutableSequence[RateReading] | None = None,
    ) -> None:
        if poll_interval_s <= 0:
            raise ValueError("poll_interval_s must be positive")
        self._estimator = estimator
        self._sinks = list(sinks or [])
        self._name = name
        self._window_seconds = window_seconds
        self._soft_estimate = soft_estimate
        self._method = EstimationMethod.parse(method)
        self._poll_interval_s = poll_interval_s
        self._history = history
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._stopped = False

    def sample(self) -> RateReading:
        """Take one reading now and hand it to every sink."""

        rate = self._estimator.fps(self._window_seconds, self._soft_estimate, self._method)
        reading = RateReading(
            timestamp=time.time(),
            name=self._name,
            rate=None if rate == INSUFFICIENT_DATA else rate,
            window_seconds=self._window_seconds,
            method=self._method.value,
            soft=self._soft_estimate,
        )
        if self._history is not None:
            self._history.append(reading)
        for sink in self._sinks:
            try:
                sink.write(reading)
            except Exception:
                logger.exception("Rate sink %s failed to write reading", type(sink).__name__)
        return reading

    def start(self) -> None:
        if self._stopped:
            raise RuntimeError("RateReporter has been stopped and its sinks closed")
        if self._thread is not None:
            raise RuntimeError("RateReporter has already been started")
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=f"rate-reporter-{self._name}", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop_event.wait(self._poll_interval_s):
            self.sample()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop polling and close every sink. A stopped reporter cannot be restarted."""

        if self._stopped:
            return
        self._stopped = True
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        for sink in self._sinks:
            try:
                sink.close()
            except Exception:  # pragma: no cover - best effort
                logger.exception("Rate sink %s failed to close", type(sink).__name__)


__all__ = [
    "JsonlRateSink",
    "LoggingRateSink",
    "RateReading",
    "RateReporter",
    "RateSink",
    "TensorBoardRateSink",
]
