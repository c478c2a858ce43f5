"""Utility helpers for fpsmeter."""

from .reporting import (
    JsonlRateSink,
    LoggingRateSink,
    RateReading,
    RateReporter,
    RateSink,
    TensorBoardRateSink,
)

__all__ = [
    "JsonlRateSink",
    "LoggingRateSink",
    "RateReading",
    "RateReporter",
    "RateSink",
    "TensorBoardRateSink",
]
