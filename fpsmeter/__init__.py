"""Live frames-per-second estimation from manually recorded samples."""

from .clock import Clock, ManualClock, MonotonicClock, NS_PER_SECOND
from .config import EstimatorConfig
from .estimator import INSUFFICIENT_DATA, EstimationMethod, RateEstimator

__all__ = [
    "Clock",
    "EstimationMethod",
    "EstimatorConfig",
    "INSUFFICIENT_DATA",
    "ManualClock",
    "MonotonicClock",
    "NS_PER_SECOND",
    "RateEstimator",
]
