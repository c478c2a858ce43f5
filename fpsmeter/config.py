"""Dataclass configuration for building rate estimators."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping, Optional

from omegaconf import DictConfig, OmegaConf

from .clock import Clock
from .estimator import EstimationMethod, RateEstimator


@dataclass
class EstimatorConfig:
    window_seconds: float = 1.0
    soft_estimate: bool = False
    method: str = EstimationMethod.COUNT_SAMPLES.value
    decay_factor: float = 0.0
    thread_safe: bool = True
    prune_interval: int = 1000
    debug: bool = False

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | DictConfig | None) -> "EstimatorConfig":
        if mapping is None:
            return cls()
        if isinstance(mapping, DictConfig):
            mapping = OmegaConf.to_container(mapping, resolve=True)  # type: ignore[assignment]
        known = {field.name for field in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise ValueError(f"Unknown estimator config keys: {', '.join(unknown)}")
        cfg = cls(**mapping)
        cfg.validate()
        return cfg

    def validate(self) -> None:
        if not math.isfinite(self.window_seconds) or self.window_seconds <= 0:
            raise ValueError("window_seconds must be a positive finite number")
        if self.prune_interval <= 0:
            raise ValueError("prune_interval must be positive")
        EstimationMethod.parse(self.method)

    @property
    def estimation_method(self) -> EstimationMethod:
        return EstimationMethod.parse(self.method)

    def build(self, clock: Optional[Clock] = None) -> RateEstimator:
        self.validate()
        return RateEstimator(
            clock,
            decay_factor=self.decay_factor,
            thread_safe=self.thread_safe,
            prune_interval=self.prune_interval,
            debug=self.debug,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


__all__ = ["EstimatorConfig"]
