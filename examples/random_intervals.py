"""Record samples at random intervals and print the estimated rate."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field

from fpsmeter import INSUFFICIENT_DATA, EstimatorConfig

logger = logging.getLogger(__name__)


@dataclass
class DemoConfig:
    iterations: int = 1000
    min_sleep_ms: int = 33
    max_sleep_ms: int = 43
    seed: int = 0
    estimator: EstimatorConfig = field(default_factory=lambda: EstimatorConfig(window_seconds=3.0))


def main(cfg: DemoConfig | None = None) -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    cfg = cfg or DemoConfig()
    if cfg.min_sleep_ms > cfg.max_sleep_ms:
        raise ValueError("min_sleep_ms must not exceed max_sleep_ms")
    rng = random.Random(cfg.seed)
    estimator = cfg.estimator.build()
    method = cfg.estimator.estimation_method
    logger.info(
        "Sampling every %d-%dms, window=%.2fs method=%s",
        cfg.min_sleep_ms,
        cfg.max_sleep_ms,
        cfg.estimator.window_seconds,
        method.value,
    )

    for i in range(cfg.iterations):
        rate = estimator.fps(cfg.estimator.window_seconds, cfg.estimator.soft_estimate, method)
        if rate == INSUFFICIENT_DATA:
            print(f"FPS SAMPLE {i}: warming up")
        else:
            print(f"FPS SAMPLE {i}: {rate:.2f}")
        time.sleep(rng.randint(cfg.min_sleep_ms, cfg.max_sleep_ms) / 1000.0)
        estimator.add_sample()


if __name__ == "__main__":
    main()
