from __future__ import annotations

import hydra
from omegaconf import DictConfig, OmegaConf

from examples.random_intervals import DemoConfig
from examples.random_intervals import main as run_random_intervals
from fpsmeter import EstimatorConfig


@hydra.main(config_path="../configs", config_name="demo", version_base=None)
def main(cfg: DictConfig) -> None:
    options = OmegaConf.to_container(cfg, resolve=True)
    assert isinstance(options, dict)
    estimator_cfg = EstimatorConfig.from_mapping(options.pop("estimator", None))
    run_random_intervals(DemoConfig(estimator=estimator_cfg, **options))


if __name__ == "__main__":
    main()
