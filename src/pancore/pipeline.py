"""Calibration pipeline: four prior/observation scenarios feeding the calibrator."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np

from .calibrate import ThresholdResult, calibrate
from .config import CalibrationConfig
from .enums import Scenario
from .logging_config import PerformanceLogger, time_it
from .prior import sample_prior
from .rng import RandomState
from .simulate import as_completeness, simulate_observed_set

logger = logging.getLogger(__name__)

SCENARIO_ORDER = (Scenario.CORE, Scenario.NOT_CORE, Scenario.RARE, Scenario.NOT_RARE)


@dataclass
class ScenarioSamples:
    """Latent-frequency draws and their simulated observed counts."""
    scenario: Scenario
    prior: np.ndarray
    observed: np.ndarray


@dataclass
class CalibrationRun:
    """Everything one calibration run produced."""
    result: ThresholdResult
    samples: Dict[Scenario, ScenarioSamples]
    config: CalibrationConfig
    seed: int

    @property
    def observed_sets(self) -> Dict[Scenario, np.ndarray]:
        return {scenario: samples.observed for scenario, samples in self.samples.items()}


@time_it("scenario simulation")
def run_scenario(
    scenario: Scenario,
    config: CalibrationConfig,
    completeness: np.ndarray,
    rng: np.random.Generator,
) -> ScenarioSamples:
    """Sample the prior for one scenario and simulate its observed counts."""
    breakpoint = config.high_break if scenario.uses_high_break else config.low_break
    prior = sample_prior(
        config.beta_alpha,
        config.beta_beta,
        config.n_samples,
        breakpoint,
        scenario.keep_upper,
        rng,
    )
    observed = simulate_observed_set(prior, completeness, rng, chunk_size=config.chunk_size)
    logger.debug(
        "Scenario %s: breakpoint %.4g, mean latent %.4f, mean observed %.2f",
        scenario, breakpoint, prior.mean(), observed.mean(),
    )
    return ScenarioSamples(scenario=scenario, prior=prior, observed=observed)


def _scenario_worker(args) -> ScenarioSamples:
    scenario, config, completeness, rng = args
    return run_scenario(scenario, config, completeness, rng)


def simulate_scenarios(
    config: CalibrationConfig,
    completeness: np.ndarray,
    root: RandomState,
) -> Dict[Scenario, ScenarioSamples]:
    """Run the four scenarios, each on its own generator spawned from ``root``.

    Results do not depend on ``config.n_jobs``: every scenario owns a
    jumped stream and results are keyed by scenario.
    """
    tasks = [
        (scenario, config, completeness, root.spawn(index + 1).generator)
        for index, scenario in enumerate(SCENARIO_ORDER)
    ]
    n_jobs = os.cpu_count() if config.n_jobs == -1 else config.n_jobs
    n_jobs = max(1, min(n_jobs or 1, len(tasks)))

    if n_jobs == 1:
        return {task[0]: _scenario_worker(task) for task in tasks}

    results: Dict[Scenario, ScenarioSamples] = {}
    with ProcessPoolExecutor(max_workers=n_jobs) as executor:
        future_to_scenario = {executor.submit(_scenario_worker, task): task[0] for task in tasks}
        for future in as_completed(future_to_scenario):
            results[future_to_scenario[future]] = future.result()
    return {scenario: results[scenario] for scenario in SCENARIO_ORDER}


def calibrate_thresholds(
    completeness: Sequence[float],
    config: CalibrationConfig | None = None,
) -> CalibrationRun:
    """Calibrate core and rare count thresholds for a genome collection.

    Args:
        completeness: Per-genome completeness fractions in [0, 1]
        config: Calibration parameters; defaults when omitted

    Returns:
        CalibrationRun with the thresholds, curves, samples and seed used

    Raises:
        InvalidParameters: For invalid configuration values
        ValidationError: For completeness values outside [0, 1]
        ThresholdNotFound: When an error curve never crosses the bound
        CalibrationAnomaly: When ``strict_separation`` is set and rare >= core
    """
    config = (config or CalibrationConfig()).validate()
    completeness = as_completeness(completeness)
    root = RandomState.create(config.seed)
    if config.seed is None:
        logger.info("No seed configured; using generated seed %d", root.seed)

    with PerformanceLogger(logger, f"calibration ({completeness.size} genomes, {config.n_samples} draws)"):
        samples = simulate_scenarios(config, completeness, root)
        result = calibrate(
            {scenario: item.observed for scenario, item in samples.items()},
            config.error_bound,
            n_genomes=completeness.size,
            on_missing=config.on_missing,
        )

    if config.strict_separation:
        result.check_separation()

    return CalibrationRun(result=result, samples=samples, config=config, seed=root.seed)
