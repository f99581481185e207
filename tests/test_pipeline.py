"""
Tests for the four-scenario calibration pipeline.
"""

import pytest
import numpy as np

from pancore.config import CalibrationConfig
from pancore.enums import Scenario
from pancore.exceptions import CalibrationAnomaly, InvalidParameters, ThresholdNotFound, ValidationError
from pancore.pipeline import SCENARIO_ORDER, calibrate_thresholds, run_scenario
from pancore.rng import RandomState


class TestScenarios:
    """Test per-scenario sampling."""

    def test_each_scenario_respects_its_breakpoint(self, small_config, mixed_completeness):
        completeness = np.asarray(mixed_completeness)
        for scenario in SCENARIO_ORDER:
            samples = run_scenario(scenario, small_config, completeness, np.random.default_rng(0))
            cutoff = small_config.high_break if scenario.uses_high_break else small_config.low_break

            assert samples.scenario == scenario
            assert samples.prior.shape == samples.observed.shape == (small_config.n_samples,)
            if scenario.keep_upper:
                assert samples.prior.min() >= cutoff - 1e-6
            else:
                assert samples.prior.max() <= cutoff + 1e-6

    def test_run_keeps_samples_per_scenario(self, small_config, mixed_completeness):
        run = calibrate_thresholds(mixed_completeness, small_config)

        assert list(run.samples) == list(SCENARIO_ORDER)
        assert set(run.observed_sets) == set(Scenario)
        assert run.seed == small_config.seed
        assert run.config is small_config


class TestCalibrateThresholds:
    """Test full calibration runs."""

    def test_well_formed_inputs_are_separated(self, small_config, mixed_completeness):
        result = calibrate_thresholds(mixed_completeness, small_config).result

        assert result.is_separated
        assert result.check_separation() is result
        assert result.clamped == ()
        assert 0 <= result.rare_threshold < result.core_threshold <= len(mixed_completeness)
        # Incomplete genomes pull the core threshold well below N.
        assert result.core_threshold < len(mixed_completeness)

    def test_fixed_seed_reproduces_thresholds(self):
        """Five complete genomes, M=1000, Beta(0.1, 0.1), fixed seed."""
        config = CalibrationConfig(
            breaks=(0.05, 0.95), error_bound=0.05, n_samples=1000,
            beta_alpha=0.1, beta_beta=0.1, seed=2024,
        )

        first = calibrate_thresholds([1.0] * 5, config)
        second = calibrate_thresholds([1.0] * 5, config)

        assert first.result.core_threshold == second.result.core_threshold
        assert first.result.rare_threshold == second.result.rare_threshold
        assert first.result.curves.equals(second.result.curves)
        for scenario in SCENARIO_ORDER:
            assert np.array_equal(first.samples[scenario].prior, second.samples[scenario].prior)
        assert 0 <= first.result.rare_threshold <= 5
        assert 0 <= first.result.core_threshold <= 5

    def test_different_seeds_draw_different_samples(self, small_config, mixed_completeness):
        first = calibrate_thresholds(mixed_completeness, small_config)
        second = calibrate_thresholds(mixed_completeness, small_config.with_overrides(seed=7))

        assert not np.array_equal(
            first.samples[Scenario.CORE].prior, second.samples[Scenario.CORE].prior
        )

    def test_scenarios_use_independent_streams(self, small_config, mixed_completeness):
        run = calibrate_thresholds(mixed_completeness, small_config)
        core = run.samples[Scenario.CORE].observed
        not_rare = run.samples[Scenario.NOT_RARE].observed

        assert not np.array_equal(core, not_rare)

    @pytest.mark.parametrize("draws", [1, 3])
    def test_single_genome_boundary(self, draws):
        """One complete genome never yields a threshold outside {0, 1}."""
        for seed in range(20):
            config = CalibrationConfig(n_samples=draws, seed=seed)
            result = calibrate_thresholds([1.0], config).result

            assert result.core_threshold in (0, 1)
            assert result.rare_threshold in (0, 1)

    def test_raise_policy_surfaces_missing_crossing(self):
        """With five complete genomes P(core < 5) stays near 0.02."""
        config = CalibrationConfig(n_samples=1000, seed=2024, on_missing="raise")

        with pytest.raises(ThresholdNotFound) as excinfo:
            calibrate_thresholds([1.0] * 5, config)

        assert excinfo.value.details["scenario"] == "core"
        assert excinfo.value.details["n_genomes"] == 5

    def test_default_policy_clamps(self):
        config = CalibrationConfig(n_samples=1000, seed=2024)
        result = calibrate_thresholds([1.0] * 5, config).result

        assert result.core_threshold == 5
        assert "core" in result.clamped

    def test_strict_separation_raises_anomaly(self):
        """A single genome with a loose bound puts both thresholds at 1."""
        config = CalibrationConfig(
            n_samples=2000, seed=11, error_bound=0.5, strict_separation=True
        )

        with pytest.raises(CalibrationAnomaly) as excinfo:
            calibrate_thresholds([1.0], config)

        assert excinfo.value.details["core_threshold"] == 1
        assert excinfo.value.details["rare_threshold"] == 1

    def test_unseeded_run_reports_replayable_seed(self, mixed_completeness):
        config = CalibrationConfig(n_samples=500)
        first = calibrate_thresholds(mixed_completeness, config)

        assert isinstance(first.seed, int)
        replay = calibrate_thresholds(mixed_completeness, config.with_overrides(seed=first.seed))
        assert replay.result.curves.equals(first.result.curves)

    def test_parallel_matches_sequential(self, small_config, mixed_completeness):
        sequential = calibrate_thresholds(mixed_completeness, small_config)
        parallel = calibrate_thresholds(mixed_completeness, small_config.with_overrides(n_jobs=2))

        assert parallel.result.curves.equals(sequential.result.curves)
        for scenario in SCENARIO_ORDER:
            assert np.array_equal(
                parallel.samples[scenario].observed, sequential.samples[scenario].observed
            )

    def test_chunk_size_does_not_change_result(self, small_config, mixed_completeness):
        small = calibrate_thresholds(mixed_completeness, small_config.with_overrides(chunk_size=33))
        large = calibrate_thresholds(mixed_completeness, small_config.with_overrides(chunk_size=5000))

        assert small.result.curves.equals(large.result.curves)


class TestInvalidInputs:
    """Test rejection before any sampling."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"breaks": (0.5, 0.5)},
            {"breaks": (0.0, 0.9)},
            {"breaks": (0.1, 1.0)},
            {"beta_alpha": 0.0},
            {"beta_beta": -1.0},
            {"error_bound": 0.0},
            {"n_samples": 0},
        ],
    )
    def test_invalid_parameters(self, overrides):
        with pytest.raises(InvalidParameters):
            calibrate_thresholds([1.0, 0.9], CalibrationConfig(**overrides))

    @pytest.mark.parametrize("completeness", [[], [1.5], [0.9, -0.2], [float("nan")]])
    def test_invalid_completeness(self, completeness):
        with pytest.raises(ValidationError):
            calibrate_thresholds(completeness, CalibrationConfig(n_samples=10, seed=1))


def test_spawned_streams_are_deterministic():
    root = RandomState.create(5)
    again = RandomState.create(5)

    assert root.spawn(3).generator.random() == again.spawn(3).generator.random()
    assert root.spawn(1).seed == 6
