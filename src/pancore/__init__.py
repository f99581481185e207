"""pancore: completeness-aware core/rare gene calling with simulation-calibrated thresholds."""

from __future__ import annotations

__version__ = "0.1.0"

# Calibration core
from .prior import sample_prior
from .simulate import simulate_observed, simulate_observed_set
from .calibrate import ThresholdResult, calibrate, empirical_curves
from .pipeline import CalibrationRun, calibrate_thresholds
from .labels import label_count, label_genes

# Configuration and errors
from .config import CalibrationConfig, load_config, dump_config
from .enums import GeneLabel, Scenario
from .exceptions import (
    PancoreError,
    InvalidParameters,
    ThresholdNotFound,
    CalibrationAnomaly,
)

# I/O
from .io import load_completeness, load_counts, write_labels, write_curves

__all__ = [
    "__version__",
    # Calibration core
    "sample_prior",
    "simulate_observed",
    "simulate_observed_set",
    "ThresholdResult",
    "calibrate",
    "empirical_curves",
    "CalibrationRun",
    "calibrate_thresholds",
    "label_count",
    "label_genes",
    # Configuration and errors
    "CalibrationConfig",
    "load_config",
    "dump_config",
    "GeneLabel",
    "Scenario",
    "PancoreError",
    "InvalidParameters",
    "ThresholdNotFound",
    "CalibrationAnomaly",
    # I/O
    "load_completeness",
    "load_counts",
    "write_labels",
    "write_curves",
]
