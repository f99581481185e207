"""
Empirical error calibration of core/rare count thresholds.

This module provides:
- Misclassification curves over candidate thresholds t = 0..N
- First-crossing threshold search against an error bound
- The ``ThresholdResult`` returned by a calibration run
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
import pandera as pa

from .enums import Scenario
from .exceptions import CalibrationAnomaly, ThresholdNotFound, ValidationError
from .schemas import ErrorCurvesSchema

logger = logging.getLogger(__name__)

CURVE_COLUMNS = ("core_as_notcore", "notcore_as_core", "rare_as_notrare", "notrare_as_rare")


@dataclass
class ThresholdResult:
    """Calibrated thresholds plus the curves they were read from."""
    core_threshold: int
    rare_threshold: int
    n_genomes: int
    n_samples: int
    error_bound: float
    curves: pd.DataFrame
    clamped: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_separated(self) -> bool:
        return self.rare_threshold < self.core_threshold

    def check_separation(self) -> "ThresholdResult":
        """Raise ``CalibrationAnomaly`` unless rare < core."""
        if not self.is_separated:
            raise CalibrationAnomaly(
                f"Rare threshold {self.rare_threshold} is not below core threshold "
                f"{self.core_threshold} (N={self.n_genomes}, error bound {self.error_bound})",
                self.to_dict(),
            )
        return self

    @property
    def core_percent(self) -> float:
        return 100.0 * self.core_threshold / self.n_genomes

    @property
    def rare_percent(self) -> float:
        return 100.0 * self.rare_threshold / self.n_genomes

    def frequency_summary(self) -> list[str]:
        """Human-readable threshold lines, as counts and as genome percentages."""
        return [
            f"Core threshold: >= {self.core_threshold} observations or >= {self.core_percent:.2f}% frequency",
            f"Rare threshold: <= {self.rare_threshold} observations or <= {self.rare_percent:.2f}% frequency",
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "core_threshold": int(self.core_threshold),
            "rare_threshold": int(self.rare_threshold),
            "core_percent": float(self.core_percent),
            "rare_percent": float(self.rare_percent),
            "n_genomes": int(self.n_genomes),
            "n_samples": int(self.n_samples),
            "error_bound": float(self.error_bound),
            "separated": bool(self.is_separated),
            "clamped": list(self.clamped),
        }


def _checked(observed: np.ndarray, scenario: Scenario, n_genomes: int) -> np.ndarray:
    values = np.sort(np.asarray(observed))
    if values.size == 0:
        raise ValidationError(f"No observed samples for scenario {scenario}", {"scenario": str(scenario)})
    if values[0] < 0 or values[-1] > n_genomes:
        raise ValidationError(
            f"Observed counts for scenario {scenario} fall outside [0, {n_genomes}]",
            {"scenario": str(scenario), "min": int(values[0]), "max": int(values[-1])},
        )
    return values


@pa.check_output(ErrorCurvesSchema.to_schema())
def empirical_curves(observed_sets: Mapping[Scenario, np.ndarray], n_genomes: int) -> pd.DataFrame:
    """Empirical misclassification probabilities for every candidate threshold.

    Columns, each indexed by threshold ``t``:
        core_as_notcore: P(core count < t)
        notcore_as_core: P(not-core count >= t)
        rare_as_notrare: P(rare count > t)
        notrare_as_rare: P(not-rare count <= t)
    """
    thresholds = np.arange(n_genomes + 1)
    core = _checked(observed_sets[Scenario.CORE], Scenario.CORE, n_genomes)
    not_core = _checked(observed_sets[Scenario.NOT_CORE], Scenario.NOT_CORE, n_genomes)
    rare = _checked(observed_sets[Scenario.RARE], Scenario.RARE, n_genomes)
    not_rare = _checked(observed_sets[Scenario.NOT_RARE], Scenario.NOT_RARE, n_genomes)

    below_core = np.searchsorted(core, thresholds, side="left")
    below_not_core = np.searchsorted(not_core, thresholds, side="left")
    upto_rare = np.searchsorted(rare, thresholds, side="right")
    upto_not_rare = np.searchsorted(not_rare, thresholds, side="right")

    return pd.DataFrame(
        {
            "core_as_notcore": below_core / core.size,
            "notcore_as_core": (not_core.size - below_not_core) / not_core.size,
            "rare_as_notrare": (rare.size - upto_rare) / rare.size,
            "notrare_as_rare": upto_not_rare / not_rare.size,
        },
        index=pd.Index(thresholds, name="threshold"),
    )


def first_crossing(curve: np.ndarray, error_bound: float) -> Optional[int]:
    """Index of the first value strictly above ``error_bound``, or ``None``."""
    above = np.flatnonzero(np.asarray(curve) > error_bound)
    return int(above[0]) if above.size else None


def _resolve(
    curve: pd.Series,
    scenario: Scenario,
    error_bound: float,
    n_genomes: int,
    on_missing: str,
) -> Tuple[int, bool]:
    threshold = first_crossing(curve.to_numpy(), error_bound)
    if threshold is not None:
        return threshold, False

    details = {
        "scenario": str(scenario),
        "curve": curve.name,
        "error_bound": error_bound,
        "n_genomes": n_genomes,
        "max_probability": float(curve.max()),
    }
    if on_missing == "clamp":
        logger.warning(
            "%s curve never exceeds error bound %s; clamping %s threshold to N=%d",
            curve.name, error_bound, scenario, n_genomes,
        )
        return n_genomes, True
    raise ThresholdNotFound(
        f"{curve.name} never exceeds error bound {error_bound} for any threshold in "
        f"[0, {n_genomes}] (scenario {scenario}, max probability {details['max_probability']:.4g})",
        details,
    )


def calibrate(
    observed_sets: Mapping[Scenario, np.ndarray],
    error_bound: float,
    n_genomes: int,
    on_missing: str = "raise",
) -> ThresholdResult:
    """Select core and rare count thresholds from simulated observed counts.

    ``core_threshold`` is the smallest ``t`` at which P(core count < t)
    exceeds ``error_bound``; ``rare_threshold`` is the smallest ``t`` at which
    P(not-rare count <= t) does. Both are the first violating point, taken
    directly.

    Args:
        observed_sets: Observed counts per scenario
        error_bound: Tolerated misclassification probability
        n_genomes: Number of genomes N
        on_missing: ``"raise"`` for ``ThresholdNotFound`` or ``"clamp"`` to N
            when a curve never crosses

    Returns:
        ThresholdResult with both thresholds and all four curves

    Raises:
        ThresholdNotFound: If a curve never exceeds the bound and
            ``on_missing`` is ``"raise"``
    """
    curves = empirical_curves(observed_sets, n_genomes)

    core_threshold, core_clamped = _resolve(
        curves["core_as_notcore"], Scenario.CORE, error_bound, n_genomes, on_missing
    )
    rare_threshold, rare_clamped = _resolve(
        curves["notrare_as_rare"], Scenario.NOT_RARE, error_bound, n_genomes, on_missing
    )
    clamped = tuple(
        name for name, flag in (("core", core_clamped), ("rare", rare_clamped)) if flag
    )

    result = ThresholdResult(
        core_threshold=core_threshold,
        rare_threshold=rare_threshold,
        n_genomes=n_genomes,
        n_samples=len(observed_sets[Scenario.CORE]),
        error_bound=error_bound,
        curves=curves,
        clamped=clamped,
    )

    logger.info("Core threshold %d, rare threshold %d (N=%d)", core_threshold, rare_threshold, n_genomes)
    if not result.is_separated:
        logger.warning(
            "Calibration anomaly: rare threshold %d is not below core threshold %d",
            rare_threshold, core_threshold,
        )
    return result
