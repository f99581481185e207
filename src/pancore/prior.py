"""Truncated Beta prior over latent gene frequencies."""

from __future__ import annotations

import logging

import numpy as np
from scipy import stats

from .exceptions import InvalidParameters

logger = logging.getLogger(__name__)


def beta_prior(alpha: float, beta: float):
    """Frozen ``scipy.stats.beta`` distribution, rejecting non-positive shapes."""
    if not alpha > 0 or not beta > 0:
        raise InvalidParameters(
            f"Beta shape parameters must be positive, got alpha={alpha}, beta={beta}",
            {"alpha": alpha, "beta": beta},
        )
    return stats.beta(alpha, beta)


def sample_prior(
    alpha: float,
    beta: float,
    count: int,
    breakpoint: float,
    keep_upper: bool,
    rng: np.random.Generator,
) -> np.ndarray:
    """Draw latent frequencies from Beta(alpha, beta) restricted to one side of a breakpoint.

    Uniform values are drawn on ``[CDF(breakpoint), 1)`` when ``keep_upper`` is
    set and on ``[0, CDF(breakpoint))`` otherwise, then mapped through the Beta
    quantile function. A breakpoint of exactly 0 or 1 collapses the interval
    to zero or full width; the draw still succeeds.

    Args:
        alpha: First Beta shape parameter
        beta: Second Beta shape parameter
        count: Number of draws
        breakpoint: Latent-frequency cutoff
        keep_upper: Keep the mass above (True) or below (False) the cutoff
        rng: Caller-owned random generator

    Returns:
        Array of ``count`` latent frequencies
    """
    dist = beta_prior(alpha, beta)
    if count < 0:
        raise InvalidParameters(f"count must be non-negative, got {count}", {"count": count})

    cdf_value = float(dist.cdf(breakpoint))
    if keep_upper:
        low, high = cdf_value, 1.0
    else:
        low, high = 0.0, cdf_value

    if high <= low:
        logger.warning(
            "Breakpoint %s leaves a zero-width prior interval (keep_upper=%s)",
            breakpoint, keep_upper,
        )

    uniforms = rng.uniform(low, high, size=count)
    return dist.ppf(uniforms)
