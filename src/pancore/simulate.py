"""Completeness-weighted simulation of observed gene counts."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from .exceptions import ValidationError

logger = logging.getLogger(__name__)


def as_completeness(values: Sequence[float]) -> np.ndarray:
    """Return a read-only float array of completeness values, checked against [0, 1]."""
    completeness = np.array(values, dtype=float)
    if completeness.ndim != 1 or completeness.size == 0:
        raise ValidationError(
            "Completeness must be a non-empty one-dimensional sequence",
            {"shape": list(completeness.shape)},
        )
    bad = ~np.isfinite(completeness) | (completeness < 0.0) | (completeness > 1.0)
    if bad.any():
        positions = np.flatnonzero(bad)
        raise ValidationError(
            f"{positions.size} completeness value(s) outside [0, 1]",
            {"positions": positions[:10].tolist(), "values": completeness[positions[:10]].tolist()},
        )
    completeness.setflags(write=False)
    return completeness


def simulate_observed(p: float, completeness: np.ndarray, rng: np.random.Generator) -> int:
    """Simulate how many genomes would show a gene of latent frequency ``p``.

    Each genome is a Bernoulli trial with success probability
    ``completeness_i * p``, so the count is one Poisson-binomial draw.
    Detection probabilities are not clamped.
    """
    detection = completeness * p
    uniforms = rng.random(completeness.shape[0])
    return int(np.count_nonzero(uniforms <= detection))


def simulate_observed_set(
    priors: np.ndarray,
    completeness: np.ndarray,
    rng: np.random.Generator,
    chunk_size: int = 2000,
) -> np.ndarray:
    """Simulate one observed count per latent frequency.

    Draws are processed in blocks of ``chunk_size`` rows, each block holding
    ``chunk_size x N`` uniforms.

    Args:
        priors: Latent frequencies, one per Monte Carlo draw
        completeness: Per-genome completeness in [0, 1]
        rng: Caller-owned random generator
        chunk_size: Draws per vectorised block

    Returns:
        Integer array of observed counts in [0, N], aligned with ``priors``
    """
    priors = np.asarray(priors, dtype=float)
    n_genomes = completeness.shape[0]
    observed = np.empty(priors.shape[0], dtype=np.int64)

    for start in range(0, priors.shape[0], chunk_size):
        block = priors[start:start + chunk_size]
        detection = block[:, np.newaxis] * completeness[np.newaxis, :]
        uniforms = rng.random((block.shape[0], n_genomes))
        observed[start:start + block.shape[0]] = np.count_nonzero(uniforms <= detection, axis=1)

    logger.debug(
        "Simulated %d observed counts over %d genomes (mean %.2f)",
        observed.size, n_genomes, observed.mean() if observed.size else float("nan"),
    )
    return observed
