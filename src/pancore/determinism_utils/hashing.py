"""Hashing utilities for determinism verification."""

from __future__ import annotations

import hashlib
import json
import pathlib
from typing import TYPE_CHECKING, Mapping

import numpy as np

if TYPE_CHECKING:
    from ..pipeline import CalibrationRun


def hash_array(array: np.ndarray, precision: int = 12) -> str:
    """Compute SHA256 hash of numpy array for determinism testing.

    Args:
        array: NumPy array to hash
        precision: Decimal precision for rounding (to avoid floating point noise)

    Returns:
        SHA256 hash as hexadecimal string
    """
    array = np.asarray(array)
    if array.dtype != np.float64:
        array = array.astype(np.float64)

    rounded = np.round(array, decimals=precision)
    return hashlib.sha256(np.ascontiguousarray(rounded).tobytes()).hexdigest()


def hash_file(path: str | pathlib.Path) -> str:
    """Compute SHA256 hash of a file."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1 << 20), b""):  # 1MB chunks
            h.update(chunk)
    return h.hexdigest()


def run_digest(run: "CalibrationRun") -> dict[str, str]:
    """Hash every stochastic product of a calibration run.

    One entry per scenario sample set, one for the curves and one for the
    thresholds, so a mismatch points at the first stage that diverged.
    """
    digest: dict[str, str] = {}
    for scenario, samples in run.samples.items():
        digest[f"prior.{scenario}"] = hash_array(samples.prior)
        digest[f"observed.{scenario}"] = hash_array(samples.observed)
    digest["curves"] = hash_array(run.result.curves.to_numpy())
    thresholds = json.dumps(
        {"core": run.result.core_threshold, "rare": run.result.rare_threshold},
        sort_keys=True,
    )
    digest["thresholds"] = hashlib.sha256(thresholds.encode()).hexdigest()
    return digest


def write_manifest(digest: Mapping[str, str], out_manifest: str | pathlib.Path) -> pathlib.Path:
    """Write a manifest in the format ``<hash>  <name>``, one entry per line."""
    manifest_path = pathlib.Path(out_manifest)
    manifest_path.parent.mkdir(parents=True, exist_ok=True)

    with open(manifest_path, "w", encoding="utf-8") as f:
        for name in sorted(digest):
            f.write(f"{digest[name]}  {name}\n")
    return manifest_path


def read_manifest(path: str | pathlib.Path) -> dict[str, str]:
    entries: dict[str, str] = {}
    with open(path, "r", encoding="utf-8") as fh:
        for raw_line in fh:
            line = raw_line.strip()
            if not line:
                continue
            parts = line.split("  ", 1)
            if len(parts) != 2:
                continue
            hash_value, name = parts
            entries[name] = hash_value
    return entries


def assert_digests_stable(previous: Mapping[str, str], current: Mapping[str, str]) -> None:
    """Ensure two digests contain identical hashes."""
    if dict(previous) == dict(current):
        return

    prev_keys = set(previous)
    curr_keys = set(current)
    details = {
        "missing": sorted(prev_keys - curr_keys),
        "unexpected": sorted(curr_keys - prev_keys),
        "changed": sorted(key for key in prev_keys & curr_keys if previous[key] != current[key]),
    }
    raise AssertionError(f"Digest mismatch detected: {json.dumps(details, indent=2)}")
