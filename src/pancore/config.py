"""Configuration management for the pancore calibration engine."""

from __future__ import annotations

import hashlib
import json
import math
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .exceptions import ConfigurationError, InvalidParameters

MISSING_POLICIES = ("raise", "clamp")


def _is_real(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def parse_breaks(value: str | Tuple[float, float] | list) -> Tuple[float, float]:
    """Parse two comma-separated breakpoints into an ordered ``(low, high)`` pair."""
    if isinstance(value, str):
        parts = [part.strip() for part in value.split(",") if part.strip()]
    else:
        parts = list(value)

    if len(parts) != 2:
        raise InvalidParameters(
            f"Expected exactly two breakpoints, got {len(parts)}",
            {"breaks": value},
        )
    try:
        values = [float(part) for part in parts]
    except (TypeError, ValueError) as exc:
        raise InvalidParameters(f"Breakpoints must be numeric: {value}", {"breaks": value}) from exc

    return min(values), max(values)


@dataclass
class CalibrationConfig:
    """Parameters of one calibration run.

    Attributes:
        breaks: Latent-frequency cutoffs; stored as ``(low, high)`` whatever
            order they were supplied in.
        error_bound: Tolerated misclassification probability.
        n_samples: Monte Carlo draws per scenario.
        beta_alpha: First shape parameter of the Beta prior.
        beta_beta: Second shape parameter of the Beta prior.
        seed: Root seed; ``None`` draws one from OS entropy.
        chunk_size: Draws simulated per vectorised block.
        n_jobs: Parallel scenario workers (1 runs sequentially, -1 uses all cores).
        on_missing: ``"raise"`` or ``"clamp"`` when an error curve never crosses.
        strict_separation: Raise when the rare threshold is not below the core one.
    """
    breaks: Tuple[float, float] = (0.05, 0.95)
    error_bound: float = 0.05
    n_samples: int = 10000
    beta_alpha: float = 0.1
    beta_beta: float = 0.1
    seed: Optional[int] = None
    chunk_size: int = 2000
    n_jobs: int = 1
    on_missing: str = "clamp"
    strict_separation: bool = False

    def __post_init__(self) -> None:
        self.breaks = parse_breaks(self.breaks)

    @property
    def low_break(self) -> float:
        return self.breaks[0]

    @property
    def high_break(self) -> float:
        return self.breaks[1]

    def validate(self) -> "CalibrationConfig":
        """Check every parameter once, before any sampling happens."""
        low, high = self.breaks
        for name, value in (("low", low), ("high", high)):
            if not math.isfinite(value) or not 0.0 < value < 1.0:
                raise InvalidParameters(
                    f"Breakpoint {name}={value} must lie strictly between 0 and 1",
                    {"breaks": list(self.breaks)},
                )
        if low == high:
            raise InvalidParameters(
                f"Breakpoints must differ, got {low} twice",
                {"breaks": list(self.breaks)},
            )

        for name in ("beta_alpha", "beta_beta"):
            value = getattr(self, name)
            if not _is_real(value) or value <= 0:
                raise InvalidParameters(f"{name} must be positive, got {value}", {name: value})

        if not _is_real(self.error_bound) or not 0.0 < self.error_bound <= 1.0:
            raise InvalidParameters(
                f"error_bound must be in (0, 1], got {self.error_bound}",
                {"error_bound": self.error_bound},
            )

        for name in ("n_samples", "chunk_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise InvalidParameters(f"{name} must be a positive integer, got {value}", {name: value})

        if isinstance(self.n_jobs, bool) or not isinstance(self.n_jobs, int) or (self.n_jobs < 1 and self.n_jobs != -1):
            raise InvalidParameters(f"n_jobs must be >= 1 or -1, got {self.n_jobs}", {"n_jobs": self.n_jobs})

        if self.on_missing not in MISSING_POLICIES:
            raise InvalidParameters(
                f"on_missing must be one of {MISSING_POLICIES}, got {self.on_missing!r}",
                {"on_missing": self.on_missing},
            )

        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int) or self.seed < 0):
            raise InvalidParameters(f"seed must be a non-negative integer, got {self.seed}", {"seed": self.seed})

        return self

    def with_overrides(self, **overrides: Any) -> "CalibrationConfig":
        """Return a copy with every non-``None`` override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        data = asdict(self)
        data["breaks"] = list(self.breaks)
        return data

    def config_hash(self) -> str:
        """Compute deterministic hash of configuration."""
        config_str = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]


def config_from_dict(data: Dict[str, Any]) -> CalibrationConfig:
    known = {field.name for field in fields(CalibrationConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}", {"unknown": unknown})
    return CalibrationConfig(**data)


def read_config_mapping(path: str | Path) -> Dict[str, Any]:
    """Read the raw configuration mapping from a YAML file."""
    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping", {"path": str(path)})
    return data


def load_config(path: str | Path) -> CalibrationConfig:
    """Load configuration from YAML file."""
    return config_from_dict(read_config_mapping(path))


def dump_config(config: CalibrationConfig, path: str | Path) -> None:
    """Save configuration to YAML file."""
    with open(path, 'w') as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False)
