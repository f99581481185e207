"""
Configuration validation for pancore.

Checks a raw configuration mapping (as read from YAML) and reports every
problem at once, with warnings for settings that are legal but likely to
give unstable thresholds.
"""

from typing import Dict, Any, List, Tuple
import logging
import math

from .config import MISSING_POLICIES, CalibrationConfig, config_from_dict
from .exceptions import ConfigurationError

KNOWN_KEYS = (
    'breaks', 'error_bound', 'n_samples', 'beta_alpha', 'beta_beta',
    'seed', 'chunk_size', 'n_jobs', 'on_missing', 'strict_separation',
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ConfigValidator:
    """Validate configuration parameters for a calibration run."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.errors = []
        self.warnings = []

    def validate_config(self, config: Dict[str, Any]) -> Tuple[bool, List[str], List[str]]:
        """Validate complete configuration.

        Args:
            config: Configuration dictionary to validate

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        self.errors = []
        self.warnings = []

        for key in config:
            if key not in KNOWN_KEYS:
                self.errors.append(f"Unknown configuration key: {key}")

        if 'breaks' in config:
            self._validate_breaks(config['breaks'])
        self._validate_prior(config)
        self._validate_sampling(config)
        self._validate_error_bound(config)
        self._validate_execution(config)

        is_valid = len(self.errors) == 0
        return is_valid, self.errors, self.warnings

    def _validate_breaks(self, breaks: Any) -> None:
        if isinstance(breaks, str):
            parts = [part.strip() for part in breaks.split(',') if part.strip()]
        elif isinstance(breaks, (list, tuple)):
            parts = list(breaks)
        else:
            self.errors.append("breaks must be a list or a comma-separated string")
            return

        if len(parts) != 2:
            self.errors.append(f"breaks must contain exactly two values, got {len(parts)}")
            return

        values = []
        for i, part in enumerate(parts):
            try:
                value = float(part)
            except (TypeError, ValueError):
                self.errors.append(f"breaks[{i}] must be numeric")
                continue
            if not math.isfinite(value) or not 0 < value < 1:
                self.errors.append(f"breaks[{i}] must be strictly between 0 and 1")
            values.append(value)

        if len(values) == 2:
            if values[0] == values[1]:
                self.errors.append("breaks must be two different values")
            elif min(values) >= 0.5 or max(values) <= 0.5:
                self.warnings.append("breaks do not straddle 0.5; core and rare regions may overlap heavily")

    def _validate_prior(self, config: Dict[str, Any]) -> None:
        for key in ('beta_alpha', 'beta_beta'):
            if key in config:
                value = config[key]
                if not _is_number(value):
                    self.errors.append(f"{key} must be numeric")
                elif value <= 0:
                    self.errors.append(f"{key} must be positive")

        alpha = config.get('beta_alpha', 0.1)
        beta = config.get('beta_beta', 0.1)
        if _is_number(alpha) and _is_number(beta) and (alpha >= 1 or beta >= 1):
            self.warnings.append(
                f"Beta({alpha}, {beta}) is not U-shaped; gene frequencies are usually concentrated near 0 and 1"
            )

    def _validate_sampling(self, config: Dict[str, Any]) -> None:
        if 'n_samples' in config:
            value = config['n_samples']
            if not _is_int(value):
                self.errors.append("n_samples must be an integer")
            elif value < 1:
                self.errors.append("n_samples must be positive")
            elif value < 1000:
                self.warnings.append(f"n_samples is low ({value}), consider >= 10000 for stable tail probabilities")

        if 'chunk_size' in config:
            value = config['chunk_size']
            if not _is_int(value):
                self.errors.append("chunk_size must be an integer")
            elif value < 1:
                self.errors.append("chunk_size must be positive")

    def _validate_error_bound(self, config: Dict[str, Any]) -> None:
        if 'error_bound' not in config:
            return
        value = config['error_bound']
        if not _is_number(value):
            self.errors.append("error_bound must be numeric")
        elif not 0 < value <= 1:
            self.errors.append("error_bound must be in (0, 1]")
        elif value > 0.25:
            self.warnings.append(f"error_bound is high ({value}); thresholds will be loose")
        elif _is_int(config.get('n_samples')) and config['n_samples'] > 0 and value * config['n_samples'] < 10:
            self.warnings.append(
                "error_bound * n_samples < 10; the tail probability is resolved by very few draws"
            )

    def _validate_execution(self, config: Dict[str, Any]) -> None:
        if 'seed' in config and config['seed'] is not None:
            if not _is_int(config['seed']) or config['seed'] < 0:
                self.errors.append("seed must be a non-negative integer or null")

        if 'n_jobs' in config:
            value = config['n_jobs']
            if not _is_int(value) or (value < 1 and value != -1):
                self.errors.append("n_jobs must be a positive integer or -1")

        if 'on_missing' in config and config['on_missing'] not in MISSING_POLICIES:
            self.errors.append(f"on_missing must be one of {', '.join(MISSING_POLICIES)}")

        if 'strict_separation' in config and not isinstance(config['strict_separation'], bool):
            self.errors.append("strict_separation must be a boolean")

    def validate_and_build(self, config: Dict[str, Any]) -> CalibrationConfig:
        """Validate a mapping and build the config, raising on any error."""
        is_valid, errors, warnings = self.validate_config(config)
        for warning in warnings:
            self.logger.warning(warning)
        if not is_valid:
            raise ConfigurationError(
                f"Configuration has {len(errors)} error(s): {'; '.join(errors)}",
                {"errors": errors, "warnings": warnings},
            )
        return config_from_dict(config).validate()
