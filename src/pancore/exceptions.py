"""
Custom exceptions for the pancore calibration engine.

All calibration failures are fatal for the current run; the ``details``
mapping carries enough context (scenario, bound, genome count) for a user to
adjust the configuration.
"""


class PancoreError(Exception):
    """Base exception for pancore errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(PancoreError):
    """Raised when configuration is invalid."""
    pass


class InvalidParameters(ConfigurationError):
    """Raised for bad Beta shape parameters, breakpoints or error bound."""
    pass


class ValidationError(PancoreError):
    """Raised when input validation fails."""
    pass


class StatisticalError(PancoreError):
    """Raised when statistical calibration fails."""
    pass


class ThresholdNotFound(StatisticalError):
    """Raised when an error curve never exceeds the error bound."""
    pass


class CalibrationAnomaly(StatisticalError):
    """Raised when the rare threshold is not below the core threshold."""
    pass
