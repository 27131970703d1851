"""
Utility helpers used by the migration tool.

This subpackage exposes the error taxonomy, structured event reports and
configuration pre-flight checks.
"""

from .errors import (
    ERRORS,
    ConfigError,
    FormatError,
    InvalidInputError,
    MigrationError,
    NetworkError,
    report_error,
    report_ok,
)
from .pre_flight_checks import PreFlightCheckError, check_destination_reachable, validate_config

__all__ = [
    "ERRORS",
    "ConfigError",
    "FormatError",
    "InvalidInputError",
    "MigrationError",
    "NetworkError",
    "PreFlightCheckError",
    "check_destination_reachable",
    "report_error",
    "report_ok",
    "validate_config",
]
