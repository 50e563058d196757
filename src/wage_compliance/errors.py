"""Error taxonomy for the compliance engine.

Every error carries a stable ``code`` so callers can map failures to
structured results without parsing messages.
"""

from __future__ import annotations

from datetime import date
from typing import Any


class WageComplianceError(Exception):
    """Base class for all engine errors."""

    code = "ENGINE_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(WageComplianceError):
    """Raised when an input is malformed or out of range."""

    code = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(
            f"Invalid {field}: {message}",
            {"field": field, "value": repr(value)},
        )


class ConfigurationError(WageComplianceError):
    """Raised when the rate or rule configuration cannot answer a query."""

    code = "RATE_LOOKUP_FAILED"


class ConfigurationLoadError(ConfigurationError):
    """Raised when a configuration document is missing or malformed."""

    code = "CONFIGURATION_INVALID"

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"{source}: {message}", {"source": source})


class NoApplicableRatePeriod(ConfigurationError):
    """Raised when no rate period covers the pay date."""

    def __init__(self, pay_date: date):
        self.pay_date = pay_date
        super().__init__(
            f"No rate period in force on {pay_date.isoformat()}",
            {"pay_date": pay_date.isoformat()},
        )


class NoApplicableRateBand(ConfigurationError):
    """Raised when no age band in the period covers the worker's age."""

    def __init__(self, age: int, pay_date: date):
        self.age = age
        self.pay_date = pay_date
        super().__init__(
            f"No rate band for age {age} on {pay_date.isoformat()}",
            {"age": age, "pay_date": pay_date.isoformat()},
        )


class NoApplicableOffsetRule(ConfigurationError):
    """Raised when no accommodation offset rule covers the pay date."""

    def __init__(self, pay_date: date):
        self.pay_date = pay_date
        super().__init__(
            f"No accommodation offset rule in force on {pay_date.isoformat()}",
            {"pay_date": pay_date.isoformat()},
        )


class ComputationError(WageComplianceError):
    """Raised when an internal invariant fails during a calculation."""

    code = "COMPUTATION_ERROR"
