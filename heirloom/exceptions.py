"""
Custom exceptions for Heirloom.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across all Heirloom modules. All exceptions inherit from HeirloomError,
enabling catch-all handling when needed.

Exception Hierarchy
-------------------
HeirloomError (base)
├── ConfigurationError - Invalid configuration or parameters
├── ValidationError - Data validation failures
│   └── ProfileValidationError - Household profile rejected before simulation
└── SimulationError - A projection could not be completed

Usage
-----
>>> from heirloom.exceptions import ProfileValidationError
>>>
>>> try:
...     profile = load_profile(payload)
... except ProfileValidationError as e:
...     print(f"Rejected field {e.field}: {e}")
"""

from __future__ import annotations

from typing import Optional


class HeirloomError(Exception):
    """
    Base exception for all Heirloom errors.

    Examples
    --------
    >>> try:
    ...     bundle = ComprehensiveProjection().run(profile)
    ... except HeirloomError as e:
    ...     logger.error(f"Projection failed: {e}")
    """
    pass


class ConfigurationError(HeirloomError):
    """
    Invalid configuration or parameters.

    Raised when run configuration or assumption tables are inconsistent,
    such as a scenario adjustment that would push the event multiplier
    below zero.
    """
    pass


class ValidationError(HeirloomError):
    """
    Data validation failures.

    Raised when input data fails validation checks, such as an unknown
    categorical key in an actuarial lookup.

    Examples
    --------
    >>> raise ValidationError(
    ...     "Unknown gender 'x'. Expected one of: female, male."
    ... )
    """
    pass


class ProfileValidationError(ValidationError):
    """
    Household profile rejected before any simulation runs.

    Parameters
    ----------
    field : str
        Dotted path of the offending field, e.g.
        ``"financial_foundation.current_net_worth"``.
    message : str
        Human-readable reason.

    Examples
    --------
    >>> err = ProfileValidationError("core_identity.age", "must be >= 18")
    >>> err.field
    'core_identity.age'
    >>> str(err)
    'core_identity.age: must be >= 18'
    """

    def __init__(self, field: str, message: str, *, errors: Optional[list] = None):
        self.field = field
        self.message = message
        self.errors = errors or []
        super().__init__(f"{field}: {message}")


class SimulationError(HeirloomError):
    """
    A projection could not be completed.

    Raised when a path generator returns something the aggregator cannot
    reduce (e.g. a non-numeric or negative value).
    """
    pass
