"""
Custom validators and validation utilities.
"""

import re
from typing import Any, Optional

import numpy as np

from core.exceptions import ValidationError

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def _require_number(value: Any, field_name: str) -> float:
    if value is None:
        raise ValidationError("Value cannot be None", field=field_name, value=value)
    if isinstance(value, bool) or not isinstance(value, (int, float, np.floating, np.integer)):
        raise ValidationError("Value must be a number", field=field_name, value=value)
    if not np.isfinite(value):
        raise ValidationError("Value must be finite", field=field_name, value=value)
    return float(value)


def validate_finite(value: float, field_name: str = "value") -> float:
    """
    Validate that value is a finite number (rates may be negative).

    Raises:
        ValidationError: If value is None, non-numeric, NaN or infinite
    """
    return _require_number(value, field_name)


def validate_positive(value: float, field_name: str = "value", strict: bool = True) -> float:
    """
    Validate that value is positive.

    Args:
        value: Value to validate
        field_name: Name of the field for error messages
        strict: If True, value must be > 0; if False, >= 0

    Returns:
        Validated value

    Raises:
        ValidationError: If value is invalid
    """
    value = _require_number(value, field_name)

    if strict and value <= 0:
        raise ValidationError("Value must be positive", field=field_name, value=value)

    if not strict and value < 0:
        raise ValidationError("Value cannot be negative", field=field_name, value=value)

    return value


def validate_currency_code(code: str, field_name: str = "currency") -> str:
    """
    Validate an ISO 4217 style currency code.

    Returns:
        Upper-cased code
    """
    if not code or not isinstance(code, str):
        raise ValidationError("Currency code cannot be empty", field=field_name, value=code)

    code = code.strip().upper()
    if not _CURRENCY_RE.match(code):
        raise ValidationError("Currency code must be 3 letters", field=field_name, value=code)
    return code


def validate_barrier_range(
    lower: Optional[float],
    upper: Optional[float],
    field_name: str = "barriers",
) -> None:
    """Lower and upper barriers must both be present, positive and ordered."""
    if lower is None or upper is None:
        raise ValidationError(
            "Both lower and upper barriers are required",
            field=field_name,
            value=(lower, upper),
        )
    validate_positive(lower, "lower_barrier")
    validate_positive(upper, "upper_barrier")
    if lower >= upper:
        raise ValidationError(
            "Lower barrier must be below upper barrier",
            field=field_name,
            value=(lower, upper),
        )
