"""Decimal helpers shared by the calculators."""

from __future__ import annotations

import hashlib
import json
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from wage_compliance.errors import ValidationError

PRECISION = Decimal("0.0001")  # 4 decimal places for rates and ratios
OUTPUT_PRECISION = Decimal("0.01")  # 2 decimal places for money and percentages

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def round_to_pence(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (pence)."""
    return amount.quantize(OUTPUT_PRECISION, rounding=ROUND_HALF_UP)


def quantize_rate(amount: Decimal) -> Decimal:
    """Round a rate or ratio to 4 decimal places."""
    return amount.quantize(PRECISION, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, field: str, allow_negative: bool = False) -> Decimal:
    """Coerce a numeric input to Decimal.

    Floats are converted through their ``str`` form so that 10.1 stays
    10.1 rather than its binary expansion.

    Raises:
        ValidationError: If the value is not a finite number, or is
            negative when ``allow_negative`` is False
    """
    if isinstance(value, bool) or not isinstance(value, (Decimal, int, float)):
        raise ValidationError(field, "must be a number", value)
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError(field, "must be a number", value) from exc
    if not result.is_finite():
        raise ValidationError(field, "must be finite", value)
    if not allow_negative and result < 0:
        raise ValidationError(field, "must not be negative", value)
    return result


def fingerprint(payload: dict[str, Any]) -> str:
    """Compute a deterministic hash of a canonical dict."""
    json_str = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(json_str.encode()).hexdigest()[:32]
