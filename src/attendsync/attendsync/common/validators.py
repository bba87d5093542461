from __future__ import annotations

import math
from typing import Any

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_id(value: Any, field_name: str) -> int:
    """Coerce an identifier to a positive int.

    Booleans and floats with a fractional part are rejected rather than truncated.
    """
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} is invalid")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field_name} is invalid")
    try:
        out = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field_name} is invalid")
    if out <= 0:
        raise ValidationError(f"{field_name} is invalid")
    return out


def require_percentage(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(out):
        raise ValidationError(f"{field_name} must be a number")
    if out < 0 or out > 100:
        raise ValidationError(f"{field_name} must be between 0 and 100")
    return out
