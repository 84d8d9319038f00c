from __future__ import annotations

from datetime import date
from typing import Any

from dailyops.time_utils import parse_day


# Maximum amount: Rs 9,999,999.99 (999,999,999 paise)
# This prevents database overflow issues and nonsensical bills
MAX_AMOUNT_PAISE = 999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level missing worker, customer, product, inventory or bill."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., value already set for the day)."""


class NoUnbilledDeliveriesError(ConflictError):
    """Raised when a bill is requested for a period with nothing left to bill."""


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion for JSON/CLI input.

    Rejects bools, floats, decimals and scientific notation rather than
    silently truncating them.
    """
    if value is None:
        raise ValidationError(f"{field} is required")
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def require_positive_int(value: Any, field: str) -> int:
    number = coerce_int(value, field)
    if number <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return number


def require_non_negative_int(value: Any, field: str) -> int:
    number = coerce_int(value, field)
    if number < 0:
        raise ValidationError(f"{field} cannot be negative")
    return number


def require_amount_paise(value: Any, field: str, *, allow_zero: bool = False) -> int:
    amount = require_non_negative_int(value, field) if allow_zero else require_positive_int(value, field)
    if amount > MAX_AMOUNT_PAISE:
        raise ValidationError(f"{field} exceeds the maximum of {MAX_AMOUNT_PAISE} paise")
    return amount


def require_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValidationError(f"{field} must be a boolean")


def require_text(value: Any, field: str, *, max_length: int = 255) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    text = str(value).strip()
    if len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text


def require_day(value: Any, field: str) -> date:
    """Accept a date or a YYYY-MM-DD string; anything else is rejected."""
    if isinstance(value, date):
        return value
    try:
        return parse_day(value)
    except ValueError:
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format")


def optional_day(value: Any, field: str) -> date | None:
    if value is None or value == "":
        return None
    return require_day(value, field)


def require_items(items: Any, field: str) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise ValidationError(f"{field} array is required and cannot be empty")
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"{field}[{index}] must be an object")
    return items
