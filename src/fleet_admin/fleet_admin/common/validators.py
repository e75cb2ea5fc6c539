from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from ..core.constants import MAX_AMOUNT
from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_max_length(value: str, field_name: str, max_len: int) -> str:
    if len(value) > max_len:
        raise ValidationError(f"{field_name} cannot exceed {max_len} characters")
    return value


def require_non_empty(value: Any, field_name: str, *, max_len: Optional[int] = None) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    text = str(value).strip()
    if max_len is not None:
        require_max_length(text, field_name, max_len)
    return text


def optional_text(value: Any, field_name: str = "Text", *, max_len: Optional[int] = None) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if text and max_len is not None:
        require_max_length(text, field_name, max_len)
    return text or None


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_pattern(value: str, pattern: str, message: str) -> str:
    if not re.fullmatch(pattern, value or ""):
        raise ValidationError(message)
    return value


def require_choice(value: Any, enum_cls: Type[E], message: str) -> E:
    try:
        return enum_cls(str(value).strip().lower())
    except (ValueError, AttributeError):
        raise ValidationError(message)


def require_amount(value: Any, field_name: str) -> float:
    """Parse a money amount: a finite number between 0 and the DECIMAL(12, 2) maximum.

    NaN and Infinity (strings or the bare JSON literals) are rejected; they would
    slip through every comparison below.
    """
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        amount = float(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(amount):
        raise ValidationError(f"{field_name} must be a number")
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    if round(amount, 2) > MAX_AMOUNT:
        raise ValidationError(f"{field_name} cannot exceed {MAX_AMOUNT:.2f}")
    return amount


def require_paid_within_total(paid: float, total: float) -> None:
    if paid > total:
        raise ValidationError("Paid amount cannot exceed total amount")


def parse_id(value: Any, field_name: str) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name}")
    if parsed <= 0:
        raise ValidationError(f"Invalid {field_name}")
    return parsed


def optional_id(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return parse_id(value, field_name)
