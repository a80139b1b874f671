from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def text_value(value, field_name: str) -> str:
    """Trimmed text of a submitted field; None becomes "". Non-text JSON values are rejected."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    return value.strip()


def require_non_empty(value: Optional[str], field_name: str) -> str:
    value = text_value(value, field_name)
    if not value:
        raise ValidationError(f"{field_name} is required")
    return value


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def optional_text(value: Optional[str]) -> Optional[str]:
    """Trim a free-text field; blank becomes None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_positive_int(value, field_name: str, *, default: int, maximum: Optional[int] = None) -> int:
    if value is None or value == "":
        return default
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if n < 1:
        raise ValidationError(f"{field_name} must be at least 1")
    if maximum is not None and n > maximum:
        raise ValidationError(f"{field_name} must be at most {maximum}")
    return n
