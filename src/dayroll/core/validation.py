# src/dayroll/core/validation.py

from __future__ import annotations

from typing import Any

from .errors import ValidationError


def require_text(value: Any, field: str) -> str:
    """Return the stripped string or raise ValidationError if it is blank."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


def coerce_id(value: Any, field: str = "id") -> int:
    # bool is an int subclass; True must not become record 1.
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValidationError(f"{field} must be an integer, got {value!r}")
