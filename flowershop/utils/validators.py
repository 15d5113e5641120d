from typing import Any, Optional

from ..services.errors import ValidationError


# upper bound of the Integer columns quantities and ids are stored in
MAX_INT = 2**31 - 1


def ensure_positive_int(value: Any, field: str, maximum: int = MAX_INT) -> int:
    """Coerce ``value`` to an int in ``1..maximum``; bools, floats with fractions and junk are rejected."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a positive integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be a positive integer")
        value = int(value)
    if not isinstance(value, (int, str)):
        raise ValidationError(f"{field} must be a positive integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a positive integer")
    if number < 1:
        raise ValidationError(f"{field} must be at least 1")
    if number > maximum:
        raise ValidationError(f"{field} must be at most {maximum}")
    return number


def ensure_id(value: Any, field: str) -> int:
    """Row ids arrive as ints or numeric strings; anything else is a bad request."""
    if isinstance(value, float) or (isinstance(value, str) and not value.strip().isdigit()):
        raise ValidationError(f"{field} must be an integer id")
    return ensure_positive_int(value, field)


def json_object(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid request body")
    return payload


def optional_text(value: Any, field: str, max_length: int) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    v = value.strip()
    if len(v) > max_length:
        raise ValidationError(f"{field} is too long")
    return v or None
