"""Coercion of raw query-string values before they reach the query builder."""
import re
import uuid
from typing import Any, Callable, Mapping, Optional, Tuple

from zentro.errors import ValidationError

TRUE_VALUES = ("true", "1", "yes")
FALSE_VALUES = ("false", "0", "no")

MAX_PAGE_SIZE = 100

_NUMERIC_ID = re.compile(r"[0-9]+")


def is_numeric_id(identifier: Any) -> bool:
    """True for plain ASCII digit strings that int() accepts."""
    return _NUMERIC_ID.fullmatch(str(identifier)) is not None


def to_int(field: str) -> Callable[[Any], int]:
    def coerce(value: Any) -> int:
        if isinstance(value, bool):
            raise ValidationError(f"{field} must be a whole number")
        try:
            return int(str(value).strip())
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must be a whole number")
    return coerce


def to_bool(field: str) -> Callable[[Any], bool]:
    def coerce(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        lowered = str(value).strip().lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
        raise ValidationError(f"{field} must be true or false")
    return coerce


def page_params(
    values: Mapping[str, Any],
    default_limit: int,
    max_limit: int = MAX_PAGE_SIZE
) -> Tuple[int, int]:
    """Read limit/offset, clamping limit to 1..max_limit and offset to >= 0."""
    limit = values.get("limit")
    offset = values.get("offset")
    limit = default_limit if limit in (None, "") else to_int("limit")(limit)
    offset = 0 if offset in (None, "") else to_int("offset")(offset)
    return max(1, min(limit, max_limit)), max(0, offset)


def period_days(value: Any, default: int = 30) -> int:
    if value in (None, ""):
        return default
    days = to_int("period")(value)
    if days < 1:
        raise ValidationError("period must be at least 1 day")
    return days


def parse_uuid(identifier: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(identifier))
    except (TypeError, ValueError):
        return None
