import re
from datetime import timedelta
from typing import Iterable, Optional

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

# base-10 only; `int()` would also accept whitespace and underscores
_DECIMAL_INTEGER = re.compile(r"[+-]?[0-9]+")


def contains_any(value: str, needles: Iterable[str]) -> bool:
    """Return `True` if `value` contains any of `needles` as a substring.

    Matching is case-sensitive and stops at the first hit.
    """
    for needle in needles:
        if needle in value:
            return True
    return False


def parse_nanosecond_timestamp(value: Optional[str]) -> Optional[int]:
    """Parse a cookie value holding a signed 64-bit nanosecond timestamp.

    Returns `None` when the value is missing, is not a plain base-10 integer,
    or does not fit in 64 bits.
    """
    if value is None or not _DECIMAL_INTEGER.fullmatch(value):
        return None
    parsed = int(value)
    if parsed < _INT64_MIN or parsed > _INT64_MAX:
        return None
    return parsed


def timedelta_to_nanoseconds(delta: timedelta) -> int:
    return (delta // timedelta(microseconds=1)) * 1_000


def whole_seconds(delta: timedelta) -> int:
    """Whole seconds in `delta`, truncated toward zero."""
    return int(delta.total_seconds())
