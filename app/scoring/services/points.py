from __future__ import annotations

import math
import re

LEADING_INTEGER = re.compile(r"^\s*([+-]?)(\d+)")
WHOLE_NUMBER = re.compile(r"(\d+)(\.0+)?")

# Task.points is a 32-bit column
MAX_TASK_POINTS = 2**31 - 1
MAX_ID_DIGITS = 18


def _digits_value(sign: str, digits: str) -> int:
    digits = digits.lstrip("0") or "0"
    if len(digits) > len(str(MAX_TASK_POINTS)):
        # too long to matter; anything past the bound fails the range check
        value = MAX_TASK_POINTS + 1
    else:
        value = int(digits)
    return -value if sign == "-" else value


def coerce_points(value) -> int:
    """Integer value of a task data entry; anything unparseable counts as 0.

    Strings contribute their leading integer ("12abc" -> 12, "5.7" -> 5),
    floats are truncated toward zero.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        match = LEADING_INTEGER.match(value)
        return _digits_value(*match.groups()) if match else 0
    return 0


def base_points(data: dict) -> int:
    return sum(coerce_points(value) for value in data.values())


def in_points_range(value: int) -> bool:
    return -MAX_TASK_POINTS <= value <= MAX_TASK_POINTS


def awarded_points(value) -> int | None:
    """Non-negative integral points for an approved custom task, or None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        match = WHOLE_NUMBER.fullmatch(value.strip())
        if not match:
            return None
        value = _digits_value("", match.group(1))
    elif isinstance(value, float):
        if not (math.isfinite(value) and value.is_integer()):
            return None
        value = int(value)
    elif not isinstance(value, int):
        return None

    if 0 <= value <= MAX_TASK_POINTS:
        return value
    return None


def topic_ids(values) -> list[int]:
    ids = []
    for value in values or []:
        if isinstance(value, bool):
            continue
        if isinstance(value, str):
            value = value.strip()
            if not re.fullmatch(r"\d{1,%d}" % MAX_ID_DIGITS, value):
                continue
            value = int(value)
        if isinstance(value, int) and 0 < value < 10**MAX_ID_DIGITS:
            ids.append(value)
    return ids
