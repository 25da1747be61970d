"""Integer ranges given as "N" or "MIN-MAX"."""

from __future__ import annotations

import re
from dataclasses import dataclass

_RANGE_RE = re.compile(r"^(\d+)-(\d+)$")
_INT_RE = re.compile(r"^[+-]?\d+$")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


@dataclass(frozen=True)
class ValueRange:
    """An inclusive range of integers."""

    min: int
    max: int


def _parse_int(text: str) -> int:
    if not _INT_RE.match(text):
        raise ValueError(f"Invalid value: {text}")
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"Invalid value: {text}")
    return value


def value_range_from_string(instr: str) -> ValueRange:
    """Parse a single integer or a "MIN-MAX" range."""
    match = _RANGE_RE.match(instr)
    if match:
        minval = _parse_int(match.group(1))
        maxval = _parse_int(match.group(2))
        if minval >= maxval:
            raise ValueError("Minimum has to be smaller than maximum")
        return ValueRange(minval, maxval)
    value = _parse_int(instr)
    return ValueRange(value, value)