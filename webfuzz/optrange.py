"""A delay given either as a single number of seconds or as a range."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

_SINGLE_OR_RANGE = (
    'Delay needs to be either a single float: "0.1" or a range of floats, '
    'delimited by dash: "0.1-0.8"'
)
_BAD_RANGE = "Delay range min and max values need to be valid floats. For example: 0.1-0.5"


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise ValueError(text)
    return float(text)


@dataclass
class OptRange:
    """Either a single float (stored in min) or a range of floats."""

    min: float = 0.0
    max: float = 0.0
    is_range: bool = False
    has_delay: bool = False

    def initialize(self, value: str) -> None:
        """Set up the range from its string form; raise ValueError on bad input."""
        parts = value.split("-")
        if len(parts) > 2:
            raise ValueError(_SINGLE_OR_RANGE)
        if len(parts) == 2:
            self.is_range = True
            self.has_delay = True
            try:
                self.min = _parse_float(parts[0])
                self.max = _parse_float(parts[1])
            except ValueError:
                raise ValueError(_BAD_RANGE) from None
        elif value:
            self.is_range = False
            self.has_delay = True
            try:
                self.min = _parse_float(value)
            except ValueError:
                raise ValueError(_SINGLE_OR_RANGE) from None

    def to_json(self) -> dict[str, str]:
        """Return the JSON-ready form of the range."""
        if self.min == self.max:
            value = f"{self.min:.2f}"
        else:
            value = f"{self.min:.2f}-{self.max:.2f}"
        return {"value": value}

    def load_json(self, data: Any) -> None:
        """Load from a dict, or from JSON text, in the form made by to_json."""
        if isinstance(data, (str, bytes, bytearray)):
            data = json.loads(data)
        if not isinstance(data, dict):
            raise ValueError("delay must be a JSON object")
        value = data.get("value", "")
        if not isinstance(value, str):
            raise ValueError("delay value must be a string")
        self.initialize(value)