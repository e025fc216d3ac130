"""Lenient number parsing for imported cell values.

A cell parses when it starts with a number, so "60%" gives 60 and "2.5"
gives 2 as an integer. Anything else gives None.
"""

import re
from typing import Optional

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_int(value: object) -> Optional[int]:
    """Leading integer of a cell, or None."""
    match = _INT_PREFIX.match(str(value or ""))
    return int(match.group(1)) if match else None


def parse_float(value: object) -> Optional[float]:
    """Leading decimal number of a cell, or None."""
    match = _FLOAT_PREFIX.match(str(value or ""))
    return float(match.group(1)) if match else None
