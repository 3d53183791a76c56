"""
Size and duration literals used by the relay configuration.

Sizes are written as ``<digits><unit>`` with unit B, KB or MB (``"8MB"``),
durations as ``<digits>S`` (``"86400S"``). Both accept plain integers, which
are taken as already converted.
"""

import re
from typing import Union

from shared.errors import InvalidFormat

SizeLike = Union[int, str]
DurationLike = Union[int, float, str]

_SIZE_PATTERN = re.compile(r"([0-9]+)(MB|KB|B)", re.IGNORECASE)
_DURATION_PATTERN = re.compile(r"([0-9]+)S", re.IGNORECASE)

_SIZE_MULTIPLIERS = {
    "B": 1,
    "KB": 1024,
    "MB": 1024 * 1024,
}

_SIZE_UNITS = ("B", "KB", "MB", "GB")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_size(value: SizeLike) -> int:
    """Parse ``"8MB"``, ``"1024KB"`` or ``"1048576B"`` into a byte count."""
    if _is_number(value):
        return int(value)
    if not isinstance(value, str):
        raise InvalidFormat(f"Invalid size {value!r}", {"value": repr(value)})

    match = _SIZE_PATTERN.fullmatch(value)
    if not match:
        raise InvalidFormat(
            'Invalid size format. Use format like "8MB", "1024KB" or "1048576B"',
            {"value": value}
        )

    amount, unit = match.groups()
    return int(amount) * _SIZE_MULTIPLIERS[unit.upper()]


def _parse_duration_literal(value: str) -> int:
    if not isinstance(value, str):
        raise InvalidFormat(f"Invalid duration {value!r}", {"value": repr(value)})

    match = _DURATION_PATTERN.fullmatch(value)
    if not match:
        raise InvalidFormat('Invalid time format. Use format like "86400S"', {"value": value})
    return int(match.group(1))


def parse_duration(value: DurationLike) -> int:
    """Parse ``"86400S"`` into milliseconds; numbers are milliseconds already."""
    if _is_number(value):
        return int(value)
    return _parse_duration_literal(value) * 1000


def parse_duration_seconds(value: DurationLike) -> int:
    """Parse ``"86400S"`` into seconds; numbers are seconds already."""
    if _is_number(value):
        return int(value)
    return _parse_duration_literal(value)


def format_size(num_bytes: float) -> str:
    """Render a byte count for humans, e.g. ``2.00MB``. Caps at GB."""
    size = float(num_bytes)
    unit_index = 0
    while size >= 1024 and unit_index < len(_SIZE_UNITS) - 1:
        size /= 1024
        unit_index += 1
    return f"{size:.2f}{_SIZE_UNITS[unit_index]}"
