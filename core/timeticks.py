"""Rendering of SNMP TimeTicks (1/100 s) as short human-readable durations."""

from __future__ import annotations

import math

# (exclusive upper bound, divisor, suffix); the last band has no bound.
_BANDS = (
    (60_000, 100, "s"),
    (360_000, 60_000, "min"),
    (8_640_000, 360_000, "h"),
)
_DAY_TICKS = 8_640_000


def format_duration(ticks: int) -> str:
    """Format a TimeTicks difference, always rounding up within its band.

    >>> format_duration(5901)
    '60s'
    >>> format_duration(60000)
    '1min'
    """
    if ticks <= 0:
        return "0s"
    for bound, divisor, suffix in _BANDS:
        if ticks < bound:
            return f"{math.ceil(ticks / divisor)}{suffix}"
    return f"{math.ceil(ticks / _DAY_TICKS)}d"


def elapsed(uptime: int, since: int) -> str:
    """Render the time between *since* and the current *uptime*."""
    return format_duration(uptime - since)
