"""Elasticsearch time-value and interval helpers.

Elasticsearch expresses durations as ``<number><unit>`` strings (``30s``,
``7d``, ``500ms``). Date histograms additionally accept calendar units
(``1M``, ``1q``) and unit names (``hour``). These helpers validate such
strings and convert durations to seconds for client-side waits.
"""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Any, Union

_TIME_VALUE_RE = re.compile(r"^(\d+(?:\.\d+)?)(nanos|micros|ms|s|m|h|d)$")

_UNIT_SECONDS = {
    "nanos": 1e-9,
    "micros": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}

CALENDAR_INTERVALS = frozenset(
    {
        "1m",
        "minute",
        "1h",
        "hour",
        "1d",
        "day",
        "1w",
        "week",
        "1M",
        "month",
        "1q",
        "quarter",
        "1y",
        "year",
    }
)

TimeValue = Union[str, int, float, timedelta]


def is_time_value(value: Any) -> bool:
    """Return True when *value* is a fixed ``<number><unit>`` duration string."""
    if not isinstance(value, str):
        return False
    return bool(_TIME_VALUE_RE.match(value.strip()))


def is_calendar_interval(value: Any) -> bool:
    return isinstance(value, str) and value.strip() in CALENDAR_INTERVALS


def is_date_histogram_interval(value: Any) -> bool:
    """Accept either a calendar unit or a fixed duration (the legacy ``interval``)."""
    return is_calendar_interval(value) or is_time_value(value)


def to_seconds(value: TimeValue) -> float:
    """Convert a duration to seconds.

    Numbers are taken as seconds already; strings must be fixed time values.
    Raises ``ValueError`` for anything else, including negative numbers.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid time value: {value!r}")
    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        match = _TIME_VALUE_RE.match(value.strip())
        if not match:
            raise ValueError(f"invalid time value: {value!r}")
        seconds = float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
    else:
        raise ValueError(f"invalid time value: {value!r}")
    if seconds < 0:
        raise ValueError(f"time value must not be negative: {value!r}")
    return seconds
