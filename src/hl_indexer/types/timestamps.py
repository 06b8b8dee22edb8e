"""
Timestamp normalization.

Both upstream sources report times, but not in the same unit. Block
details carry seconds while activity feeds and trade streams carry
milliseconds. Every record in the store is kept in epoch seconds, and this
module is the one place where that conversion happens.
"""

from __future__ import annotations

import math
from typing import Final

MILLISECONDS_THRESHOLD: Final[int] = 10**12
"""Raw values above this are epoch milliseconds (year 33658 in seconds)."""


def normalize_timestamp(raw: int | float | str) -> int:
    """
    Convert a raw upstream timestamp to epoch seconds.

    Values above the milliseconds threshold are divided by 1000 and floored.
    Numeric strings are accepted because some feeds quote their numbers.

    Raises:
        ValueError: If the value is not numeric or is negative.
    """
    if isinstance(raw, bool):
        raise ValueError(f"Timestamp must be numeric, got {raw!r}")

    value = float(raw)
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"Timestamp must be a non-negative number, got {raw!r}")

    if value > MILLISECONDS_THRESHOLD:
        return int(value // 1000)
    return int(value)


def timestamp_millis(raw: int | float | str) -> int:
    """
    Convert a raw upstream timestamp to epoch milliseconds.

    The inverse view of `normalize_timestamp`: millisecond values keep their
    precision, second values are scaled up.

    Raises:
        ValueError: If the value is not numeric or is negative.
    """
    seconds = normalize_timestamp(raw)
    value = float(raw)
    if value > MILLISECONDS_THRESHOLD:
        return int(value)
    return seconds * 1000
