"""Store query and retention defaults."""

from __future__ import annotations

from typing import Final

DEFAULT_QUERY_LIMIT: Final[int] = 100
"""Default number of records returned by range queries."""

DEFAULT_BLOCK_LIMIT: Final[int] = 50
"""Default number of blocks returned by block range queries."""

STATS_WINDOW_SECONDS: Final[int] = 24 * 60 * 60
"""Window covered by the activity counters in store statistics."""

DEFAULT_RETENTION_SECONDS: Final[int] = 60 * 60
"""Age past which records are evicted by a periodic sweep."""
