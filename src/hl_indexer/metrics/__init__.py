"""
Metrics module for observability.

Provides counters, gauges, and histograms for tracking indexer behavior.
Exposes metrics in Prometheus text format.
"""

from .registry import (
    REGISTRY,
    blocks_indexed,
    generate_metrics,
    persistence_failures,
    persistence_flushes,
    records_evicted,
    store_records,
    sync_cycle_time,
    sync_cycles,
    sync_stage_failures,
    tip_height,
    transactions_backfilled,
    transactions_indexed,
    upstream_failures,
    websocket_clients,
)

__all__ = [
    "REGISTRY",
    "blocks_indexed",
    "generate_metrics",
    "persistence_failures",
    "persistence_flushes",
    "records_evicted",
    "store_records",
    "sync_cycle_time",
    "sync_cycles",
    "sync_stage_failures",
    "tip_height",
    "transactions_backfilled",
    "transactions_indexed",
    "upstream_failures",
    "websocket_clients",
]
