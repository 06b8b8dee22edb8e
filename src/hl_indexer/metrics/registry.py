"""
Metric registry using prometheus_client.

Provides pre-defined metrics for the indexer.
Exposes metrics in Prometheus text format via the /metrics endpoint.
"""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Create a dedicated registry for indexer metrics.
#
# Using a dedicated registry avoids pollution from default Python process metrics.
REGISTRY = CollectorRegistry()

# -----------------------------------------------------------------------------
# Sync Cycles
# -----------------------------------------------------------------------------

sync_cycles = Counter(
    "hl_sync_cycles_total",
    "Completed sync cycles",
    registry=REGISTRY,
)

sync_cycle_time = Histogram(
    "hl_sync_cycle_seconds",
    "Sync cycle duration",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    registry=REGISTRY,
)

sync_stage_failures = Counter(
    "hl_sync_stage_failures_total",
    "Sync stages that raised and were skipped",
    ["stage"],
    registry=REGISTRY,
)

tip_height = Gauge(
    "hl_tip_height",
    "Latest frontier height found by tip discovery",
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Ingestion
# -----------------------------------------------------------------------------

blocks_indexed = Counter(
    "hl_blocks_indexed_total",
    "Blocks written to the store",
    registry=REGISTRY,
)

transactions_indexed = Counter(
    "hl_transactions_indexed_total",
    "Transactions written to the store",
    registry=REGISTRY,
)

transactions_backfilled = Counter(
    "hl_transactions_backfilled_total",
    "Transactions whose block hash was filled in after ingest",
    registry=REGISTRY,
)

upstream_failures = Counter(
    "hl_upstream_failures_total",
    "Failed upstream requests",
    ["endpoint"],
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Store and Persistence
# -----------------------------------------------------------------------------

store_records = Gauge(
    "hl_store_records",
    "Live records per entity type",
    ["entity"],
    registry=REGISTRY,
)

records_evicted = Counter(
    "hl_records_evicted_total",
    "Records removed by retention sweeps",
    ["entity"],
    registry=REGISTRY,
)

persistence_flushes = Counter(
    "hl_persistence_flushes_total",
    "Successful snapshot writes",
    registry=REGISTRY,
)

persistence_failures = Counter(
    "hl_persistence_failures_total",
    "Failed snapshot writes",
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# API
# -----------------------------------------------------------------------------

websocket_clients = Gauge(
    "hl_websocket_clients",
    "Connected WebSocket clients",
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics output.

    Returns:
        Prometheus text format output as bytes.
    """
    return generate_latest(REGISTRY)
