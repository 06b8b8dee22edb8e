"""Incremental indexer and time-windowed cache for Hyperliquid chain activity."""
