"""Shared base models and value helpers."""

from .base import CamelModel, RecordModel
from .timestamps import MILLISECONDS_THRESHOLD, normalize_timestamp, timestamp_millis

__all__ = [
    "CamelModel",
    "MILLISECONDS_THRESHOLD",
    "RecordModel",
    "normalize_timestamp",
    "timestamp_millis",
]
