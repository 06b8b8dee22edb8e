"""
Synchronization engine.

Tip discovery, cross-source reconciliation, the staged sync cycle, and the
service running cycles on a schedule.
"""

from .cycle import CycleReport, SyncCycle
from .reconciler import Reconciler
from .service import SyncService
from .tip_discovery import TipDiscovery

__all__ = [
    "CycleReport",
    "Reconciler",
    "SyncCycle",
    "SyncService",
    "TipDiscovery",
]
