"""Composition root wiring the indexer together."""

from .node import Node, NodeConfig

__all__ = [
    "Node",
    "NodeConfig",
]
