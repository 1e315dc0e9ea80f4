"""Core graph storage APIs."""

from .index import NodeIndex
from .store import GraphStore

__all__ = [
    "GraphStore",
    "NodeIndex",
]
