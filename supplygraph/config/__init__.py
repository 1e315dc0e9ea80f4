"""Configuration schema and loading for supplygraph."""

from .loader import load_mapping, load_store_config
from .schema import MAX_NODE_ID, StoreConfig

__all__ = [
    "MAX_NODE_ID",
    "StoreConfig",
    "load_mapping",
    "load_store_config",
]
