"""
Synapse Core Library

Personal task management with productivity statistics, backed by a local
key-value store.
"""

__version__ = "0.1.0"

from synapse.config import SynapseConfig, load_config
from synapse.db import StorageAdapter, create_adapter

__all__ = [
    "load_config",
    "SynapseConfig",
    "create_adapter",
    "StorageAdapter",
]
