"""
Key-value storage layer supporting SQLite and in-memory backends.
"""

from synapse.db.factory import create_adapter
from synapse.db.interface import StorageAdapter, StorageError

__all__ = [
    "StorageAdapter",
    "StorageError",
    "create_adapter",
]
