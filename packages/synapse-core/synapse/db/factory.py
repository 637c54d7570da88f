"""
Storage adapter factory.

Creates the appropriate adapter based on configuration. Adapters are not
cached here: the caller owns the instance and its lifecycle.
"""

import logging

from synapse.db.interface import StorageAdapter

logger = logging.getLogger(__name__)


def create_adapter(config=None) -> StorageAdapter:
    """
    Create a storage adapter based on configuration.

    Args:
        config: Optional SynapseConfig. If not provided, loads from default location.

    Returns:
        StorageAdapter instance (SQLiteAdapter or MemoryAdapter)

    Raises:
        ValueError: If storage configuration is invalid
    """
    # Load config if not provided
    if config is None:
        from synapse.config import load_config
        config = load_config()

    storage_type = config.storage.type.lower()

    if storage_type == "sqlite":
        from synapse.db.sqlite import SQLiteAdapter

        path = config.storage.sqlite_path
        adapter = SQLiteAdapter(path)
        logger.info(f"Using SQLite adapter: {path}")

    elif storage_type == "memory":
        from synapse.db.memory import MemoryAdapter

        adapter = MemoryAdapter()
        logger.info("Using in-memory adapter (state is not persisted)")

    else:
        raise ValueError(
            f"Unknown storage type: {storage_type}. "
            "Use 'sqlite' or 'memory'."
        )

    return adapter

