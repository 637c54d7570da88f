"""
Abstract storage adapter interface.

Synapse persists its state as a handful of JSON documents under fixed keys,
so adapters only need to provide a small async key-value contract.
"""

from abc import ABC, abstractmethod


class StorageError(RuntimeError):
    """Raised when a storage backend cannot read or write a value."""


class StorageAdapter(ABC):
    """
    Abstract base class for key-value storage adapters.

    Implementations must support:
    - Connection lifecycle (connect, close)
    - Reading, writing and deleting string values by key
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize connection and create storage if needed."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close connection."""
        pass

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """
        Read the value stored under a key.

        Args:
            key: Storage key

        Returns:
            The stored string, or None if the key is absent
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """
        Store a value under a key, replacing any previous value.

        Args:
            key: Storage key
            value: Serialized value

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if a value was removed
        """
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """List all stored keys."""
        pass

    @property
    @abstractmethod
    def storage_type(self) -> str:
        """Short name of the backend ("sqlite", "memory")."""
        pass
