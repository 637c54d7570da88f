"""
In-memory storage adapter.

Nothing survives the process; useful for tests and throwaway sessions.
"""

from synapse.db.interface import StorageAdapter


class MemoryAdapter(StorageAdapter):
    """Dict-backed key-value adapter."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self.connected = False

    async def connect(self) -> None:
        self.connected = True

    async def close(self) -> None:
        self.connected = False

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def keys(self) -> list[str]:
        return sorted(self._data)

    @property
    def storage_type(self) -> str:
        return "memory"
