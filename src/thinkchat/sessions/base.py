"""Abstract base class for session storage backends.

This module defines the interface for the durable key-value substrate that
holds the serialized session collection. The abstraction hides:
- Storage format (file, database row, in-memory dict)
- Persistence mechanism and atomicity guarantees
- Connection management
"""

from abc import ABC, abstractmethod
from typing import Any


class SessionStorage(ABC):
    """Abstract key-value storage for serialized session collections.

    Backends store opaque text blobs under string keys, scoped to the local
    device. Failures are reported as PersistenceReadError or
    PersistenceWriteError.

    Supports async context manager protocol:
        async with storage:
            blob = await storage.read("key")
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the storage backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the storage backend gracefully."""

    @abstractmethod
    async def read(self, key: str) -> str | None:
        """Return the blob stored under key, or None if nothing is stored."""

    @abstractmethod
    async def write(self, key: str, blob: str) -> None:
        """Durably store blob under key, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the blob stored under key, if any."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def __aenter__(self) -> "SessionStorage":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()
