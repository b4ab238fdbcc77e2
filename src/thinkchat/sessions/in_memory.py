"""In-memory session storage backend.

Simple dict-based storage for ephemeral runs and tests.
Data is lost when the application exits.
"""

from .base import SessionStorage


class InMemorySessionStorage(SessionStorage):
    """In-memory key-value storage (process lifetime only)."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._blobs: dict[str, str] = dict(initial or {})
        self.write_count = 0

    async def connect(self) -> None:
        """Initialize storage (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close storage (no-op for in-memory)."""
        pass

    async def read(self, key: str) -> str | None:
        return self._blobs.get(key)

    async def write(self, key: str, blob: str) -> None:
        self._blobs[key] = blob
        self.write_count += 1

    async def delete(self, key: str) -> None:
        self._blobs.pop(key, None)

    @property
    def backend_type(self) -> str:
        return "memory"
