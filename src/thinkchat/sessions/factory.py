"""Factory for creating session storage backends."""

from typing import Any

from .base import SessionStorage


def create_session_storage(
    backend: str = "json",
    **kwargs: Any
) -> SessionStorage:
    """Create a session storage backend.

    Args:
        backend: Backend type ("json", "sqlite" or "memory")
        **kwargs: Backend-specific configuration
            For json:
                - path: data directory (default: ~/.thinkchat)
            For sqlite:
                - path: database file (default: ~/.thinkchat/history.db)

    Returns:
        SessionStorage instance

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "memory":
        from .in_memory import InMemorySessionStorage
        return InMemorySessionStorage(**kwargs)

    elif backend == "json":
        from .json_file import JsonFileSessionStorage
        return JsonFileSessionStorage(**kwargs)

    elif backend == "sqlite":
        from .sqlite import SQLiteSessionStorage
        return SQLiteSessionStorage(**kwargs)

    raise ValueError(
        f"Unsupported storage backend: {backend}. "
        f"Supported backends: json, sqlite, memory"
    )
