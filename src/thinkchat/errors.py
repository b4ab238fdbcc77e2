"""Error types for thinkchat.

Persistence errors never escape the session store, and generation errors
never escape a turn; both are converted at those boundaries.
"""

from typing import Any


class ThinkChatError(Exception):
    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.code = code
        self.details = details


class PersistenceError(ThinkChatError):
    pass


class PersistenceReadError(PersistenceError):
    """The persisted blob is unreadable or does not describe a session collection."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__("persistence_read_error", message, details)


class PersistenceWriteError(PersistenceError):
    """The storage backend failed to write the blob."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__("persistence_write_error", message, details)


class GenerationError(ThinkChatError):
    """A text or image generation request failed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__("generation_error", message, details)


class ValidationError(ThinkChatError):
    def __init__(self, message: str):
        super().__init__("validation_error", message)
