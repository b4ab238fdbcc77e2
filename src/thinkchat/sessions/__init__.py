"""Chat session module for thinkchat.

Provides the session data model, the durable key-value substrate and the
session store that owns the collection.
"""

from .base import SessionStorage
from .factory import create_session_storage
from .in_memory import InMemorySessionStorage
from .models import ChatSession, Message, Role, derive_title, dump_collection, load_collection
from .store import LoadStatus, SessionHandle, SessionStore, StoreSnapshot

__all__ = [
    "ChatSession",
    "InMemorySessionStorage",
    "LoadStatus",
    "Message",
    "Role",
    "SessionHandle",
    "SessionStorage",
    "SessionStore",
    "StoreSnapshot",
    "create_session_storage",
    "derive_title",
    "dump_collection",
    "load_collection",
]
