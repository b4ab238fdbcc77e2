"""
thinkchat: a terminal chat client for hosted generative models.

Converse with a text model, generate images with `/image <description>`,
and keep conversation history on the local device.

Each module hides one design decision:
- sessions: how chats are represented and where they are persisted
- llm: which remote model answers, and how
- chat: how a turn proceeds from submission to a settled reply
- ui / cli: how all of this is presented
"""

__version__ = "0.1.0"

from .chat import ConversationController, TurnKind, TurnResult, TurnState
from .errors import (
    GenerationError,
    PersistenceError,
    PersistenceReadError,
    PersistenceWriteError,
    ThinkChatError,
    ValidationError,
)
from .llm import ModelGateway, create_image_provider, create_llm_provider
from .sessions import (
    ChatSession,
    LoadStatus,
    Message,
    Role,
    SessionStore,
    create_session_storage,
)

__all__ = [
    "ChatSession",
    "ConversationController",
    "GenerationError",
    "LoadStatus",
    "Message",
    "ModelGateway",
    "PersistenceError",
    "PersistenceReadError",
    "PersistenceWriteError",
    "Role",
    "SessionStore",
    "ThinkChatError",
    "TurnKind",
    "TurnResult",
    "TurnState",
    "ValidationError",
    "create_image_provider",
    "create_llm_provider",
    "create_session_storage",
]
