"""Data models for chat sessions.

These models define the structure of messages and sessions independent of
the storage backend used. Models are frozen: every change produces a new
instance, so a snapshot handed to a reader never changes underneath it.
"""

import json
import time
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..config import DEFAULT_SESSION_TITLE, TITLE_ELLIPSIS, TITLE_MAX_LENGTH
from ..errors import PersistenceReadError


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid4())


def derive_title(text: str, max_length: int = TITLE_MAX_LENGTH) -> str:
    """Derive a session title from the first user message.

    Args:
        text: The first user message
        max_length: Characters kept before the ellipsis marker

    Returns:
        The text verbatim if it fits, otherwise its prefix plus the ellipsis
    """
    if len(text) > max_length:
        return text[:max_length] + TITLE_ELLIPSIS
    return text


class Role(str, Enum):
    """Author of a message."""

    USER = "user"
    MODEL = "model"


class Message(BaseModel):
    """A single message in a chat session."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=new_id, description="Unique message identifier")
    role: Role = Field(description="Message author: 'user' or 'model'")
    content: str = Field(default="", description="Message text, accumulated prefix while streaming")
    timestamp: int = Field(default_factory=now_ms, description="Creation time in epoch milliseconds")
    is_streaming: bool = Field(
        default=False,
        alias="isStreaming",
        description="True while a model message is still being generated"
    )

    @model_validator(mode="after")
    def _user_messages_never_stream(self) -> "Message":
        if self.role == Role.USER and self.is_streaming:
            raise ValueError("user messages cannot be streaming")
        return self

    @property
    def is_settled(self) -> bool:
        return not self.is_streaming


class ChatSession(BaseModel):
    """A conversation: an ordered, append-only list of messages plus metadata.

    At most one message may be streaming, and only the last one.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=new_id, description="Unique session identifier")
    title: str = Field(default=DEFAULT_SESSION_TITLE)
    messages: tuple[Message, ...] = Field(default_factory=tuple)
    created_at: int = Field(default_factory=now_ms, alias="createdAt")
    updated_at: int = Field(default_factory=now_ms, alias="updatedAt")

    @model_validator(mode="after")
    def _streaming_message_is_last(self) -> "ChatSession":
        streaming = [i for i, m in enumerate(self.messages) if m.is_streaming]
        if len(streaming) > 1:
            raise ValueError("at most one message may be streaming")
        if streaming and streaming[0] != len(self.messages) - 1:
            raise ValueError("a streaming message must be the last message")
        return self

    @classmethod
    def new(cls) -> "ChatSession":
        """Create an empty session with matching creation and update times."""
        ts = now_ms()
        return cls(created_at=ts, updated_at=ts)

    @property
    def last_message(self) -> Message | None:
        return self.messages[-1] if self.messages else None

    @property
    def is_streaming(self) -> bool:
        last = self.last_message
        return last is not None and last.is_streaming

    def settled_messages(self) -> list[Message]:
        """Messages that have finished generating."""
        return [m for m in self.messages if m.is_settled]

    def append_message(self, message: Message) -> "ChatSession":
        """Return a copy with the message appended.

        The first user message of a session also sets its title.
        """
        update: dict = {
            "messages": (*self.messages, message),
            "updated_at": now_ms(),
        }
        if not self.messages and message.role == Role.USER:
            update["title"] = derive_title(message.content)
        return self._revalidated(update)

    def replace_last_message(self, content: str, is_streaming: bool) -> "ChatSession":
        """Return a copy whose last model message carries new content.

        No-op when the last message is not a model message.
        """
        last = self.last_message
        if last is None or last.role != Role.MODEL:
            return self
        replaced = last.model_copy(update={"content": content, "is_streaming": is_streaming})
        return self._revalidated({
            "messages": (*self.messages[:-1], replaced),
            "updated_at": now_ms(),
        })

    def with_title(self, title: str) -> "ChatSession":
        return self.model_copy(update={"title": title, "updated_at": now_ms()})

    def settle(self) -> "ChatSession":
        """Return a copy with no streaming message, keeping partial content."""
        if not self.is_streaming:
            return self
        return self.replace_last_message(self.messages[-1].content, is_streaming=False)

    def _revalidated(self, update: dict) -> "ChatSession":
        # model_copy skips validation; rebuild so the streaming invariant is enforced
        data = {**dict(self), **update}
        return ChatSession.model_validate(data)


_collection_adapter = TypeAdapter(list[ChatSession])


def dump_collection(sessions: list[ChatSession] | tuple[ChatSession, ...]) -> str:
    """Serialize a session collection to the persisted JSON blob."""
    return _collection_adapter.dump_json(list(sessions), by_alias=True).decode("utf-8")


def load_collection(blob: str) -> list[ChatSession]:
    """Deserialize and validate a persisted JSON blob.

    Args:
        blob: JSON text as written by dump_collection

    Returns:
        The session collection in stored order

    Raises:
        PersistenceReadError: If the blob is not valid JSON or any record is invalid
    """
    try:
        data = json.loads(blob)
    except (json.JSONDecodeError, TypeError) as e:
        raise PersistenceReadError(f"Stored history is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise PersistenceReadError(
            "Stored history is not a list of sessions",
            details={"type": type(data).__name__},
        )

    try:
        return _collection_adapter.validate_python(data)
    except PydanticValidationError as e:
        raise PersistenceReadError(
            f"Stored history contains invalid sessions: {e.error_count()} error(s)",
            details={"errors": e.errors(include_url=False)},
        ) from e
