"""Conversation controller: the turn-taking protocol.

Hidden design decisions:
- Turn state machine (Idle -> AwaitingResponse -> Streaming -> Settled)
- How streamed fragments are merged into the placeholder message
- How failures and cancellation settle the placeholder
- When the model gateway's context is (re)started
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ..config import (
    GENERATION_APOLOGY_TEXT,
    GENERATION_ERROR_BANNER,
    IMAGE_PENDING_TEXT,
    IMAGE_PROMPT_MISSING_TEXT,
)
from ..errors import GenerationError, ValidationError
from ..llm.gateway import ModelGateway
from ..sessions.models import ChatSession, Message, Role
from ..sessions.store import SessionHandle, SessionStore
from .commands import TurnKind, parse_image_command

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    """Progress of the current (or most recent) turn."""

    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"
    STREAMING = "streaming"
    SETTLED = "settled"


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one completed turn."""

    session_id: str
    kind: TurnKind
    succeeded: bool
    message: Message  # The settled model message


ControllerListener = Callable[["ConversationController"], None]


class ConversationController:
    """Runs turns against one session at a time.

    Only one turn may be active; submissions while a turn runs are rejected,
    not queued. Every turn ends with a settled model message, whatever
    happens to the remote call.

    Usage:
        controller = ConversationController(store, gateway)
        result = await controller.submit("hello")
        print(result.message.content)
    """

    def __init__(self, store: SessionStore, gateway: ModelGateway):
        self._store = store
        self._gateway = gateway
        self._state = TurnState.IDLE
        self._error: str | None = None
        self._context_session_id: str | None = None
        self._task: asyncio.Task | None = None
        self._listeners: list[ControllerListener] = []

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def is_generating(self) -> bool:
        return self._state in (TurnState.AWAITING_RESPONSE, TurnState.STREAMING)

    @property
    def error(self) -> str | None:
        """Banner text for the last failed turn, cleared when a new turn starts."""
        return self._error

    @property
    def context_session_id(self) -> str | None:
        return self._context_session_id

    def subscribe(self, listener: ControllerListener) -> Callable[[], None]:
        """Register a listener called on every state or error change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dismiss_error(self) -> None:
        if self._error is not None:
            self._error = None
            self._notify()

    def activate(self, session_id: str | None = None) -> bool:
        """Start the gateway context from a session's settled messages.

        Call on start-up and whenever the active session changes.

        Returns:
            False if the session does not exist
        """
        sid = session_id or self._store.active_id
        session = self._store.get(sid) if sid else None
        if session is None:
            return False
        self._gateway.start_context(session.settled_messages())
        self._context_session_id = session.id
        return True

    def cancel(self) -> bool:
        """Cancel the in-flight turn, if any.

        The placeholder settles with the partial content received so far.
        """
        if self._task is None or self._task.done():
            return False
        self._task.cancel()
        return True

    async def submit(self, text: str, session_id: str | None = None) -> TurnResult | None:
        """Run one turn for a user submission.

        Args:
            text: Raw user input
            session_id: Target session (default: the active session)

        Returns:
            The turn result, or None if the input was blank, a turn was
            already active, or the session does not exist
        """
        trimmed = text.strip() if text else ""
        if not trimmed:
            return None
        if self.is_generating:
            logger.debug("Submission rejected: a turn is already active")
            return None

        sid = session_id or self._store.active_id
        if sid is None or sid not in self._store:
            return None

        # The gate closes before the first await so concurrent submits are rejected
        self._error = None
        self._set_state(TurnState.AWAITING_RESPONSE)
        self._task = asyncio.current_task()
        try:
            if sid != self._context_session_id or not self._gateway.has_context:
                self.activate(sid)
            return await self._run_turn(self._store.handle(sid), trimmed)
        finally:
            self._task = None
            self._set_state(TurnState.SETTLED)

    async def _run_turn(self, handle: SessionHandle, text: str) -> TurnResult:
        try:
            prompt = parse_image_command(text)
            kind = TurnKind.IMAGE if prompt is not None else TurnKind.TEXT
            invalid = False
        except ValidationError:
            prompt = None
            kind = TurnKind.IMAGE
            invalid = True

        handle.update(lambda s: s.append_message(Message(role=Role.USER, content=text)))
        placeholder = Message(
            role=Role.MODEL,
            content=IMAGE_PENDING_TEXT if kind == TurnKind.IMAGE and not invalid else "",
            is_streaming=True,
        )
        handle.update(lambda s: s.append_message(placeholder))

        if invalid:
            final = self._settle(handle, placeholder, IMAGE_PROMPT_MISSING_TEXT)
            return TurnResult(handle.session_id, kind, succeeded=True, message=final)

        content = ""
        fragments = 0
        try:
            if kind == TurnKind.IMAGE:
                reference = await self._gateway.generate_image(prompt)
                content = reference.to_markdown()
            else:
                async for fragment in self._gateway.send_text_turn(text):
                    if self._state != TurnState.STREAMING:
                        self._set_state(TurnState.STREAMING)
                    content += fragment
                    fragments += 1
                    self._update_placeholder(handle, placeholder, content)
        except asyncio.CancelledError:
            partial = content if kind == TurnKind.TEXT else ""
            self._settle(handle, placeholder, partial)
            logger.info(f"Turn cancelled in session {handle.session_id}")
            raise
        except Exception as e:
            if not isinstance(e, GenerationError):
                logger.exception("Unexpected failure during turn")
            final = self._settle(handle, placeholder, GENERATION_APOLOGY_TEXT)
            self._error = GENERATION_ERROR_BANNER
            self._notify()
            return TurnResult(handle.session_id, kind, succeeded=False, message=final)

        final = self._settle(handle, placeholder, content)
        logger.info(f"Turn settled in session {handle.session_id} ({kind.value}, {fragments} fragment(s))")
        return TurnResult(handle.session_id, kind, succeeded=True, message=final)

    def _update_placeholder(
        self,
        handle: SessionHandle,
        placeholder: Message,
        content: str,
        is_streaming: bool = True,
    ) -> None:
        def transform(session: ChatSession) -> ChatSession:
            last = session.last_message
            if last is None or last.id != placeholder.id:
                return session
            return session.replace_last_message(content, is_streaming)

        handle.update(transform)

    def _settle(self, handle: SessionHandle, placeholder: Message, content: str) -> Message:
        self._update_placeholder(handle, placeholder, content, is_streaming=False)
        return placeholder.model_copy(update={"content": content, "is_streaming": False})

    def _set_state(self, state: TurnState) -> None:
        if state != self._state:
            self._state = state
            self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
