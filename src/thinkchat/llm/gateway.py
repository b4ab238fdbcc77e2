"""Model gateway: the conversation-aware adapter over text and image providers.

Hidden design decisions:
- How app messages map to provider chat messages (roles, system instruction)
- That the conversation context lives here, so each turn only hands over
  the new user text
- How provider failures are reported (always GenerationError)
"""

import logging
from collections.abc import AsyncIterator, Iterable

from ..config import SYSTEM_INSTRUCTION
from ..errors import GenerationError
from ..sessions.models import Message, Role
from .base import ImageProvider, LLMProvider
from .models import ChatMessage, ImageReference, StreamingResponse

logger = logging.getLogger(__name__)

_PROVIDER_ROLES = {
    Role.USER: "user",
    Role.MODEL: "assistant",
}


class ModelGateway:
    """Adapter to the remote text and image generation endpoints.

    Remembers one active conversation context. start_context() seeds it from
    prior settled messages; every successful text turn extends it with the
    user text and the full reply, like a provider-side chat object would.

    Usage:
        gateway = ModelGateway(create_llm_provider("gemini", api_key=key))
        gateway.start_context(session.messages)
        async for fragment in gateway.send_text_turn("hello"):
            print(fragment, end="")
    """

    def __init__(
        self,
        text_provider: LLMProvider,
        image_provider: ImageProvider | None = None,
        system_instruction: str = SYSTEM_INSTRUCTION,
        model: str | None = None,
        temperature: float = 0.7,
    ):
        self._text_provider = text_provider
        self._image_provider = image_provider
        self._system_instruction = system_instruction
        self._model = model
        self._temperature = temperature
        self._context: tuple[ChatMessage, ...] | None = None

    @property
    def has_context(self) -> bool:
        return self._context is not None

    @property
    def context(self) -> tuple[ChatMessage, ...]:
        """Messages the next text turn will be conditioned on."""
        return self._context or ()

    @property
    def model(self) -> str:
        return self._model or self._text_provider.model

    def start_context(self, history: Iterable[Message]) -> None:
        """Replace the conversation context with the given history.

        Messages still streaming are skipped: they have not happened yet
        from the model's point of view.
        """
        self._context = tuple(
            ChatMessage(role=_PROVIDER_ROLES[m.role], content=m.content)
            for m in history
            if m.is_settled
        )
        logger.info(f"Started conversation context with {len(self._context)} message(s)")

    async def send_text_turn(self, text: str) -> AsyncIterator[str]:
        """Send a user utterance and yield the reply as text fragments.

        The concatenation of all fragments is the full reply. Fragments
        already yielded stay valid if the stream later fails.

        Args:
            text: The new user message

        Yields:
            Incremental text fragments in delivery order

        Raises:
            GenerationError: If no context was started, or the provider call
                or stream fails
        """
        context = self._context
        if context is None:
            raise GenerationError("Conversation context was never started")

        user_message = ChatMessage(role="user", content=text)
        messages = [
            ChatMessage(role="system", content=self._system_instruction),
            *context,
            user_message,
        ]

        parts: list[str] = []
        stream: StreamingResponse | None = None
        try:
            stream = await self._text_provider.chat_completion_stream(
                messages, model=self._model, temperature=self._temperature
            )
            async for fragment in stream:
                if not fragment:
                    continue
                parts.append(fragment)
                yield fragment
        except GenerationError:
            raise
        except Exception as e:
            logger.warning(f"Text generation failed after {len(parts)} fragment(s): {e}")
            raise GenerationError(
                f"Text generation failed: {e}",
                details={"fragments_delivered": len(parts)},
            ) from e
        finally:
            # Releases the connection on failure, cancellation or early exit
            if stream is not None:
                await stream.aclose()

        reply = ChatMessage(role="assistant", content="".join(parts))
        # Only extend the context this turn was started from
        if self._context is context:
            self._context = (*context, user_message, reply)
        logger.debug(f"Text turn completed with {len(parts)} fragment(s)")

    async def generate_image(self, prompt: str) -> ImageReference:
        """Generate one image for a prompt.

        Independent of the text context; nothing is added to it.

        Raises:
            GenerationError: If no image provider is configured or it fails
        """
        if self._image_provider is None:
            raise GenerationError("No image provider configured")

        try:
            reference = await self._image_provider.generate_image(prompt)
        except Exception as e:
            logger.warning(f"Image generation failed: {e}")
            raise GenerationError(f"Image generation failed: {e}") from e

        logger.debug(f"Image generated ({'inline' if reference.is_inline else 'url'})")
        return reference

    async def close(self) -> None:
        """Close both providers."""
        await self._text_provider.close()
        if self._image_provider is not None:
            await self._image_provider.close()
