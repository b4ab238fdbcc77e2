from abc import ABC, abstractmethod
from typing import Any

from .models import ChatMessage, ImageReference, StreamingResponse


class LLMProvider(ABC):
    """Abstract base class for text generation providers.

    This module hides the design decision of which LLM provider to use.
    Implementations must handle provider-specific details like:
    - API client setup and authentication
    - Request/response format conversion
    - Mapping of conversation roles

    Supports async context manager protocol for proper resource cleanup:
        async with provider:
            stream = await provider.chat_completion_stream(messages)
            async for chunk in stream:
                ...
    """

    @abstractmethod
    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Generate a streaming chat completion.

        Args:
            messages: List of chat messages forming the conversation history
            model: Model to use (None uses provider's default)
            temperature: Sampling temperature (0.0 to 2.0)
            max_tokens: Maximum tokens to generate
            **kwargs: Provider-specific parameters

        Returns:
            StreamingResponse that yields text chunks

        Raises:
            Exception: Provider-specific errors during generation
        """
        pass

    @property
    @abstractmethod
    def model(self) -> str:
        """Get the default model name."""

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        pass

    async def __aenter__(self) -> "LLMProvider":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            # Suppress harmless cleanup errors from httpx/anyio
            if "Event loop is closed" not in str(e):
                raise


class ImageProvider(ABC):
    """Abstract base class for image generation providers.

    Hides whether a backend returns inline bytes or a URL; both come back
    as an ImageReference.
    """

    @abstractmethod
    async def generate_image(self, prompt: str, **kwargs: Any) -> ImageReference:
        """Generate a single image from a text prompt.

        Args:
            prompt: Free-form description of the image
            **kwargs: Provider-specific parameters

        Returns:
            ImageReference for the generated image

        Raises:
            Exception: Provider-specific errors, or ValueError if the
                provider returned no image
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "ImageProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
