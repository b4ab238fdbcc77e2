from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from ...config import DEFAULT_OPENAI_IMAGE_MODEL, DEFAULT_OPENAI_TEXT_MODEL
from ..base import ImageProvider, LLMProvider
from ..models import ChatMessage, ImageReference, StreamingResponse


def _to_openai_messages(messages: list[ChatMessage]) -> list[dict[str, str]]:
    """Convert chat messages to Chat Completions format.

    Gemini-style 'model' roles become 'assistant'.
    """
    converted = []
    for msg in messages:
        role = "assistant" if msg.role == "model" else msg.role
        converted.append({"role": role, "content": msg.content})
    return converted


class _OpenAIClientMixin:
    """Lazy AsyncOpenAI client; a missing key fails on first request."""

    _client_kwargs: dict[str, Any]
    _client: AsyncOpenAI | None

    def _init_client(self, **client_kwargs: Any) -> None:
        self._client_kwargs = client_kwargs
        self._client = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(**self._client_kwargs)
        return self._client

    async def close(self) -> None:
        """Close the OpenAI client.

        Note: Uses the OpenAI SDK's async context manager for proper cleanup.
        See: https://github.com/openai/openai-python#async-usage
        """
        if self._client is not None:
            await self._client.close()
            self._client = None


class OpenAIProvider(_OpenAIClientMixin, LLMProvider):
    """OpenAI text provider.

    Hidden design decisions:
    - OpenAI API client initialization
    - Message format conversion
    - Authentication mechanism
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_OPENAI_TEXT_MODEL,
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model to use
            base_url: Optional custom API base URL
            organization: Optional organization ID
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._init_client(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Generate a streaming chat completion using OpenAI Chat Completions."""
        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": _to_openai_messages(messages),
            "temperature": temperature,
            "stream": True,
            **kwargs,
        }
        if max_tokens is not None:
            request_params["max_tokens"] = max_tokens

        return StreamingResponse(self._stream_generator(request_params))

    async def _stream_generator(self, request_params: dict[str, Any]) -> AsyncIterator[str]:
        stream = await self.client.chat.completions.create(**request_params)
        try:
            async for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        finally:
            await stream.close()


class OpenAIImageProvider(_OpenAIClientMixin, ImageProvider):
    """OpenAI image provider.

    dall-e models answer with a URL; gpt-image models answer with base64
    bytes. Either becomes an ImageReference.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_OPENAI_IMAGE_MODEL,
        size: str = "1024x1024",
        base_url: str | None = None,
        **client_kwargs: Any
    ):
        self._model = model
        self._size = size
        self._init_client(api_key=api_key, base_url=base_url, **client_kwargs)

    @property
    def model(self) -> str:
        return self._model

    async def generate_image(self, prompt: str, **kwargs: Any) -> ImageReference:
        result = await self.client.images.generate(
            model=self._model,
            prompt=prompt,
            n=1,
            size=self._size,
            **kwargs
        )

        if not result.data:
            raise ValueError("No image data received")
        image = result.data[0]
        if image.b64_json:
            return ImageReference(data=image.b64_json, mime_type="image/png")
        if image.url:
            return ImageReference(url=image.url)
        raise ValueError("No image data received")
