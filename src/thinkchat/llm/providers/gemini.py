"""Google Gemini provider implementation.

Uses the official Google GenAI SDK for streamed chat and Imagen image
generation.
Reference: https://github.com/googleapis/python-genai

Note: Gemini stream chunks may carry no text (safety filtering, final
metadata chunk); those are skipped. Safety settings are relaxed.
"""

import base64
import logging
from collections.abc import AsyncIterator
from typing import Any

from google import genai
from google.genai import types

from ...config import DEFAULT_IMAGE_MODEL, DEFAULT_TEXT_MODEL
from ..base import ImageProvider, LLMProvider
from ..models import ChatMessage, ImageReference, StreamingResponse

logger = logging.getLogger(__name__)

# Relaxed so everyday chat is not blocked by default thresholds
DEFAULT_SAFETY_SETTINGS = [
    types.SafetySetting(category="HARM_CATEGORY_HARASSMENT", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_HATE_SPEECH", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_SEXUALLY_EXPLICIT", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_DANGEROUS_CONTENT", threshold="BLOCK_ONLY_HIGH"),
]


class _GeminiClientMixin:
    """Lazy GenAI client creation.

    A missing API key must not prevent start-up; the SDK's error surfaces on
    the first request instead.
    """

    _api_key: str | None
    _client_kwargs: dict[str, Any]
    _client: genai.Client | None

    def _init_client(self, api_key: str | None, client_kwargs: dict[str, Any]) -> None:
        self._api_key = api_key
        self._client_kwargs = client_kwargs
        self._client = None
        if not api_key:
            logger.warning("GEMINI_API_KEY is not set; Gemini requests will fail")

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key, **self._client_kwargs)
        return self._client


class GeminiProvider(_GeminiClientMixin, LLMProvider):
    """Google Gemini text provider.

    Hidden design decisions:
    - Google GenAI client initialization
    - Message format conversion ('assistant' becomes Gemini's 'model' role,
      the system message becomes the system instruction)
    - Relaxed safety settings
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_TEXT_MODEL,
        **client_kwargs: Any
    ):
        """Initialize Gemini provider.

        Args:
            api_key: Google AI API key
            model: Default model (gemini-2.5-flash, gemini-2.5-pro)
            **client_kwargs: Additional kwargs for Client
        """
        self._model = model
        self._init_client(api_key, client_kwargs)

    @property
    def model(self) -> str:
        return self._model

    def _convert_messages(self, messages: list[ChatMessage]) -> tuple[str | None, list[types.Content]]:
        """Split chat messages into (system_instruction, contents)."""
        system_instruction = None
        contents = []

        for msg in messages:
            if msg.role == "system":
                system_instruction = msg.content
            elif msg.role == "user":
                contents.append(types.Content(role="user", parts=[types.Part(text=msg.content)]))
            elif msg.role in ("assistant", "model"):
                contents.append(types.Content(role="model", parts=[types.Part(text=msg.content)]))

        return system_instruction, contents

    def _extract_content(self, chunk) -> str:
        """Text of one stream chunk, or an empty string."""
        if chunk.candidates:
            candidate = chunk.candidates[0]
            if candidate.content and candidate.content.parts:
                texts = [part.text for part in candidate.content.parts if getattr(part, "text", None)]
                if texts:
                    return "".join(texts)

        try:
            return chunk.text or ""
        except (ValueError, AttributeError):
            return ""

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        system_instruction, contents = self._convert_messages(messages)
        config = types.GenerateContentConfig(
            temperature=temperature,
            system_instruction=system_instruction,
            safety_settings=DEFAULT_SAFETY_SETTINGS,
            max_output_tokens=max_tokens,
            **kwargs
        )
        return StreamingResponse(self._stream_generator(model or self._model, contents, config))

    async def _stream_generator(
        self,
        model: str,
        contents: list[types.Content],
        config: types.GenerateContentConfig,
    ) -> AsyncIterator[str]:
        stream = await self.client.aio.models.generate_content_stream(
            model=model, contents=contents, config=config
        )
        async for chunk in stream:
            text = self._extract_content(chunk)
            if text:
                yield text

    async def close(self) -> None:
        """The GenAI client holds no resources that need closing."""
        pass


class GeminiImageProvider(_GeminiClientMixin, ImageProvider):
    """Imagen image provider returning inline JPEG bytes."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_IMAGE_MODEL,
        mime_type: str = "image/jpeg",
        **client_kwargs: Any
    ):
        self._model = model
        self._mime_type = mime_type
        self._init_client(api_key, client_kwargs)

    @property
    def model(self) -> str:
        return self._model

    async def generate_image(self, prompt: str, **kwargs: Any) -> ImageReference:
        response = await self.client.aio.models.generate_images(
            model=self._model,
            prompt=prompt,
            config=types.GenerateImagesConfig(
                number_of_images=1,
                output_mime_type=self._mime_type,
                **kwargs
            ),
        )

        generated = response.generated_images or []
        image = generated[0].image if generated else None
        if image is None or not image.image_bytes:
            raise ValueError("No image data received")

        return ImageReference(
            data=base64.b64encode(image.image_bytes).decode("ascii"),
            mime_type=image.mime_type or self._mime_type,
        )

    async def close(self) -> None:
        pass
