"""Data models shared by LLM and image providers."""

from collections.abc import AsyncIterator

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..config import IMAGE_ALT_TEXT


class StreamingResponse:
    """Async iterator over the text fragments of one streamed reply.

    Usage:
        stream = await provider.chat_completion_stream(messages)
        try:
            async for chunk in stream:
                print(chunk, end="")
        finally:
            await stream.aclose()
    """

    def __init__(self, async_iter: AsyncIterator[str]):
        self._iter = async_iter

    def __aiter__(self) -> "StreamingResponse":
        return self

    async def __anext__(self) -> str:
        return await self._iter.__anext__()

    async def aclose(self) -> None:
        """Stop the underlying stream early, releasing provider resources."""
        aclose = getattr(self._iter, "aclose", None)
        if aclose is not None:
            await aclose()


class ChatMessage(BaseModel):
    """Represents a chat message sent to a provider."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the message sender: 'user', 'assistant', or 'system'")
    content: str = Field(description="Content of the message")


class ImageReference(BaseModel):
    """A generated image, either inline base64 bytes or a fetchable URL.

    Both forms render the same way: as a source usable in a markdown image.
    """

    model_config = ConfigDict(frozen=True)

    url: str | None = Field(default=None, description="Directly fetchable image URL")
    data: str | None = Field(default=None, description="Base64-encoded image bytes")
    mime_type: str = Field(default="image/jpeg", description="MIME type of inline data")

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "ImageReference":
        if bool(self.url) == bool(self.data):
            raise ValueError("an image reference needs exactly one of url or data")
        return self

    @property
    def is_inline(self) -> bool:
        return self.data is not None

    @property
    def source(self) -> str:
        """Embeddable source: the URL or a data: URI."""
        if self.data:
            return f"data:{self.mime_type};base64,{self.data}"
        return self.url or ""

    def to_markdown(self, alt: str = IMAGE_ALT_TEXT) -> str:
        """Render as a markdown image literal."""
        return f"![{alt}]({self.source})"
