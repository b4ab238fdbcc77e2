from .base import ImageProvider, LLMProvider
from .factory import create_image_provider, create_llm_provider
from .gateway import ModelGateway
from .models import ChatMessage, ImageReference, StreamingResponse
from .providers import (
    GeminiImageProvider,
    GeminiProvider,
    OpenAIImageProvider,
    OpenAIProvider,
    PollinationsImageProvider,
)

__all__ = [
    "ChatMessage",
    "GeminiImageProvider",
    "GeminiProvider",
    "ImageProvider",
    "ImageReference",
    "LLMProvider",
    "ModelGateway",
    "OpenAIImageProvider",
    "OpenAIProvider",
    "PollinationsImageProvider",
    "StreamingResponse",
    "create_image_provider",
    "create_llm_provider",
]
