from .gemini import GeminiImageProvider, GeminiProvider
from .openai import OpenAIImageProvider, OpenAIProvider
from .pollinations import PollinationsImageProvider

__all__ = [
    "GeminiImageProvider",
    "GeminiProvider",
    "OpenAIImageProvider",
    "OpenAIProvider",
    "PollinationsImageProvider",
]
