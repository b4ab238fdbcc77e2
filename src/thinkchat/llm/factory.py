from typing import Any

from .base import ImageProvider, LLMProvider
from .providers import (
    GeminiImageProvider,
    GeminiProvider,
    OpenAIImageProvider,
    OpenAIProvider,
    PollinationsImageProvider,
)


def create_llm_provider(provider: str, **config: Any) -> LLMProvider:
    """Create a text generation provider.

    This factory function hides the instantiation logic for different providers.

    Args:
        provider: Provider type ('gemini', 'openai')
        **config: Provider-specific configuration
            For Gemini:
                - api_key: str | None
                - model: str (default: 'gemini-2.5-flash')
            For OpenAI:
                - api_key: str | None
                - model: str (default: 'gpt-4o-mini')
                - base_url: str | None
                - organization: str | None

    Returns:
        Initialized LLM provider instance

    Raises:
        ValueError: If provider type is not supported

    Examples:
        >>> provider = create_llm_provider(
        ...     "gemini",
        ...     api_key="...",
        ...     model="gemini-2.5-flash"
        ... )
    """
    provider_lower = provider.lower()

    if provider_lower == "gemini":
        return GeminiProvider(**config)

    if provider_lower == "openai":
        return OpenAIProvider(**config)

    raise ValueError(
        f"Unsupported provider: {provider}. "
        f"Supported providers: 'gemini', 'openai'"
    )


def create_image_provider(provider: str, **config: Any) -> ImageProvider:
    """Create an image generation provider.

    Args:
        provider: Provider type ('gemini', 'openai', 'pollinations')
        **config: Provider-specific configuration
            For Gemini (Imagen, inline bytes):
                - api_key: str | None
                - model: str (default: 'imagen-4.0-generate-001')
            For OpenAI (URL or inline bytes):
                - api_key: str | None
                - model: str (default: 'dall-e-3')
                - size: str (default: '1024x1024')
            For Pollinations (URL, no key):
                - width, height: int
                - seed: int | None

    Returns:
        Initialized image provider instance

    Raises:
        ValueError: If provider type is not supported
    """
    provider_lower = provider.lower()

    if provider_lower == "gemini":
        return GeminiImageProvider(**config)

    if provider_lower == "openai":
        return OpenAIImageProvider(**config)

    if provider_lower == "pollinations":
        config.pop("api_key", None)
        config.pop("model", None)
        return PollinationsImageProvider(**config)

    raise ValueError(
        f"Unsupported image provider: {provider}. "
        f"Supported providers: 'gemini', 'openai', 'pollinations'"
    )
