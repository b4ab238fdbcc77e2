"""Configuration for thinkchat.

Centralizes fixed constants (storage key, user-visible strings, model
identifiers) and the environment-driven runtime settings.
"""

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# Persistence
STORAGE_KEY = "gemini_chat_history_v1"

# Session titles
DEFAULT_SESSION_TITLE = "New Chat"
TITLE_MAX_LENGTH = 30  # Characters kept from the first user message
TITLE_ELLIPSIS = "..."

# Image command
IMAGE_COMMAND_PREFIX = "/image"
IMAGE_PENDING_TEXT = "Generating image..."
IMAGE_PROMPT_MISSING_TEXT = "Please provide a description for the image after /image."
IMAGE_ALT_TEXT = "Generated Image"

# Failure texts
GENERATION_APOLOGY_TEXT = "Sorry, I encountered an error processing your request."
GENERATION_ERROR_BANNER = "Failed to generate response. Please check your API key and try again."

# Models
DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "imagen-4.0-generate-001"
DEFAULT_OPENAI_TEXT_MODEL = "gpt-4o-mini"
DEFAULT_OPENAI_IMAGE_MODEL = "dall-e-3"

SYSTEM_INSTRUCTION = """You are a helpful, clever, and friendly AI assistant named THINK.
- Answer questions clearly and concisely.
- Use Markdown to format your responses effectively (headings, lists, code blocks).
- When writing code, explain the logic briefly.
- Maintain a helpful and professional tone.
"""

# Presentation
ERROR_BANNER_TIMEOUT = 6.0  # Seconds before the error banner hides itself
WELCOME_TITLE = "How can I help you today?"
WELCOME_HINT = 'Try "/image a cyberpunk city"'


class Settings(BaseModel):
    """Runtime settings resolved from environment variables."""

    model_config = ConfigDict(frozen=True)

    provider: str = Field(default="gemini", description="Text generation provider")
    image_provider: str = Field(default="gemini", description="Image generation provider")
    gemini_api_key: str | None = None
    openai_api_key: str | None = None
    model: str | None = Field(default=None, description="Text model override")
    image_model: str | None = Field(default=None, description="Image model override")
    storage: str = Field(default="json", description="Storage backend: json, sqlite or memory")
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".thinkchat")
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment.

        Environment variables:
            THINKCHAT_PROVIDER: Text provider (gemini, openai; default: gemini)
            THINKCHAT_IMAGE_PROVIDER: Image provider (gemini, openai, pollinations)
            GEMINI_API_KEY: Gemini API key (API_KEY is accepted as a fallback)
            OPENAI_API_KEY: OpenAI API key
            THINKCHAT_MODEL: Text model override
            THINKCHAT_IMAGE_MODEL: Image model override
            THINKCHAT_STORAGE: Storage backend (json, sqlite, memory; default: json)
            THINKCHAT_DATA_DIR: Directory for persisted history (default: ~/.thinkchat)
            THINKCHAT_LOG_LEVEL: Logging level (default: WARNING)
        """
        values: dict = {
            "provider": os.getenv("THINKCHAT_PROVIDER", "gemini").lower(),
            "image_provider": os.getenv("THINKCHAT_IMAGE_PROVIDER", "gemini").lower(),
            "gemini_api_key": os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
            "openai_api_key": os.getenv("OPENAI_API_KEY"),
            "model": os.getenv("THINKCHAT_MODEL"),
            "image_model": os.getenv("THINKCHAT_IMAGE_MODEL"),
            "storage": os.getenv("THINKCHAT_STORAGE", "json").lower(),
            "log_level": os.getenv("THINKCHAT_LOG_LEVEL", "WARNING").upper(),
        }
        data_dir = os.getenv("THINKCHAT_DATA_DIR")
        if data_dir:
            values["data_dir"] = Path(data_dir).expanduser()
        return cls(**values)

    def api_key_for(self, provider: str) -> str | None:
        """Return the API key configured for a provider name."""
        if provider == "gemini":
            return self.gemini_api_key
        if provider == "openai":
            return self.openai_api_key
        return None
