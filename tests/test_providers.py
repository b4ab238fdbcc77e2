"""Tests for provider construction, factories and settings."""
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import pytest

from thinkchat.config import DEFAULT_IMAGE_MODEL, DEFAULT_TEXT_MODEL, Settings
from thinkchat.llm import (
    ChatMessage,
    GeminiImageProvider,
    GeminiProvider,
    ModelGateway,
    OpenAIImageProvider,
    OpenAIProvider,
    PollinationsImageProvider,
    create_image_provider,
    create_llm_provider,
)
from thinkchat.llm.providers.openai import _to_openai_messages
from thinkchat.sessions import Message, Role


class TestPollinationsImageProvider:
    """Tests for the keyless URL-based image backend."""

    async def test_builds_prompt_url(self):
        """Test that the prompt is quoted into the path with size parameters."""
        provider = PollinationsImageProvider(width=512, height=256, seed=7)

        reference = await provider.generate_image("a red cube & a blue sphere")

        parsed = urlparse(reference.url)
        assert parsed.netloc == "image.pollinations.ai"
        assert parsed.path == "/prompt/a%20red%20cube%20%26%20a%20blue%20sphere"
        assert parse_qs(parsed.query) == {
            "width": ["512"],
            "height": ["256"],
            "seed": ["7"],
            "nologo": ["true"],
        }
        assert not reference.is_inline

    async def test_random_seed_per_request(self):
        """Test that without a fixed seed every URL carries a seed."""
        provider = PollinationsImageProvider()
        reference = await provider.generate_image("cat")
        assert "seed" in parse_qs(urlparse(reference.url).query)

    async def test_empty_prompt(self):
        """Test that an empty prompt is rejected."""
        with pytest.raises(ValueError):
            await PollinationsImageProvider().generate_image("   ")


class TestFactories:
    """Tests for create_llm_provider and create_image_provider."""

    def test_create_gemini(self):
        """Test that the Gemini provider is created lazily without a key."""
        provider = create_llm_provider("gemini", api_key=None)
        assert isinstance(provider, GeminiProvider)
        assert provider.model == DEFAULT_TEXT_MODEL

    def test_create_openai_case_insensitive(self):
        """Test that provider names are case-insensitive."""
        provider = create_llm_provider("OpenAI", api_key="sk-test", model="gpt-4o")
        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4o"

    def test_unknown_text_provider(self):
        """Test that an unsupported provider raises ValueError."""
        with pytest.raises(ValueError, match="Unsupported provider"):
            create_llm_provider("anthropic")

    def test_create_image_providers(self):
        """Test that each image backend name maps to its class."""
        assert isinstance(create_image_provider("gemini", api_key=None), GeminiImageProvider)
        assert isinstance(create_image_provider("openai", api_key="sk-test"), OpenAIImageProvider)
        assert isinstance(create_image_provider("pollinations"), PollinationsImageProvider)

    def test_pollinations_ignores_key_and_model(self):
        """Test that shared settings do not break the keyless backend."""
        provider = create_image_provider("pollinations", api_key="unused", model="unused")
        assert isinstance(provider, PollinationsImageProvider)

    def test_unknown_image_provider(self):
        """Test that an unsupported image backend raises ValueError."""
        with pytest.raises(ValueError, match="Unsupported image provider"):
            create_image_provider("midjourney")

    def test_gemini_image_default_model(self):
        """Test the default Imagen model."""
        assert GeminiImageProvider().model == DEFAULT_IMAGE_MODEL


class TestMessageConversion:
    """Tests for provider message formats."""

    def test_gemini_roles(self):
        """Test that system becomes the instruction and assistant becomes model."""
        provider = GeminiProvider(api_key="test")
        system, contents = provider._convert_messages([
            ChatMessage(role="system", content="persona"),
            ChatMessage(role="user", content="hi"),
            ChatMessage(role="assistant", content="hello"),
        ])
        assert system == "persona"
        assert [c.role for c in contents] == ["user", "model"]
        assert contents[1].parts[0].text == "hello"

    def test_openai_roles(self):
        """Test that model roles become assistant roles."""
        converted = _to_openai_messages([
            ChatMessage(role="system", content="persona"),
            ChatMessage(role="model", content="hello"),
        ])
        assert converted == [
            {"role": "system", "content": "persona"},
            {"role": "assistant", "content": "hello"},
        ]


class TestSettings:
    """Tests for environment-driven settings."""

    ENV_VARS = (
        "THINKCHAT_PROVIDER", "THINKCHAT_IMAGE_PROVIDER", "GEMINI_API_KEY", "API_KEY",
        "OPENAI_API_KEY", "THINKCHAT_MODEL", "THINKCHAT_IMAGE_MODEL", "THINKCHAT_STORAGE",
        "THINKCHAT_DATA_DIR", "THINKCHAT_LOG_LEVEL",
    )

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in self.ENV_VARS:
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self):
        """Test the defaults with an empty environment."""
        settings = Settings.from_env()
        assert settings.provider == "gemini"
        assert settings.image_provider == "gemini"
        assert settings.storage == "json"
        assert settings.gemini_api_key is None
        assert settings.data_dir == Path.home() / ".thinkchat"
        assert settings.log_level == "WARNING"

    def test_api_key_fallback(self, monkeypatch):
        """Test that API_KEY is accepted when GEMINI_API_KEY is missing."""
        monkeypatch.setenv("API_KEY", "legacy")
        assert Settings.from_env().gemini_api_key == "legacy"

        monkeypatch.setenv("GEMINI_API_KEY", "preferred")
        assert Settings.from_env().gemini_api_key == "preferred"

    def test_overrides(self, monkeypatch, tmp_path):
        """Test that every variable is honored and normalized."""
        monkeypatch.setenv("THINKCHAT_PROVIDER", "OpenAI")
        monkeypatch.setenv("THINKCHAT_IMAGE_PROVIDER", "pollinations")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("THINKCHAT_STORAGE", "SQLITE")
        monkeypatch.setenv("THINKCHAT_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("THINKCHAT_LOG_LEVEL", "debug")

        settings = Settings.from_env()

        assert settings.provider == "openai"
        assert settings.image_provider == "pollinations"
        assert settings.api_key_for("openai") == "sk-test"
        assert settings.api_key_for("pollinations") is None
        assert settings.storage == "sqlite"
        assert settings.data_dir == tmp_path
        assert settings.log_level == "DEBUG"


class TestRealProviders:
    """Integration tests against live APIs."""

    @pytest.mark.integration
    async def test_gemini_text_turn(self, api_keys):
        """Integration test: stream a short reply from Gemini."""
        if not api_keys["gemini"]:
            pytest.skip("GEMINI_API_KEY not set")

        gateway = ModelGateway(GeminiProvider(api_key=api_keys["gemini"]))
        try:
            gateway.start_context([Message(role=Role.USER, content="Remember the word 'teal'.")])
            fragments = [f async for f in gateway.send_text_turn("Reply with one word: hello")]
            assert "".join(fragments).strip()
            assert len(gateway.context) == 3
        finally:
            await gateway.close()

    @pytest.mark.integration
    async def test_openai_text_turn(self, api_keys):
        """Integration test: stream a short reply from OpenAI."""
        if not api_keys["openai"]:
            pytest.skip("OPENAI_API_KEY not set")

        gateway = ModelGateway(OpenAIProvider(api_key=api_keys["openai"]))
        try:
            gateway.start_context([])
            fragments = [f async for f in gateway.send_text_turn("Reply with one word: hello")]
            assert "".join(fragments).strip()
        finally:
            await gateway.close()
