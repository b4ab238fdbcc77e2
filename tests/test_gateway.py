"""Tests for the model gateway."""
import pytest

from thinkchat.config import SYSTEM_INSTRUCTION
from thinkchat.errors import GenerationError
from thinkchat.llm import ImageReference, ModelGateway
from thinkchat.sessions import Message, Role

from .fakes import FakeImageProvider, FakeTextProvider


async def collect(gateway: ModelGateway, text: str) -> list[str]:
    return [fragment async for fragment in gateway.send_text_turn(text)]


class TestContext:
    """Tests for conversation context handling."""

    def test_start_context_maps_roles(self, gateway):
        """Test that model messages become assistant messages."""
        gateway.start_context([
            Message(role=Role.USER, content="hi"),
            Message(role=Role.MODEL, content="hello"),
        ])
        assert [(m.role, m.content) for m in gateway.context] == [
            ("user", "hi"),
            ("assistant", "hello"),
        ]

    def test_start_context_skips_streaming_messages(self, gateway):
        """Test that an unfinished reply is not part of the context."""
        gateway.start_context([
            Message(role=Role.USER, content="hi"),
            Message(role=Role.MODEL, content="hel", is_streaming=True),
        ])
        assert len(gateway.context) == 1

    async def test_send_without_context_fails(self, gateway):
        """Test that a text turn before start_context raises GenerationError."""
        with pytest.raises(GenerationError):
            await collect(gateway, "hello")

    async def test_request_includes_persona_and_history(self, gateway, text_provider):
        """Test that the provider sees system, history and the new message in order."""
        gateway.start_context([Message(role=Role.USER, content="earlier")])
        await collect(gateway, "now")

        sent = text_provider.calls[0]
        assert sent[0].role == "system"
        assert sent[0].content == SYSTEM_INSTRUCTION
        assert [(m.role, m.content) for m in sent[1:]] == [("user", "earlier"), ("user", "now")]

    async def test_successful_turn_extends_context(self, gateway):
        """Test that the exchange is remembered for the next turn."""
        gateway.start_context([])
        fragments = await collect(gateway, "hello")

        assert "".join(fragments) == "Hello, world"
        assert [(m.role, m.content) for m in gateway.context] == [
            ("user", "hello"),
            ("assistant", "Hello, world"),
        ]

    async def test_failed_turn_leaves_context_unchanged(self):
        """Test that a broken stream does not add to the context."""
        gateway = ModelGateway(FakeTextProvider(fail_after=1))
        gateway.start_context([])

        with pytest.raises(GenerationError):
            await collect(gateway, "hello")
        assert gateway.context == ()

    async def test_restarted_context_is_not_extended(self, gateway):
        """Test that a turn does not write into a context replaced mid-stream."""
        gateway.start_context([])
        stream = gateway.send_text_turn("hello")
        await stream.__anext__()
        gateway.start_context([Message(role=Role.USER, content="other session")])
        async for _ in stream:
            pass

        assert [m.content for m in gateway.context] == ["other session"]


class TestTextStreaming:
    """Tests for fragment delivery."""

    async def test_fragments_in_order(self):
        """Test that fragments arrive in delivery order and concatenate to the reply."""
        gateway = ModelGateway(FakeTextProvider(["a", "b", "c"]))
        gateway.start_context([])
        assert await collect(gateway, "x") == ["a", "b", "c"]

    async def test_empty_fragments_are_skipped(self):
        """Test that empty chunks are not surfaced."""
        gateway = ModelGateway(FakeTextProvider(["a", "", "b"]))
        gateway.start_context([])
        assert await collect(gateway, "x") == ["a", "b"]

    async def test_failure_after_fragments(self):
        """Test that delivered fragments stay delivered before the error."""
        gateway = ModelGateway(FakeTextProvider(["a", "b", "c"], fail_after=2))
        gateway.start_context([])
        received = []

        with pytest.raises(GenerationError) as exc_info:
            async for fragment in gateway.send_text_turn("x"):
                received.append(fragment)

        assert received == ["a", "b"]
        assert exc_info.value.details == {"fragments_delivered": 2}
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    async def test_stream_closed_after_turn(self, gateway, text_provider):
        """Test that the provider stream is released once the reply is complete."""
        gateway.start_context([])
        await collect(gateway, "hello")
        assert text_provider.streams_closed == 1

    async def test_stream_closed_when_consumer_stops_early(self):
        """Test that abandoning a turn releases the provider stream."""
        provider = FakeTextProvider(["a", "b", "c"])
        gateway = ModelGateway(provider)
        gateway.start_context([])

        turn = gateway.send_text_turn("x")
        assert await turn.__anext__() == "a"
        await turn.aclose()

        assert provider.streams_closed == 1
        assert gateway.context == ()


class TestImageGeneration:
    """Tests for the image path."""

    async def test_returns_reference(self, gateway, image_provider):
        """Test that the provider's reference is returned as-is."""
        reference = await gateway.generate_image("a red cube")
        assert reference.is_inline
        assert image_provider.prompts == ["a red cube"]

    async def test_image_does_not_touch_context(self, gateway):
        """Test that image turns leave the text context alone."""
        gateway.start_context([])
        await gateway.generate_image("a red cube")
        assert gateway.context == ()

    async def test_provider_failure_is_generation_error(self, text_provider):
        """Test that provider exceptions are converted."""
        gateway = ModelGateway(text_provider, FakeImageProvider(error=ValueError("No image data received")))
        with pytest.raises(GenerationError, match="No image data received"):
            await gateway.generate_image("x")

    async def test_no_image_provider(self, text_provider):
        """Test that a gateway without an image backend fails cleanly."""
        gateway = ModelGateway(text_provider)
        with pytest.raises(GenerationError):
            await gateway.generate_image("x")

    async def test_close_closes_providers(self, gateway, text_provider, image_provider):
        """Test that close() releases both providers."""
        await gateway.close()
        assert text_provider.closed and image_provider.closed

    def test_model_defaults_to_provider(self, gateway):
        """Test that the gateway reports the provider model unless overridden."""
        assert gateway.model == "fake-text"
        assert ModelGateway(FakeTextProvider(), model="other").model == "other"


class TestImageReference:
    """Tests for ImageReference rendering."""

    def test_inline_source_is_data_uri(self):
        """Test that inline bytes render as a data URI."""
        reference = ImageReference(data="AAAA", mime_type="image/png")
        assert reference.source == "data:image/png;base64,AAAA"
        assert reference.to_markdown() == "![Generated Image](data:image/png;base64,AAAA)"

    def test_url_source(self):
        """Test that URL references render the URL."""
        reference = ImageReference(url="https://example.com/cat.png")
        assert not reference.is_inline
        assert reference.to_markdown() == "![Generated Image](https://example.com/cat.png)"

    def test_exactly_one_source(self):
        """Test that a reference needs one of url or data, not both or neither."""
        with pytest.raises(ValueError):
            ImageReference()
        with pytest.raises(ValueError):
            ImageReference(url="https://example.com/x.png", data="AAAA")
