"""Tests for TUI formatting and the Textual app."""
from rich.markdown import Markdown
from rich.text import Text

from thinkchat.sessions import Message, Role
from thinkchat.ui import ThinkChatApp
from thinkchat.ui.formatting import (
    STREAMING_CURSOR,
    format_size,
    message_header,
    render_message,
    summarize_inline_images,
)
from thinkchat.ui.widgets import ChatHistoryWidget, ChatInputBar, MessageView, SessionList


class TestFormatting:
    """Tests for message formatting helpers."""

    def test_inline_image_is_summarized(self):
        """Test that a base64 image literal is replaced by a short description."""
        content = "Here you go: ![Generated Image](data:image/jpeg;base64,aGVsbG8=)"
        summary = summarize_inline_images(content)
        assert summary == "Here you go: *[Generated Image: image/jpeg, 5 B inline]*"

    def test_url_image_is_kept(self):
        """Test that URL images pass through unchanged."""
        content = "![Generated Image](https://img.example/cube.png)"
        assert summarize_inline_images(content) == content

    def test_format_size(self):
        """Test human-readable sizes."""
        assert format_size(512) == "512 B"
        assert format_size(2048) == "2 KB"
        assert format_size(3 * 1024 * 1024) == "3.0 MB"

    def test_render_user_message_as_text(self):
        """Test that user messages are not interpreted as markdown."""
        rendered = render_message(Message(role=Role.USER, content="**not bold**"))
        assert isinstance(rendered, Text)
        assert rendered.plain == "**not bold**"

    def test_render_streaming_model_message(self):
        """Test that a streaming reply carries the pending cursor."""
        rendered = render_message(Message(role=Role.MODEL, content="Thinking", is_streaming=True))
        assert isinstance(rendered, Markdown)
        assert rendered.markup.endswith(STREAMING_CURSOR)

    def test_header(self):
        """Test that headers name the author and mark streaming replies."""
        assert message_header(Message(role=Role.USER, content="x")).startswith("You [")
        streaming = message_header(Message(role=Role.MODEL, content="", is_streaming=True))
        assert streaming.startswith("THINK [") and streaming.endswith("...")


class TestThinkChatApp:
    """Headless tests of the Textual app."""

    async def test_submit_renders_turn(self, store, controller):
        """Test that a submitted message produces a rendered reply."""
        app = ThinkChatApp(store, controller, model_name="fake-text")
        async with app.run_test() as pilot:
            app.query_one(ChatInputBar).post_message(ChatInputBar.Submitted("hello"))
            await pilot.pause()
            await app.workers.wait_for_complete()
            await pilot.pause()

            assert [m.content for m in store.active_session.messages] == ["hello", "Hello, world"]
            assert len(app.query_one(ChatHistoryWidget).query(MessageView)) == 2

    async def test_new_and_delete_chat(self, store, controller):
        """Test that new chat adds a sidebar entry and delete removes it after confirming."""
        app = ThinkChatApp(store, controller)
        async with app.run_test() as pilot:
            app.action_new_chat()
            await pilot.pause()
            await pilot.pause()
            assert len(store) == 2
            assert len(app.query_one(SessionList).children) == 2

            created = store.active_id
            app.action_delete_chat()
            await pilot.pause()
            await pilot.click("#btn-yes")
            await pilot.pause()

            assert created not in store
            assert len(store) == 1

    async def test_empty_session_shows_welcome(self, store, controller):
        """Test that an empty session shows the welcome hint."""
        app = ThinkChatApp(store, controller)
        async with app.run_test() as pilot:
            await pilot.pause()
            assert app.query_one(ChatHistoryWidget).query(".welcome")
