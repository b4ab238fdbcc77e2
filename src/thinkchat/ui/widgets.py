"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- Session list rendering and active highlight
- Incremental message rendering (only changed messages are redrawn)
- Input history management and disabled state
- Error banner auto-hide
- Log record rendering in the debug panel
"""

import logging
import threading
from datetime import datetime

from rich.text import Text
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message as TextualMessage
from textual.widgets import Button, Label, ListItem, ListView, RichLog, Static, TextArea

from ..config import ERROR_BANNER_TIMEOUT, WELCOME_HINT, WELCOME_TITLE
from ..sessions.models import ChatSession, Message, Role
from .formatting import message_header, render_message


class SessionItem(ListItem):
    """Sidebar entry for one session."""

    def __init__(self, session: ChatSession, active: bool = False) -> None:
        super().__init__(Label(session.title, markup=False))
        self.session_id = session.id
        self.set_class(active, "-active")


class SessionList(ListView):
    """Sidebar list of sessions, most recent first.

    Rebuilt only when titles, order or the active session change, so
    streaming updates to a message do not redraw the sidebar.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._signature: tuple = ()

    async def show_sessions(self, sessions: tuple[ChatSession, ...], active_id: str | None) -> None:
        signature = (tuple((s.id, s.title) for s in sessions), active_id)
        if signature == self._signature:
            return
        self._signature = signature

        await self.clear()
        await self.extend(SessionItem(s, active=s.id == active_id) for s in sessions)
        for index, session in enumerate(sessions):
            if session.id == active_id:
                self.index = index
                break


class MessageView(Vertical):
    """One rendered message: a header line and the body."""

    def __init__(self, message: Message, *args, **kwargs) -> None:
        classes = "chat-message user-message" if message.role == Role.USER else "chat-message model-message"
        super().__init__(*args, classes=classes, **kwargs)
        self.message = message

    def compose(self):
        yield Static(message_header(self.message), classes="message-header")
        yield Static(render_message(self.message), classes="message-content")

    def on_mount(self) -> None:
        self.set_class(self.message.is_streaming, "-streaming")

    def refresh_message(self, message: Message) -> None:
        """Redraw with a newer snapshot of the same message."""
        if message == self.message:
            return
        self.message = message
        self.query_one(".message-header", Static).update(message_header(message))
        self.query_one(".message-content", Static).update(render_message(message))
        self.set_class(message.is_streaming, "-streaming")


class ChatHistoryWidget(VerticalScroll):
    """Scrollable message list for the active session.

    Keeps one MessageView per message id. Switching sessions rebuilds the
    list; updates within a session mount new messages and redraw the ones
    whose content changed.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._session_id: str | None = None
        self._views: dict[str, MessageView] = {}

    @property
    def session_id(self) -> str | None:
        return self._session_id

    async def show_session(self, session: ChatSession | None) -> None:
        if session is None:
            await self._reset(None)
            return

        if session.id != self._session_id:
            await self._reset(session.id)

        if not session.messages:
            if not self.query(".welcome"):
                await self.mount(Static(f"{WELCOME_TITLE}\n\n{WELCOME_HINT}", classes="welcome"))
            return
        await self.query(".welcome").remove()

        added = False
        for message in session.messages:
            view = self._views.get(message.id)
            if view is None:
                view = MessageView(message)
                self._views[message.id] = view
                await self.mount(view)
                added = True
            else:
                view.refresh_message(message)

        if added or session.is_streaming:
            self.scroll_end(animate=False)

    async def _reset(self, session_id: str | None) -> None:
        self._session_id = session_id
        self._views.clear()
        await self.remove_children()


class ChatInputBar(Horizontal):
    """Chat input bar with TextArea and Send button."""

    class Submitted(TextualMessage):
        """Posted when the user submits input."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._history: list[str] = []
        self._history_index: int = -1

    def compose(self):
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Button("Send", id="send-btn", variant="primary").with_tooltip(
            "Send message (Ctrl+J)"
        )

    def on_mount(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        text_area.highlight_cursor_line = False
        text_area.focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            self._submit()

    def on_key(self, event) -> None:
        """Handle keyboard shortcuts.

        Terminals do not report modifiers with Enter, so ctrl+j submits.
        """
        if event.key == "ctrl+j":
            self._submit()
            event.prevent_default()
            event.stop()
        elif event.key == "up" and self._is_cursor_at_start():
            self._navigate_history(-1)
            event.prevent_default()
            event.stop()
        elif event.key == "down" and self._is_cursor_at_end():
            self._navigate_history(1)
            event.prevent_default()
            event.stop()

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable input while a turn is running."""
        self.query_one("#chat-input", TextArea).disabled = not enabled
        self.query_one("#send-btn", Button).disabled = not enabled
        if enabled:
            self.focus_input()

    def focus_input(self) -> None:
        self.query_one("#chat-input", TextArea).focus()

    def _is_cursor_at_start(self) -> bool:
        return self.query_one("#chat-input", TextArea).cursor_location == (0, 0)

    def _is_cursor_at_end(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        lines = text_area.text.split("\n")
        return text_area.cursor_location == (len(lines) - 1, len(lines[-1]))

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        text_area = self.query_one("#chat-input", TextArea)
        if direction < 0:
            if self._history_index == -1:
                self._history_index = len(self._history) - 1
            elif self._history_index > 0:
                self._history_index -= 1
        else:
            if self._history_index == -1:
                return
            if self._history_index < len(self._history) - 1:
                self._history_index += 1
            else:
                self._history_index = -1
                text_area.text = ""
                return
        text_area.text = self._history[self._history_index]

    def _submit(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        if text_area.disabled:
            return
        value = text_area.text
        if not value.strip():
            return
        if not self._history or self._history[-1] != value:
            self._history.append(value)
        self._history_index = -1
        text_area.text = ""
        self.post_message(self.Submitted(value))


class ErrorBanner(Static):
    """Dismissible error line above the input, hidden after a timeout."""

    class Dismissed(TextualMessage):
        """Posted when the banner hides itself."""

    def __init__(self, *args, timeout: float = ERROR_BANNER_TIMEOUT, **kwargs) -> None:
        super().__init__("", *args, markup=False, **kwargs)
        self._timeout = timeout
        self._timer = None
        self._text: str | None = None

    def show_error(self, text: str | None) -> None:
        """Show text, or hide the banner when text is None."""
        if text == self._text:
            return
        self._text = text
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

        if text is None:
            self.remove_class("-visible")
            return

        self.update(text)
        self.add_class("-visible")
        self._timer = self.set_timer(self._timeout, self._expire)

    def _expire(self) -> None:
        self._timer = None
        self._text = None
        self.remove_class("-visible")
        self.post_message(self.Dismissed())


class DebugPanel(RichLog):
    """Log panel mirroring log records, toggled with Ctrl+D."""

    BORDER_TITLE = "Log"

    LEVEL_COLORS = {
        logging.DEBUG: "dim white",
        logging.INFO: "cyan",
        logging.WARNING: "yellow",
        logging.ERROR: "red",
        logging.CRITICAL: "bold red",
    }

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(
            *args,
            markup=False,
            highlight=False,
            auto_scroll=True,
            wrap=True,
            **kwargs
        )

    def write_record(self, record: logging.LogRecord, message: str) -> None:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = Text()
        line.append(f"{timestamp} ", style="dim")
        line.append(f"{record.levelname:<7} ", style=self.LEVEL_COLORS.get(record.levelno, "white"))
        line.append(f"[{record.name}] ", style="magenta")
        line.append(message)
        self.write(line)

    def toggle(self) -> bool:
        """Toggle visibility. Returns the new state."""
        self.toggle_class("-visible")
        return self.has_class("-visible")


class PanelLogHandler(logging.Handler):
    """Logging handler that forwards records to a DebugPanel.

    Records emitted off the app thread are marshalled with call_from_thread.
    """

    def __init__(self, app, panel: DebugPanel, level: int = logging.DEBUG) -> None:
        super().__init__(level)
        self.app = app
        self.panel = panel

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            app = self.app
            if app._thread_id != threading.get_ident():
                app.call_from_thread(self.panel.write_record, record, message)
            else:
                self.panel.write_record(record, message)
        except Exception:
            self.handleError(record)
