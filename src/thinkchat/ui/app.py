"""Main Textual TUI application.

Renders the session store and drives the conversation controller. The app
never mutates messages itself: every change flows through the controller
or the store, and the screen re-renders from store snapshots.
"""

import asyncio
import logging

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Button, Footer, Header, ListView, Static

from ..chat import ConversationController
from ..sessions import SessionStore, StoreSnapshot
from .screens import ConfirmationScreen
from .styles import APP_CSS
from .themes import THINK_DARK
from .widgets import (
    ChatHistoryWidget,
    ChatInputBar,
    DebugPanel,
    ErrorBanner,
    PanelLogHandler,
    SessionItem,
    SessionList,
)

logger = logging.getLogger(__name__)


class ThinkChatApp(App):
    """Textual TUI for chatting with THINK."""

    CSS = APP_CSS
    TITLE = "THINK"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("ctrl+n", "new_chat", "New Chat"),
        Binding("ctrl+x", "delete_chat", "Delete Chat"),
        Binding("escape", "cancel_turn", "Cancel"),
        Binding("ctrl+b", "toggle_sidebar", "Sidebar"),
        Binding("ctrl+d", "toggle_debug", "Debug"),
    ]

    def __init__(
        self,
        store: SessionStore,
        controller: ConversationController,
        model_name: str | None = None,
        show_debug: bool = False,
    ) -> None:
        super().__init__()
        self._store = store
        self._controller = controller
        self._model_name = model_name
        self._show_debug = show_debug
        self._unsubscribers: list = []
        self._log_handler: PanelLogHandler | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="sidebar"):
            yield Button("+ New chat", id="new-chat-btn", variant="primary")
            yield Static("Recent", id="sidebar-heading")
            yield SessionList(id="session-list")
        with Vertical(id="main"):
            yield ChatHistoryWidget(id="chat-history")
            yield ErrorBanner(id="error-banner")
            yield ChatInputBar(id="chat-input-bar")
            yield Static("THINK can make mistakes. Check important info.", id="disclaimer")
            yield DebugPanel(id="debug-panel")
        yield Footer()

    def on_mount(self) -> None:
        self.register_theme(THINK_DARK)
        self.theme = "think-dark"
        if self._model_name:
            self.sub_title = self._model_name

        panel = self.query_one("#debug-panel", DebugPanel)
        self._log_handler = PanelLogHandler(self, panel)
        logging.getLogger().addHandler(self._log_handler)
        if self._show_debug:
            panel.toggle()

        self._unsubscribers = [
            self._store.subscribe(self._on_store_change),
            self._controller.subscribe(self._on_controller_change),
        ]
        self._controller.activate()
        self._on_store_change(self._store.snapshot())
        self._on_controller_change(self._controller)

    def on_unmount(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        if self._log_handler is not None:
            logging.getLogger().removeHandler(self._log_handler)
            self._log_handler = None

    # Store and controller observers

    def _on_store_change(self, snapshot: StoreSnapshot) -> None:
        sidebar = self.query_one("#session-list", SessionList)
        chat = self.query_one("#chat-history", ChatHistoryWidget)
        sidebar.call_later(sidebar.show_sessions, snapshot.sessions, snapshot.active_id)
        chat.call_later(chat.show_session, snapshot.active_session)

        active = snapshot.active_session
        title = active.title if active else ""
        self.sub_title = f"{title} | {self._model_name}" if self._model_name else title

    def _on_controller_change(self, controller: ConversationController) -> None:
        self.query_one("#chat-input-bar", ChatInputBar).set_enabled(not controller.is_generating)
        self.query_one("#error-banner", ErrorBanner).show_error(controller.error)

    # Input

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        if self._controller.is_generating:
            return
        self._run_turn(event.value)

    @work(exclusive=True, group="turn")
    async def _run_turn(self, text: str) -> None:
        """Run one turn as a background async worker."""
        try:
            result = await self._controller.submit(text)
        except asyncio.CancelledError:
            self.notify("Cancelled", severity="warning", timeout=2)
            raise
        if result is not None and not result.succeeded:
            logger.debug(f"Turn in session {result.session_id} failed")

    def on_error_banner_dismissed(self, event: ErrorBanner.Dismissed) -> None:
        self._controller.dismiss_error()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "new-chat-btn":
            event.stop()
            self.action_new_chat()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if not isinstance(event.item, SessionItem):
            return
        if event.item.session_id == self._store.active_id:
            return
        if self._busy("switch chats"):
            return
        if self._store.select(event.item.session_id):
            self._controller.activate(event.item.session_id)
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    # Actions

    def action_new_chat(self) -> None:
        if self._busy("start a new chat"):
            return
        session = self._store.create_session()
        self._controller.activate(session.id)
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    def action_delete_chat(self) -> None:
        if self._busy("delete a chat"):
            return
        session = self._store.active_session
        if session is None:
            return

        def _on_confirm(confirmed: bool | None) -> None:
            if not confirmed:
                return
            self._store.delete_session(session.id)
            self._controller.activate()
            self.notify("Chat deleted", timeout=2)

        self.push_screen(
            ConfirmationScreen(f'Delete "{session.title}"?', title="Delete chat"),
            _on_confirm,
        )

    def action_cancel_turn(self) -> None:
        if self._controller.cancel():
            logger.info("Turn cancelled by user")

    def action_toggle_sidebar(self) -> None:
        self.query_one("#sidebar").toggle_class("-hidden")

    def action_toggle_debug(self) -> None:
        visible = self.query_one("#debug-panel", DebugPanel).toggle()
        self.notify(f"Log panel {'shown' if visible else 'hidden'}", timeout=2)

    def _busy(self, action: str) -> bool:
        if self._controller.is_generating:
            self.notify(f"Wait for the reply to finish before you {action}.", severity="warning", timeout=3)
            return True
        return False


async def run_tui(
    store: SessionStore,
    controller: ConversationController,
    model_name: str | None = None,
    show_debug: bool = False,
) -> None:
    """Run the Textual TUI until the user quits.

    Args:
        store: Loaded session store
        controller: Controller bound to the same store
        model_name: Shown in the header subtitle
        show_debug: Open the log panel at start
    """
    app = ThinkChatApp(store, controller, model_name=model_name, show_debug=show_debug)
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        controller.cancel()
