"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.
Layout: session sidebar on the left, conversation on the right with the
error banner and input bar stacked under the message list.
"""

APP_CSS = """
Screen {
    layout: horizontal;
    background: $background;
}

/* Sidebar */
#sidebar {
    width: 32;
    height: 100%;
    background: $panel;
    border-right: solid $border;
    padding: 0 1;

    &.-hidden {
        display: none;
    }
}

#new-chat-btn {
    width: 100%;
    margin: 1 0;
}

#sidebar-heading {
    color: $text-muted;
    text-style: bold;
    padding: 0 1;
}

#session-list {
    height: 1fr;
    background: transparent;

    & > SessionItem {
        padding: 0 1;
        color: $text-muted;
    }

    & > SessionItem.-active {
        background: $surface;
        color: $foreground;
        text-style: bold;
    }
}

/* Conversation */
#main {
    width: 1fr;
    height: 100%;
}

#chat-history {
    height: 1fr;
    padding: 0 2;
    scrollbar-gutter: stable;
}

.welcome {
    width: 100%;
    height: 100%;
    content-align: center middle;
    text-align: center;
    color: $text-muted;
}

.chat-message {
    height: auto;
    margin: 1 0 0 0;
    padding: 0 1;
}

.user-message {
    border-left: wide $primary;
}

.model-message {
    border-left: wide $secondary 50%;

    &.-streaming {
        border-left: wide $warning;
    }
}

.message-header {
    text-style: bold;
    color: $text-muted;
}

.model-message .message-header {
    color: $secondary;
}

.message-content {
    height: auto;
}

/* Error banner */
#error-banner {
    display: none;
    height: auto;
    margin: 0 2;
    padding: 0 1;
    border: round $error;
    color: $error;

    &.-visible {
        display: block;
    }
}

/* Input bar */
#chat-input-bar {
    height: auto;
    max-height: 10;
    padding: 0 2 1 2;
}

#chat-input {
    width: 1fr;
    height: auto;
    min-height: 3;
    max-height: 8;
    background: $surface;
    border: round $border;

    &:focus {
        border: round $accent;
    }
}

#send-btn {
    width: 10;
    margin-left: 1;
}

#disclaimer {
    color: $text-muted;
    text-align: center;
    width: 100%;
}

/* Debug log panel */
#debug-panel {
    display: none;
    height: 12;
    border-top: solid $border;
    background: $panel;

    &.-visible {
        display: block;
    }
}
"""
