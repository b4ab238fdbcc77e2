"""Textual TUI for thinkchat.

Run with: thinkchat chat

Layout:
- Left: session sidebar (new chat, recent sessions)
- Right: message list, error banner, input bar
- Bottom (toggle with Ctrl+D): log panel
"""

from .app import ThinkChatApp, run_tui

__all__ = ["ThinkChatApp", "run_tui"]
