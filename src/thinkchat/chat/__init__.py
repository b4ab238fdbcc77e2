"""Conversation control for thinkchat: turn protocol and input commands."""

from .commands import TurnKind, parse_image_command
from .controller import ConversationController, TurnResult, TurnState

__all__ = [
    "ConversationController",
    "TurnKind",
    "TurnResult",
    "TurnState",
    "parse_image_command",
]
