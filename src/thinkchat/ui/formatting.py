"""Text formatting utilities for the TUI.

Hides the details of turning message content into terminal renderables.
"""

import base64
import binascii
import re
from datetime import datetime

from rich.markdown import Markdown
from rich.text import Text

from ..sessions.models import Message, Role

STREAMING_CURSOR = " ▌"

# ![alt](data:image/png;base64,....)
_INLINE_IMAGE = re.compile(
    r"!\[(?P<alt>[^\]]*)\]\(data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>[A-Za-z0-9+/=\s]+)\)"
)


def inline_image_size(data: str) -> int:
    """Decoded size in bytes of a base64 payload, 0 if it does not decode."""
    try:
        return len(base64.b64decode(data, validate=False))
    except (binascii.Error, ValueError):
        return 0


def format_size(num_bytes: int) -> str:
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):.1f} MB"
    if num_bytes >= 1024:
        return f"{num_bytes / 1024:.0f} KB"
    return f"{num_bytes} B"


def summarize_inline_images(content: str) -> str:
    """Replace inline base64 image literals with a short description.

    A terminal cannot show a data: URI, and printing the payload would
    flood the screen. URL images are left as they are.
    """
    def _replace(match: re.Match) -> str:
        alt = match.group("alt") or "Image"
        size = format_size(inline_image_size(match.group("data")))
        return f"*[{alt}: {match.group('mime')}, {size} inline]*"

    return _INLINE_IMAGE.sub(_replace, content)


def render_message(message: Message) -> Markdown | Text:
    """Build the renderable for a message body.

    User messages are plain text; model messages are markdown. A streaming
    message gets a trailing cursor as its pending indicator.
    """
    suffix = STREAMING_CURSOR if message.is_streaming else ""
    if message.role == Role.USER:
        return Text(message.content)
    return Markdown(summarize_inline_images(message.content) + suffix)


def message_header(message: Message, assistant_name: str = "THINK") -> str:
    name = "You" if message.role == Role.USER else assistant_name
    timestamp = datetime.fromtimestamp(message.timestamp / 1000).strftime("%H:%M:%S")
    header = f"{name} [{timestamp}]"
    if message.is_streaming:
        header += " ..."
    return header
