"""Slash-command parsing for chat input."""

from enum import Enum

from ..config import IMAGE_COMMAND_PREFIX, IMAGE_PROMPT_MISSING_TEXT
from ..errors import ValidationError


class TurnKind(str, Enum):
    """Which generation path a submission takes."""

    TEXT = "text"
    IMAGE = "image"


def parse_image_command(text: str) -> str | None:
    """Extract the image prompt from a submission.

    Any input starting with the prefix (case-insensitive) is an image
    command; everything after the prefix, trimmed, is the prompt.

    Args:
        text: Raw user input

    Returns:
        The trimmed description after the command prefix, or None if the
        input is not an image command

    Raises:
        ValidationError: If the command has no description
    """
    trimmed = text.strip()
    if not trimmed.lower().startswith(IMAGE_COMMAND_PREFIX):
        return None
    prompt = trimmed[len(IMAGE_COMMAND_PREFIX):].strip()
    if not prompt:
        raise ValidationError(IMAGE_PROMPT_MISSING_TEXT)
    return prompt
