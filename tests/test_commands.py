"""Tests for chat command parsing."""
import pytest
from hypothesis import given
from hypothesis import strategies as st

from thinkchat.chat import parse_image_command
from thinkchat.config import IMAGE_PROMPT_MISSING_TEXT
from thinkchat.errors import ValidationError


class TestImageCommand:
    """Tests for /image command recognition."""

    def test_extracts_prompt(self):
        """Test that the description after the prefix is returned trimmed."""
        assert parse_image_command("/image a red cube") == "a red cube"
        assert parse_image_command("  /image   a red cube  ") == "a red cube"

    def test_prefix_is_case_insensitive(self):
        """Test that /IMAGE and /Image are recognized."""
        assert parse_image_command("/IMAGE sunset") == "sunset"
        assert parse_image_command("/Image sunset") == "sunset"

    def test_plain_text_is_not_a_command(self):
        """Test that ordinary input returns None."""
        assert parse_image_command("hello") is None
        assert parse_image_command("draw /image please") is None

    def test_prefix_needs_no_separator(self):
        """Test that whatever follows the prefix directly is the prompt."""
        assert parse_image_command("/imagecat") == "cat"
        assert parse_image_command("/IMAGE:cat") == ":cat"
        assert parse_image_command("/imagine a world") == "ine a world"

    def test_empty_prompt_raises(self):
        """Test that the bare prefix is a validation error with the user text."""
        with pytest.raises(ValidationError) as exc_info:
            parse_image_command("/image")
        assert str(exc_info.value) == IMAGE_PROMPT_MISSING_TEXT

        with pytest.raises(ValidationError):
            parse_image_command("/image    ")

    def test_multiline_prompt(self):
        """Test that a prompt may span lines."""
        assert parse_image_command("/image a cat\nwearing a hat") == "a cat\nwearing a hat"

    @given(st.text())
    def test_non_slash_input_is_text(self, text: str):
        """Property test: input not starting with a slash is never an image command."""
        if not text.strip().startswith("/"):
            assert parse_image_command(text) is None

    @given(st.text().filter(lambda s: s.strip() and s == s.strip()))
    def test_prompt_is_remainder(self, prompt: str):
        """Property test: the prompt is the trimmed text after the prefix."""
        assert parse_image_command(f"/image {prompt}") == prompt
