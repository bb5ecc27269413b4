"""Tests for error message formatting."""

import asyncio
from io import StringIO

from rich.console import Console

from amplifier_mentions.utils.error_format import escape_markup
from amplifier_mentions.utils.error_format import format_error_message


class TestFormatErrorMessage:
    """Test that messages are never empty."""

    def test_with_message(self):
        assert format_error_message(ValueError("bad row")) == "ValueError: bad row"

    def test_without_type(self):
        assert format_error_message(ValueError("bad row"), include_type=False) == "bad row"

    def test_type_already_in_message(self):
        assert format_error_message(ValueError("ValueError raised")) == "ValueError raised"

    def test_empty_timeout(self):
        assert format_error_message(TimeoutError()) == "TimeoutError: Backend did not respond in time."

    def test_empty_cancelled(self):
        assert format_error_message(asyncio.CancelledError(), include_type=False) == "Search was cancelled."

    def test_unknown_empty_exception(self):
        assert format_error_message(RuntimeError()) == "RuntimeError: (no additional details)"


class TestEscapeMarkup:
    """Test that mention tokens survive Rich markup rendering."""

    def test_escapes_token_brackets(self):
        assert escape_markup("@[file:local:/x]") == "@\\[file:local:/x]"

    def test_plain_text_unchanged(self):
        assert escape_markup("no brackets here") == "no brackets here"

    def test_empty_string(self):
        assert escape_markup("") == ""

    def test_non_string(self):
        assert escape_markup(42) == "42"

    def test_renders_token_literally(self):
        buf = StringIO()
        c = Console(file=buf, force_terminal=False, no_color=True)
        c.print(f"[red]Error:[/red] {escape_markup('@[agent:planner]')}")
        assert "@[agent:planner]" in buf.getvalue()
