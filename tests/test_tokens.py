"""Tests for the mention token grammar."""

import pytest

from amplifier_mentions.tokens import MENTION_PREFIXES
from amplifier_mentions.tokens import MentionPrefix
from amplifier_mentions.tokens import extract_token_ids
from amplifier_mentions.tokens import format_token
from amplifier_mentions.tokens import get_mention_prefix
from amplifier_mentions.tokens import has_tokens
from amplifier_mentions.tokens import is_mention_type
from amplifier_mentions.tokens import parse_tokens


class TestPrefixes:
    """Test prefix lookup."""

    def test_all_prefixes_end_with_separator(self):
        for value in MENTION_PREFIXES.values():
            assert value.endswith(":")

    def test_prefix_set(self):
        assert set(MENTION_PREFIXES) == {
            "FILE",
            "FOLDER",
            "SKILL",
            "AGENT",
            "TOOL",
            "QUOTE",
            "DIFF",
            "PASTED",
            "SYMBOL",
            "GITHUB_ISSUE",
            "GITHUB_PR",
        }

    @pytest.mark.parametrize(
        "token_id,expected",
        [
            ("file:local:/src/index.ts", MentionPrefix.FILE),
            ("folder:local:src", MentionPrefix.FOLDER),
            ("agent:code-reviewer", MentionPrefix.AGENT),
            ("tool:mcp__figma__get_design_context", MentionPrefix.TOOL),
            ("github:issue:42", MentionPrefix.GITHUB_ISSUE),
            ("github:pr:7", MentionPrefix.GITHUB_PR),
        ],
    )
    def test_get_mention_prefix(self, token_id, expected):
        assert get_mention_prefix(token_id) is expected

    def test_unknown_prefix_is_none(self):
        assert get_mention_prefix("bogus:abc") is None
        assert get_mention_prefix("") is None
        assert get_mention_prefix("github:discussion:1") is None

    def test_is_mention_type_accepts_enum_and_name(self):
        assert is_mention_type("skill:commit", MentionPrefix.SKILL)
        assert is_mention_type("skill:commit", "SKILL")
        assert not is_mention_type("skill:commit", "AGENT")

    def test_is_mention_type_unknown_name(self):
        assert not is_mention_type("skill:commit", "NOT_A_PREFIX")


class TestFormatToken:
    """Test token encoding."""

    def test_wraps_id(self):
        assert format_token("agent:code-reviewer") == "@[agent:code-reviewer]"

    @pytest.mark.parametrize("bad_id", ["", "file:a]b", "file:a\nb"])
    def test_rejects_ids_that_break_grammar(self, bad_id):
        with pytest.raises(ValueError):
            format_token(bad_id)


class TestParseTokens:
    """Test finding tokens in text."""

    def test_finds_tokens_with_spans(self):
        text = "look at @[file:local:/src/index.ts] please"
        matches = parse_tokens(text)

        assert len(matches) == 1
        match = matches[0]
        assert match.token == "file:local:/src/index.ts"
        assert text[match.start : match.end] == "@[file:local:/src/index.ts]"
        assert match.prefix is MentionPrefix.FILE

    def test_foreign_tokens_are_reported_without_prefix(self):
        matches = parse_tokens("@[bogus:abc] and @[agent:x]")
        assert [m.token for m in matches] == ["bogus:abc", "agent:x"]
        assert matches[0].prefix is None

    def test_token_does_not_span_lines(self):
        assert parse_tokens("@[file:a\nb]") == []

    def test_extract_known_only(self):
        text = "see @[agent:reviewer] and @[bogus:x]"
        assert extract_token_ids(text) == ["agent:reviewer"]
        assert extract_token_ids(text, known_only=False) == ["agent:reviewer", "bogus:x"]

    def test_has_tokens(self):
        assert has_tokens("hi @[skill:commit]")
        assert not has_tokens("hi @commit")
        assert not has_tokens("@[]")

    def test_format_then_parse(self):
        token_id = "tool:mcp__figma__get_design_context"
        assert parse_tokens(f"use {format_token(token_id)} now")[0].token == token_id
