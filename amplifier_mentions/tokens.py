"""Token grammar for persisted mentions - pure text processing, no I/O.

A persisted reference is written as ``@[<prefix><identifier>]`` inside free
text, e.g. ``@[file:local:/src/index.ts]`` or ``@[agent:code-reviewer]``.
The prefix is one of a fixed set; anything else is a foreign token and is
left alone by every provider.
"""

import re
from dataclasses import dataclass
from enum import Enum
from re import Pattern


class MentionPrefix(str, Enum):
    """Known token prefixes. Each one owns a serialization namespace."""

    FILE = "file:"
    FOLDER = "folder:"
    SKILL = "skill:"
    AGENT = "agent:"
    TOOL = "tool:"
    QUOTE = "quote:"
    DIFF = "diff:"
    PASTED = "pasted:"
    SYMBOL = "symbol:"
    GITHUB_ISSUE = "github:issue:"
    GITHUB_PR = "github:pr:"


MENTION_PREFIXES: dict[str, str] = {prefix.name: prefix.value for prefix in MentionPrefix}

# @[...] token: identifier runs up to the first closing bracket
TOKEN_PATTERN: Pattern = re.compile(r"@\[([^\]\n]+)\]")


@dataclass(frozen=True)
class TokenMatch:
    """A token found in text, with its span (including the @[ ] wrapper)."""

    token: str
    start: int
    end: int

    @property
    def prefix(self) -> MentionPrefix | None:
        return get_mention_prefix(self.token)


def get_mention_prefix(token_id: str) -> MentionPrefix | None:
    """
    Return the first known prefix the id starts with.

    Examples:
        >>> get_mention_prefix("file:local:/src/index.ts")
        <MentionPrefix.FILE: 'file:'>
        >>> get_mention_prefix("bogus:abc") is None
        True
    """
    for prefix in MentionPrefix:
        if token_id.startswith(prefix.value):
            return prefix
    return None


def is_mention_type(token_id: str, mention_type: MentionPrefix | str) -> bool:
    """
    Check whether an id belongs to a prefix, given as enum member or name.

    Examples:
        >>> is_mention_type("agent:reviewer", "AGENT")
        True
        >>> is_mention_type("agent:reviewer", MentionPrefix.SKILL)
        False
    """
    if not isinstance(mention_type, MentionPrefix):
        try:
            mention_type = MentionPrefix[mention_type]
        except KeyError:
            return False
    return token_id.startswith(mention_type.value)


def format_token(token_id: str) -> str:
    """
    Wrap an id in the persisted ``@[...]`` form.

    Raises:
        ValueError: If the id contains a character that would break the grammar
    """
    if not token_id or "]" in token_id or "\n" in token_id:
        raise ValueError(f"Cannot encode mention id as token: {token_id!r}")
    return f"@[{token_id}]"


def parse_tokens(text: str) -> list[TokenMatch]:
    """
    Find every ``@[...]`` token in text, in order of appearance.

    Foreign tokens (unknown prefix) are included; callers decide whether to
    render them as literal text.
    """
    return [TokenMatch(token=m.group(1), start=m.start(), end=m.end()) for m in TOKEN_PATTERN.finditer(text)]


def extract_token_ids(text: str, known_only: bool = True) -> list[str]:
    """
    Return token ids from text, optionally dropping foreign ones.

    Examples:
        >>> extract_token_ids("see @[agent:reviewer] and @[bogus:x]")
        ['agent:reviewer']
    """
    matches = parse_tokens(text)
    if known_only:
        return [m.token for m in matches if m.prefix is not None]
    return [m.token for m in matches]


def has_tokens(text: str) -> bool:
    """Check if text contains at least one ``@[...]`` token."""
    return bool(TOKEN_PATTERN.search(text))
