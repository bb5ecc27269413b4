"""Data models for mention items, triggers, search contexts and results."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any
from typing import Literal

from pydantic import AliasChoices
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from .cancellation import CancellationToken


class TriggerPosition(str, Enum):
    """Where in the input a trigger character may appear.

    Positions:
    - START_OF_LINE: first character of a line
    - STANDALONE: start of input or preceded by whitespace
    - ANY: anywhere
    """

    START_OF_LINE = "start-of-line"
    STANDALONE = "standalone"
    ANY = "any"


class TriggerMatch(BaseModel):
    """Active trigger found before the cursor."""

    start: int = Field(description="Index of the trigger character")
    query: str = Field(description="Text typed after the trigger character")


class MentionTrigger(BaseModel):
    """Activation rule a host text input evaluates for a provider.

    The engine itself never scans text; ``match`` is offered to hosts so the
    rule lives next to its definition.
    """

    model_config = ConfigDict(frozen=True)

    char: str = "@"
    pattern: re.Pattern[str] | None = None
    position: TriggerPosition = TriggerPosition.STANDALONE
    allow_spaces: bool = True
    max_length: int | None = None

    def match(self, text_before_cursor: str) -> TriggerMatch | None:
        """Return the active trigger in text ending at the cursor, if any.

        Args:
            text_before_cursor: Input text up to the cursor position

        Returns:
            TriggerMatch with the query typed so far, or None if inactive
        """
        start = text_before_cursor.rfind(self.char)
        if start == -1:
            return None

        if not self._position_allows(text_before_cursor, start):
            return None

        query = text_before_cursor[start + len(self.char) :]
        if "\n" in query:
            return None
        if not self.allow_spaces and any(ch.isspace() for ch in query):
            return None
        if self.max_length is not None and len(query) > self.max_length:
            return None
        if self.pattern is not None and not self.pattern.match(text_before_cursor[start:]):
            return None

        return TriggerMatch(start=start, query=query)

    def _position_allows(self, text: str, index: int) -> bool:
        if self.position == TriggerPosition.ANY:
            return True
        if index == 0:
            return True
        previous = text[index - 1]
        if self.position == TriggerPosition.START_OF_LINE:
            return previous == "\n"
        return previous.isspace()


class MentionCategory(BaseModel):
    """Presentation group for items; several providers may share one."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str
    label: str
    icon: Any = None
    priority: int = 0


class DiffStats(BaseModel):
    additions: int = 0
    deletions: int = 0


class DisabledReason(BaseModel):
    reason: str


class MentionMetadata(BaseModel):
    """Free-form display hints. Unknown keys are kept."""

    model_config = ConfigDict(extra="allow")

    diff_stats: DiffStats | None = None
    truncated_path: str | None = None
    type: Literal["file", "folder", "skill", "agent", "tool", "category", "symbol"] | None = None
    repository: str | None = None


class MentionItem(BaseModel):
    """A candidate entity offered to the user.

    ``id`` is namespaced by the owning provider's prefix and is stable for
    the same logical entity, so it survives serialize/deserialize.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    label: str
    description: str | None = None
    icon: Any = None
    data: Any = None
    keywords: list[str] | None = None
    priority: int | None = None
    has_children: bool = False
    parent_id: str | None = None
    disabled: DisabledReason | None = None
    metadata: MentionMetadata | None = None


class ChangedFile(BaseModel):
    """Locally changed file pushed into the context by the host."""

    model_config = ConfigDict(populate_by_name=True)

    path: str = Field(validation_alias=AliasChoices("path", "file_path", "filePath"))
    additions: int = 0
    deletions: int = 0


class McpServerInfo(BaseModel):
    name: str
    status: Literal["connected", "connecting", "disconnected", "failed"]


class MentionSearchContext(BaseModel):
    """Per-query input. Built fresh for every keystroke and discarded after.

    Extra provider-specific fields are accepted and passed through untouched.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="allow")

    query: str = ""
    project_path: str | None = None
    repository: str | None = None
    session_id: str | None = None
    sub_chat_id: str | None = None
    parent_item: MentionItem | None = None
    signal: CancellationToken = Field(default_factory=CancellationToken)
    limit: int = Field(default=50, ge=0)
    offset: int | None = None
    changed_files: list[ChangedFile] | None = None
    mcp_tools: list[str] | None = None
    mcp_servers: list[McpServerInfo] | None = None


class MentionSearchResult(BaseModel):
    """Result from one provider. ``timing`` is in milliseconds."""

    items: list[MentionItem] = Field(default_factory=list)
    has_more: bool = False
    total_count: int | None = None
    warning: str | None = None
    timing: float = 0.0


class AggregatedSearchResult(BaseModel):
    """Merged, ranked result across providers."""

    by_provider: dict[str, MentionSearchResult] = Field(default_factory=dict)
    items: list[MentionItem] = Field(default_factory=list)
    has_more: bool = False
    warnings: list[str] = Field(default_factory=list)
    timing: float = 0.0


class MentionSearchOptions(BaseModel):
    """Knobs for one aggregated search."""

    debounce_ms: int = 200
    timeout_ms: int = 500
    use_cache: bool = True
    parallel: bool = True
    provider_ids: list[str] = Field(default_factory=list)
    limit: int = Field(default=50, ge=0)
