"""Shared plumbing for the built-in providers."""

from __future__ import annotations

from ..models import MentionItem
from ..models import MentionSearchContext
from ..models import MentionSearchResult
from ..provider import elapsed_ms
from ..relevance import calculate_relevance
from ..relevance import sort_by_relevance


def rank_items(items: list[MentionItem], query: str) -> list[MentionItem]:
    """Drop items the query does not match at all, then sort by relevance.

    An empty query keeps every item in its original order.
    """
    if not query.strip():
        return items
    matching = [item for item in items if calculate_relevance(item, query).total > 0]
    return sort_by_relevance(matching, query)


def bounded_result(
    items: list[MentionItem],
    context: MentionSearchContext,
    started: float,
    total_count: int | None = None,
) -> MentionSearchResult:
    """Truncate to context.limit and report whether anything was cut."""
    return MentionSearchResult(
        items=items[: context.limit],
        has_more=len(items) > context.limit,
        total_count=total_count,
        timing=elapsed_ms(started),
    )


def truncated_path(path: str) -> str:
    """Directory part of a path, for display next to the file name."""
    parts = path.split("/")
    if len(parts) <= 1:
        return ""
    return "/".join(parts[:-1])


def file_name(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1] or path
