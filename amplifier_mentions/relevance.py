"""Relevance ranking for mention items.

Scores are case-insensitive and deterministic. The weights keep a strict
ordering between match kinds: the smallest score of a stronger kind is
greater than the largest score any weaker kind can reach.

    exact label  >  label prefix  >  label substring or every word in label
        >  keywords/description only

A multi-word query whose words are split between label and description
scores in the lowest kind.
"""

from pydantic import BaseModel

from .models import MentionItem

EXACT_MATCH = 1000
PREFIX_MATCH = 600
CONTAINS_MATCH = 300
ALL_WORDS_MATCH = 250
SPLIT_WORDS_MATCH = 25
DESCRIPTION_MATCH = 100
KEYWORD_MATCH = 40
KEYWORD_MATCH_CAP = 120


class RelevanceScore(BaseModel):
    """Per-component breakdown of an item's score against a query."""

    exact_match: int = 0
    prefix_match: int = 0
    contains_match: int = 0
    path_match: int = 0
    keywords_match: int = 0
    priority: int = 0
    total: int = 0


def calculate_relevance(item: MentionItem, query: str) -> RelevanceScore:
    """Score an item's label, keywords and description against a query.

    ``total`` carries match quality only; ``priority`` is reported alongside
    so callers can bucket by it. An empty query or no match scores 0.

    Args:
        item: Candidate item
        query: Text typed after the trigger

    Returns:
        RelevanceScore with component scores and total
    """
    priority = item.priority or 0
    normalized_query = " ".join(query.lower().split())
    words = normalized_query.split()

    if not words:
        return RelevanceScore(priority=priority)

    label = item.label.lower()
    description = (item.description or "").lower()

    exact = prefix = contains = path = keywords = 0

    if label == normalized_query:
        exact = EXACT_MATCH
    elif label.startswith(normalized_query):
        prefix = PREFIX_MATCH
    elif normalized_query in label:
        contains = CONTAINS_MATCH
    elif len(words) > 1 and all(word in label for word in words):
        contains = ALL_WORDS_MATCH
    elif len(words) > 1 and all(word in label or word in description for word in words):
        contains = SPLIT_WORDS_MATCH

    if description and normalized_query in description:
        path = DESCRIPTION_MATCH

    if item.keywords:
        lowered = [keyword.lower() for keyword in item.keywords]
        matched = sum(1 for word in words if any(word in keyword for keyword in lowered))
        keywords = min(matched * KEYWORD_MATCH, KEYWORD_MATCH_CAP)

    return RelevanceScore(
        exact_match=exact,
        prefix_match=prefix,
        contains_match=contains,
        path_match=path,
        keywords_match=keywords,
        priority=priority,
        total=exact + prefix + contains + path + keywords,
    )


def sort_by_relevance(items: list[MentionItem], query: str) -> list[MentionItem]:
    """Sort items by priority bucket, then relevance, keeping input order on ties.

    Items that do not match are kept (with score 0); dropping them is the
    caller's choice.
    """
    if not query.strip():
        return sorted(items, key=lambda item: -(item.priority or 0))

    scored = [(item, calculate_relevance(item, query)) for item in items]
    scored.sort(key=lambda pair: (-pair[1].priority, -pair[1].total))
    return [item for item, _score in scored]
