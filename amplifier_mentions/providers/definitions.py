"""Common flow for providers backed by a definition listing (agents, skills).

Project-scoped definitions get a fixed priority boost over user-scoped ones,
so at equal relevance the project's own entities come first.
"""

from __future__ import annotations

import logging
import time
from abc import abstractmethod
from typing import Any

from ..backends.base import DefinitionListingBackend
from ..models import MentionItem
from ..models import MentionSearchContext
from ..models import MentionSearchResult
from ..provider import MentionProvider
from ..provider import empty_result
from ..provider import failed_result
from ..tokens import MentionPrefix
from ..utils.error_format import format_error_message
from .base import bounded_result
from .base import rank_items

logger = logging.getLogger(__name__)

PROJECT_PRIORITY = 10
USER_PRIORITY = 0


def source_priority(source: str) -> int:
    return PROJECT_PRIORITY if source == "project" else USER_PRIORITY


class DefinitionProvider(MentionProvider):
    """Provider over a DefinitionListingBackend.

    Subclasses set ``prefix`` and ``failure_warning`` and build items from
    definitions and from bare names (for deserialize).
    """

    prefix: MentionPrefix
    failure_warning: str

    def __init__(self, backend: DefinitionListingBackend, cwd: str | None = None):
        """Initialize provider.

        Args:
            backend: Listing backend queried on every search
            cwd: Directory used by resolve() when no search context is at hand
        """
        self.backend = backend
        self.cwd = cwd

    async def search(self, context: MentionSearchContext) -> MentionSearchResult:
        started = time.perf_counter()

        if context.signal.is_cancelled:
            return empty_result()

        try:
            definitions = await self.backend.list_enabled(context.project_path)
        except Exception as e:
            logger.error(f"{self.name} listing failed: {format_error_message(e)}")
            return failed_result(self.failure_warning, started)

        if context.signal.is_cancelled:
            return empty_result()

        items = rank_items([self.build_item(d) for d in definitions], context.query)
        return bounded_result(items, context, started, total_count=len(definitions))

    def deserialize(self, token: str) -> MentionItem | None:
        if not token.startswith(self.prefix.value):
            return None
        name = token[len(self.prefix.value) :]
        if not name:
            return None
        return self.placeholder_item(name)

    async def resolve(self, item: MentionItem) -> MentionItem:
        """Replace a deserialized placeholder with the listed definition.

        Returns the item unchanged when the definition no longer exists or the
        listing fails.
        """
        try:
            definitions = await self.backend.list_enabled(self.cwd)
        except Exception as e:
            logger.warning(f"Could not resolve {item.id}: {format_error_message(e)}")
            return item

        for definition in definitions:
            if f"{self.prefix.value}{definition.name}" == item.id:
                return self.build_item(definition)
        return item

    @abstractmethod
    def build_item(self, definition: Any) -> MentionItem:
        """Item for one listed definition."""

    @abstractmethod
    def placeholder_item(self, name: str) -> MentionItem:
        """Partial item for a name read back from a token."""
