"""prompt_toolkit completer backed by the mention search engine."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncGenerator
from collections.abc import Callable
from collections.abc import Iterable

from prompt_toolkit.completion import CompleteEvent
from prompt_toolkit.completion import Completer
from prompt_toolkit.completion import Completion
from prompt_toolkit.document import Document

from .git_state import read_repository_state_async
from .models import MentionItem
from .models import MentionSearchContext
from .models import MentionSearchOptions
from .models import MentionTrigger
from .models import TriggerMatch
from .provider import MentionProvider
from .search.cache import RepositoryAwareCache
from .search.engine import MentionSearchEngine
from .tokens import has_tokens

logger = logging.getLogger(__name__)

REFRESH_INTERVAL_SECONDS = 1.0


class MentionCompleter(Completer):
    """Complete ``@query`` into ``@[<id>]`` tokens.

    The trigger rules of the registered providers decide whether the text
    before the cursor is an active mention; the engine does the search.
    Accepting a completion replaces the trigger and query with the token the
    owning provider serializes.

    With a repository-aware cache, the working tree is re-read (at most once
    per refresh_interval) before searching, so file results follow commits
    and edits made while the prompt is open.
    """

    def __init__(
        self,
        engine: MentionSearchEngine,
        project_path: str | None = None,
        options: MentionSearchOptions | None = None,
        base_context: MentionSearchContext | None = None,
        refresh_interval: float = REFRESH_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.engine = engine
        self.project_path = project_path
        self.options = options
        self.base_context = base_context
        self.refresh_interval = refresh_interval
        self._clock = clock
        self._last_refresh: float | None = None

    def active_trigger(self, text_before_cursor: str) -> tuple[MentionTrigger, TriggerMatch] | None:
        """First provider trigger (by provider priority) active at the cursor."""
        seen: list[MentionTrigger] = []
        for provider in self.engine.registry.get_all():
            trigger = provider.trigger
            if trigger in seen:
                continue
            seen.append(trigger)
            match = trigger.match(text_before_cursor)
            # A finished token is not an active mention
            if match is not None and not has_tokens(text_before_cursor[match.start :]):
                return trigger, match
        return None

    def get_completions(self, document: Document, complete_event: CompleteEvent) -> Iterable[Completion]:
        # Searching is asynchronous; see get_completions_async
        return []

    async def get_completions_async(
        self, document: Document, complete_event: CompleteEvent
    ) -> AsyncGenerator[Completion, None]:
        active = self.active_trigger(document.text_before_cursor)
        if active is None:
            return
        trigger, match = active

        await self.refresh_repository_state()
        context = self._context()
        result = await self.engine.search(trigger.char, match.query, context, self.options)

        owners = {item.id: provider_id for provider_id, res in result.by_provider.items() for item in res.items}
        replace_length = len(document.text_before_cursor) - match.start

        for item in result.items:
            provider = self.engine.registry.get(owners.get(item.id, ""))
            if provider is None:
                continue
            token = self._serialize(provider, item)
            if token is None:
                continue
            yield Completion(
                f"{token} ",
                start_position=-replace_length,
                display=item.label,
                display_meta=item.description or provider.category.label,
            )

    async def refresh_repository_state(self) -> bool:
        """Record a fresh repository snapshot in the engine's cache.

        Returns:
            True if the state changed and file results were invalidated
        """
        cache = self.engine.cache
        project_path = self._project_path()
        if project_path is None or not isinstance(cache, RepositoryAwareCache):
            return False

        now = self._clock()
        if self._last_refresh is not None and now - self._last_refresh < self.refresh_interval:
            return False
        self._last_refresh = now

        state = await read_repository_state_async(project_path)
        if state is None:
            return False
        return cache.update_repository_state(state)

    def _project_path(self) -> str | None:
        if self.base_context is not None and self.base_context.project_path:
            return self.base_context.project_path
        return self.project_path

    def _context(self) -> MentionSearchContext:
        if self.base_context is not None:
            return self.base_context.model_copy()
        return MentionSearchContext(project_path=self.project_path)

    @staticmethod
    def _serialize(provider: MentionProvider, item: MentionItem) -> str | None:
        try:
            return provider.serialize(item)
        except ValueError as e:
            logger.debug(f"Skipping item {item.id!r}: {e}")
            return None
