"""Search result caching.

MentionCache is an LRU map with per-entry TTL. Entries are bounded by both
size and age. Stored results are copied on the way in and out, so a hit
looks exactly like a fresh search to the caller.

RepositoryAwareCache additionally tracks repository state (HEAD revision
plus working-tree fingerprint) and drops file-search entries whenever that
state changes.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import quote

from pydantic import BaseModel

from ..git_state import RepositoryState
from ..models import MentionSearchContext
from ..models import MentionSearchResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 500
DEFAULT_TTL_SECONDS = 30.0


@dataclass
class CacheEntry:
    """Cached result with expiry (monotonic seconds)."""

    value: MentionSearchResult
    expires: float
    hit_count: int = 0


class CacheStats(BaseModel):
    size: int
    max_size: int
    hits: int
    misses: int
    hit_rate: float


def normalize_query(query: str) -> str:
    """Collapse whitespace; case is kept because backends may be case-sensitive."""
    return " ".join(query.split())


def context_fingerprint(context: MentionSearchContext) -> str:
    """Hash of the context fields a provider's result depends on, besides query."""
    payload = {
        "project_path": context.project_path,
        "repository": context.repository,
        "limit": context.limit,
        "offset": context.offset,
        "parent": context.parent_item.id if context.parent_item else None,
        "changed_files": [f.model_dump() for f in context.changed_files or []],
        "mcp_tools": context.mcp_tools,
        "mcp_servers": [s.model_dump() for s in context.mcp_servers or []],
    }
    encoded = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()[:16]


class MentionCache:
    """LRU cache with TTL for provider search results."""

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize cache.

        Args:
            max_size: Maximum number of entries before LRU eviction
            default_ttl: Entry lifetime in seconds
            clock: Monotonic time source (injectable for tests)
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> MentionSearchResult | None:
        """Return a copy of the cached result, or None on miss/expiry."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._clock() > entry.expires:
            del self._entries[key]
            self._misses += 1
            return None

        entry.hit_count += 1
        self._entries.move_to_end(key)
        self._hits += 1
        return entry.value.model_copy(deep=True)

    def set(self, key: str, value: MentionSearchResult, ttl: float | None = None) -> None:
        """Store a copy of a result, evicting the least recently used entry if full."""
        if key in self._entries:
            del self._entries[key]
        while len(self._entries) >= self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted cache entry: {evicted}")

        self._entries[key] = CacheEntry(
            value=value.model_copy(deep=True),
            expires=self._clock() + (self.default_ttl if ttl is None else ttl),
        )

    def invalidate(self, pattern: str) -> int:
        """Drop entries whose key matches a pattern where ``*`` is a wildcard.

        Returns:
            Number of entries removed
        """
        regex = re.compile("^" + ".*".join(re.escape(part) for part in pattern.split("*")) + "$")
        doomed = [key for key in self._entries if regex.match(key)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def invalidate_provider(self, provider_id: str) -> int:
        """Drop every entry belonging to one provider."""
        return self.invalidate(f"{quote(provider_id, safe='')}:*")

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def get_stats(self) -> CacheStats:
        total = self._hits + self._misses
        return CacheStats(
            size=len(self._entries),
            max_size=self.max_size,
            hits=self._hits,
            misses=self._misses,
            hit_rate=self._hits / total if total else 0.0,
        )

    @staticmethod
    def create_key(provider_id: str, query: str, project_path: str | None = None, fingerprint: str | None = None) -> str:
        """Build a collision-free key; each part is percent-encoded before joining."""
        parts = [provider_id, normalize_query(query)]
        if project_path:
            parts.append(project_path)
        if fingerprint:
            parts.append(fingerprint)
        return ":".join(quote(part, safe="") for part in parts)

    def key_for(self, provider_id: str, context: MentionSearchContext) -> str:
        """Cache key for a provider search in the given context."""
        return self.create_key(provider_id, context.query, context.project_path, context_fingerprint(context))


class RepositoryAwareCache(MentionCache):
    """Cache that forgets file-search results when the repository changes.

    The host (or a watcher) calls update_repository_state() with a fresh
    snapshot after commits, checkouts, staging or edits. The first snapshot
    only records state; later differing snapshots invalidate entries of the
    file providers and notify listeners.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        file_provider_ids: tuple[str, ...] = ("files",),
    ):
        super().__init__(max_size=max_size, default_ttl=default_ttl, clock=clock)
        self.file_provider_ids = file_provider_ids
        self._state: RepositoryState | None = None
        self._listeners: list[Callable[[RepositoryState], None]] = []

    @property
    def repository_state(self) -> RepositoryState | None:
        return self._state

    def update_repository_state(self, state: RepositoryState) -> bool:
        """Record a repository snapshot.

        Returns:
            True if the state changed and file entries were invalidated
        """
        previous = self._state
        self._state = state
        if previous is None or previous.fingerprint == state.fingerprint:
            return False

        removed = sum(self.invalidate_provider(provider_id) for provider_id in self.file_provider_ids)
        logger.debug(f"Repository state changed, invalidated {removed} file search entries")
        self._notify(state)
        return True

    def on_state_change(self, listener: Callable[[RepositoryState], None]) -> Callable[[], None]:
        """Subscribe to repository state changes.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def key_for(self, provider_id: str, context: MentionSearchContext) -> str:
        fingerprint = context_fingerprint(context)
        if provider_id in self.file_provider_ids and self._state is not None:
            fingerprint = f"{fingerprint}-{self._state.fingerprint}"
        return self.create_key(provider_id, context.query, context.project_path, fingerprint)

    def _notify(self, state: RepositoryState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Error in repository state listener")
