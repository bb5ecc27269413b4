"""Mention search engine.

Fans a query out to every provider registered for a trigger that reports
itself available, then merges, de-duplicates, ranks and bounds the results.

Features:
- Cache lookup before each provider call
- Parallel or sequential fan-out
- Per-provider timeout
- A new search for the same (trigger, project) cancels the previous one
- Late results from a cancelled search are dropped, never merged
"""

from __future__ import annotations

import asyncio
import logging
import time

from ..cancellation import CancellationToken
from ..errors import SearchCancelledError
from ..models import AggregatedSearchResult
from ..models import MentionItem
from ..models import MentionSearchContext
from ..models import MentionSearchOptions
from ..models import MentionSearchResult
from ..provider import MentionProvider
from ..provider import elapsed_ms
from ..provider import empty_result
from ..registry import MentionProviderRegistry
from ..relevance import sort_by_relevance
from ..utils.error_format import format_error_message
from .cache import MentionCache

logger = logging.getLogger(__name__)


class MentionSearchEngine:
    """Aggregated search across the providers of one registry."""

    def __init__(
        self,
        registry: MentionProviderRegistry,
        cache: MentionCache | None = None,
        options: MentionSearchOptions | None = None,
    ):
        """Initialize engine.

        Args:
            registry: Registry whose providers are searched
            cache: Result cache (default: new MentionCache)
            options: Default options for searches that pass none
        """
        self.registry = registry
        self.cache = cache if cache is not None else MentionCache()
        self.default_options = options or MentionSearchOptions()
        self._pending: dict[str, CancellationToken] = {}

    async def search(
        self,
        trigger: str,
        query: str,
        base_context: MentionSearchContext | None = None,
        options: MentionSearchOptions | None = None,
    ) -> AggregatedSearchResult:
        """Search all eligible providers for a trigger.

        The caller's ``base_context.signal`` stays in control: cancelling it
        cancels this search too.

        Args:
            trigger: Trigger character, e.g. "@"
            query: Text typed after the trigger
            base_context: Context without query (project path, changed files, ...).
                An explicitly set limit caps the options limit.
            options: Search options (default: engine defaults)

        Returns:
            AggregatedSearchResult; empty if the search was cancelled
        """
        started = time.perf_counter()
        opts = options or self.default_options
        base_context = base_context or MentionSearchContext()
        limit = opts.limit
        if "limit" in base_context.model_fields_set:
            limit = min(limit, base_context.limit)

        search_key = f"{trigger}:{base_context.project_path or 'global'}"
        previous = self._pending.get(search_key)
        if previous is not None:
            previous.cancel("superseded by a newer search")

        token = CancellationToken()
        self._pending[search_key] = token
        base_context.signal.register_child(token)

        try:
            context = base_context.model_copy(update={"query": query, "signal": token, "limit": limit})

            providers = list(self.registry.get_by_trigger(trigger))
            if opts.provider_ids:
                allowed = set(opts.provider_ids)
                providers = [p for p in providers if p.id in allowed]
            providers = [p for p in providers if self.registry.is_provider_available(p, context)]

            if not providers or token.is_cancelled:
                return AggregatedSearchResult(timing=elapsed_ms(started))

            if opts.parallel:
                results = await self._search_parallel(providers, context, opts)
            else:
                results = await self._search_sequential(providers, context, opts)

            if token.is_cancelled:
                logger.debug(f"Discarding results of cancelled search '{query}' ({token.reason})")
                return AggregatedSearchResult(timing=elapsed_ms(started))

            return self._aggregate(results, query, limit, started)
        finally:
            base_context.signal.unregister_child(token)
            if self._pending.get(search_key) is token:
                del self._pending[search_key]

    async def search_provider(
        self,
        provider: MentionProvider,
        context: MentionSearchContext,
        options: MentionSearchOptions | None = None,
    ) -> MentionSearchResult:
        """Search one provider, with cache and timeout. Never raises."""
        opts = options or self.default_options
        started = time.perf_counter()

        if context.signal.is_cancelled:
            return empty_result()

        cache_key = self.cache.key_for(provider.id, context) if opts.use_cache else None
        if cache_key is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Cache hit for provider '{provider.id}' query '{context.query}'")
                return cached

        try:
            result = await asyncio.wait_for(provider.search(context), timeout=opts.timeout_ms / 1000)
            if not isinstance(result, MentionSearchResult):
                result = MentionSearchResult.model_validate(result)
        except TimeoutError:
            logger.warning(f"Provider '{provider.id}' timed out after {opts.timeout_ms}ms")
            return MentionSearchResult(warning=f"{provider.name} search timed out", timing=elapsed_ms(started))
        except SearchCancelledError:
            return empty_result()
        except Exception as e:
            logger.error(f"Provider '{provider.id}' search failed: {format_error_message(e)}")
            return MentionSearchResult(warning=f"{provider.name} search failed", timing=elapsed_ms(started))

        if len(result.items) > context.limit:
            result = result.model_copy(update={"items": result.items[: context.limit], "has_more": True})

        if cache_key is not None and result.items and not context.signal.is_cancelled:
            self.cache.set(cache_key, result)

        return result

    async def _search_parallel(
        self,
        providers: list[MentionProvider],
        context: MentionSearchContext,
        options: MentionSearchOptions,
    ) -> dict[str, MentionSearchResult]:
        results = await asyncio.gather(*(self.search_provider(p, context, options) for p in providers))
        return {provider.id: result for provider, result in zip(providers, results, strict=True)}

    async def _search_sequential(
        self,
        providers: list[MentionProvider],
        context: MentionSearchContext,
        options: MentionSearchOptions,
    ) -> dict[str, MentionSearchResult]:
        results: dict[str, MentionSearchResult] = {}
        for provider in providers:
            if context.signal.is_cancelled:
                break
            results[provider.id] = await self.search_provider(provider, context, options)
        return results

    def _aggregate(
        self,
        results: dict[str, MentionSearchResult],
        query: str,
        limit: int,
        started: float,
    ) -> AggregatedSearchResult:
        merged: list[MentionItem] = []
        seen: set[str] = set()
        warnings: list[str] = []
        has_more = False

        # Providers are already in priority order, so the first copy of a duplicate wins
        for result in results.values():
            for item in result.items:
                if item.id in seen:
                    continue
                seen.add(item.id)
                merged.append(item)
            has_more = has_more or result.has_more
            if result.warning:
                warnings.append(result.warning)

        ranked = sort_by_relevance(merged, query)
        return AggregatedSearchResult(
            by_provider=results,
            items=ranked[:limit],
            has_more=has_more or len(ranked) > limit,
            warnings=warnings,
            timing=elapsed_ms(started),
        )

    def cancel_all(self) -> None:
        """Cancel every in-flight search."""
        for token in self._pending.values():
            token.cancel("cancelled by host")
        self._pending.clear()

    def clear_cache(self) -> None:
        self.cache.clear()

    def invalidate_provider(self, provider_id: str) -> int:
        return self.cache.invalidate_provider(provider_id)

    def get_cache_stats(self):
        return self.cache.get_stats()
