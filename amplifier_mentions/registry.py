"""Mention provider registry.

Catalogue of active providers for one host process. Constructed explicitly
(tests build a fresh one per case) and torn down with clear().

Derived views (sorted providers, providers per trigger, categories) are
memoized against a version counter that every mutation bumps. The bump
happens before subscribers are notified, so a subscriber reading the
registry from its callback sees the new state.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable

from .models import MentionCategory
from .models import MentionSearchContext
from .provider import MentionProvider

logger = logging.getLogger(__name__)

RegistryListener = Callable[[], None]


class MentionProviderRegistry:
    """Manages provider registration, lifecycle and lookup.

    Usage:
        registry = MentionProviderRegistry()
        unregister = registry.register(files_provider)
        registry.register_all([skills_provider, agents_provider])

        await registry.wait_for_activation()
        providers = registry.get_by_trigger("@")

        unsubscribe = registry.subscribe(lambda: print("changed"))
        unregister()
        registry.clear()
    """

    def __init__(self) -> None:
        self._providers: dict[str, MentionProvider] = {}
        self._listeners: list[RegistryListener] = []
        self._activation_tasks: dict[str, asyncio.Task] = {}
        self._deactivation_tasks: set[asyncio.Task] = set()
        self._pending_activation: dict[str, MentionProvider] = {}

        self._version = 0
        self._cached_all: tuple[int, tuple[MentionProvider, ...]] | None = None
        self._cached_by_trigger: dict[str, tuple[int, tuple[MentionProvider, ...]]] = {}
        self._cached_categories: tuple[int, tuple[MentionCategory, ...]] | None = None

    @property
    def version(self) -> int:
        """Mutation counter; changes on every register/unregister/clear."""
        return self._version

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def register(self, provider: MentionProvider) -> Callable[[], None]:
        """Register a provider, replacing any provider with the same id.

        Activation runs in the background; use wait_for_activation() to wait
        for it. Registering outside a running event loop defers activation
        until the next wait_for_activation() call.

        Args:
            provider: Provider to register

        Returns:
            Function that unregisters this provider (no-op once it has been
            replaced or removed)
        """
        existing = self._providers.get(provider.id)
        if existing is not None:
            logger.warning(f"Provider '{provider.id}' already registered, replacing")
            self._deactivate(existing)
            self._discard_activation(provider.id)

        self._providers[provider.id] = provider

        if provider.activate is not None:
            self._schedule_activation(provider)

        self._changed()

        def unregister() -> None:
            if self._providers.get(provider.id) is provider:
                self.unregister(provider.id)

        return unregister

    def register_all(self, providers: list[MentionProvider]) -> Callable[[], None]:
        """Register providers in order.

        Returns:
            Function that unregisters all of them
        """
        unregister_fns = [self.register(provider) for provider in providers]

        def unregister_all() -> None:
            for unregister in unregister_fns:
                unregister()

        return unregister_all

    def unregister(self, provider_id: str) -> None:
        """Deactivate and remove a provider. No-op if absent."""
        provider = self._providers.get(provider_id)
        if provider is None:
            return

        self._deactivate(provider)
        del self._providers[provider_id]
        self._discard_activation(provider_id)
        self._changed()

    def clear(self) -> None:
        """Deactivate and remove every provider."""
        for provider in list(self._providers.values()):
            self._deactivate(provider)
        self._providers.clear()
        self._activation_tasks.clear()
        self._pending_activation.clear()
        self._changed()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, provider_id: str) -> MentionProvider | None:
        return self._providers.get(provider_id)

    def has(self, provider_id: str) -> bool:
        return provider_id in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def get_all(self) -> tuple[MentionProvider, ...]:
        """Providers by descending priority; ties keep registration order."""
        if self._cached_all is not None and self._cached_all[0] == self._version:
            return self._cached_all[1]

        providers = tuple(sorted(self._providers.values(), key=lambda p: -p.priority))
        self._cached_all = (self._version, providers)
        return providers

    def get_by_trigger(self, char: str) -> tuple[MentionProvider, ...]:
        """Providers whose trigger character is exactly ``char``."""
        cached = self._cached_by_trigger.get(char)
        if cached is not None and cached[0] == self._version:
            return cached[1]

        providers = tuple(p for p in self.get_all() if p.trigger.char == char)
        self._cached_by_trigger[char] = (self._version, providers)
        return providers

    def get_available(self, context: MentionSearchContext | None = None) -> list[MentionProvider]:
        """Providers that report themselves available for the context.

        A provider whose is_available() raises is treated as unavailable.
        """
        return [p for p in self.get_all() if self.is_provider_available(p, context)]

    @staticmethod
    def is_provider_available(provider: MentionProvider, context: MentionSearchContext | None) -> bool:
        try:
            return bool(provider.is_available(context))
        except Exception:
            logger.exception(f"Provider '{provider.id}' availability check failed")
            return False

    def get_triggers(self) -> list[str]:
        """Unique trigger characters, in registration order."""
        triggers: list[str] = []
        for provider in self._providers.values():
            if provider.trigger.char not in triggers:
                triggers.append(provider.trigger.char)
        return triggers

    def get_categories(self) -> tuple[MentionCategory, ...]:
        """Categories deduplicated by id (first seen wins), by descending priority."""
        if self._cached_categories is not None and self._cached_categories[0] == self._version:
            return self._cached_categories[1]

        categories: dict[str, MentionCategory] = {}
        for provider in self._providers.values():
            categories.setdefault(provider.category.id, provider.category)

        result = tuple(sorted(categories.values(), key=lambda c: -c.priority))
        self._cached_categories = (self._version, result)
        return result

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def wait_for_activation(self) -> None:
        """Wait until activation of every registered provider has settled.

        Activation errors are logged, never raised here.
        """
        for provider_id, provider in list(self._pending_activation.items()):
            self._activation_tasks[provider_id] = asyncio.ensure_future(self._activate(provider))
        self._pending_activation.clear()

        tasks = list(self._activation_tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def subscribe(self, listener: RegistryListener) -> Callable[[], None]:
        """Subscribe to registry changes.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _schedule_activation(self, provider: MentionProvider) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._pending_activation[provider.id] = provider
            return
        self._activation_tasks[provider.id] = loop.create_task(self._activate(provider))

    def _discard_activation(self, provider_id: str) -> None:
        self._activation_tasks.pop(provider_id, None)
        self._pending_activation.pop(provider_id, None)

    async def _activate(self, provider: MentionProvider) -> None:
        try:
            result = provider.activate()
            if inspect.isawaitable(result):
                await result
            logger.debug(f"Activated provider '{provider.id}'")
        except Exception:
            logger.exception(f"Failed to activate provider '{provider.id}'")

    def _deactivate(self, provider: MentionProvider) -> None:
        if provider.deactivate is None:
            return
        try:
            result = provider.deactivate()
            if inspect.isawaitable(result):
                self._run_async_deactivation(provider, result)
        except Exception:
            logger.exception(f"Failed to deactivate provider '{provider.id}'")

    def _run_async_deactivation(self, provider: MentionProvider, awaitable) -> None:
        async def runner() -> None:
            try:
                await awaitable
            except Exception:
                logger.exception(f"Failed to deactivate provider '{provider.id}'")

        try:
            task = asyncio.get_running_loop().create_task(runner())
        except RuntimeError:
            asyncio.run(runner())
            return
        self._deactivation_tasks.add(task)
        task.add_done_callback(self._deactivation_tasks.discard)

    def _changed(self) -> None:
        self._version += 1

        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Error in registry listener")
