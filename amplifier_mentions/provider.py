"""Mention provider contract.

A provider exposes one entity source to the mention system. The mandatory
core is ``search``/``serialize``/``deserialize`` plus ``is_available``
(default: always available). Everything else is optional and advertised
through ``capabilities`` so hosts never rely on duck typing.

Two ways to build a provider:
- Subclass MentionProvider (concrete providers with injected backends)
- Call create_mention_provider() with plain callables
"""

from __future__ import annotations

import logging
import time
from abc import ABC
from abc import abstractmethod
from collections.abc import Awaitable
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from .errors import ProviderConfigError
from .models import MentionCategory
from .models import MentionItem
from .models import MentionSearchContext
from .models import MentionSearchResult
from .models import MentionTrigger
from .models import TriggerPosition
from .tokens import format_token

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 50

OPTIONAL_HOOKS = (
    "resolve",
    "get_children",
    "render_item",
    "render_chip",
    "render_tooltip",
    "activate",
    "deactivate",
)


class ProviderCapabilities(BaseModel):
    """Which optional hooks a provider implements."""

    model_config = ConfigDict(frozen=True)

    resolve: bool = False
    get_children: bool = False
    render_item: bool = False
    render_chip: bool = False
    render_tooltip: bool = False
    activate: bool = False
    deactivate: bool = False


def elapsed_ms(started: float) -> float:
    """Milliseconds since a time.perf_counter() reading."""
    return (time.perf_counter() - started) * 1000


def empty_result() -> MentionSearchResult:
    """Result for a cancelled or inapplicable search (zero timing)."""
    return MentionSearchResult(items=[], has_more=False, timing=0.0)


def failed_result(warning: str, started: float) -> MentionSearchResult:
    """Result for a search whose backend failed."""
    return MentionSearchResult(items=[], has_more=False, warning=warning, timing=elapsed_ms(started))


class MentionProvider(ABC):
    """Base class for mention providers.

    Subclasses set ``id``, ``name``, ``category``, ``trigger`` and
    ``priority`` and implement the three abstract methods. Optional hooks
    are declared as ``None`` here; a subclass implements one by defining a
    method of that name.

    Contract:
    - search() honors context.signal and never raises
    - serialize() is pure; deserialize(serialize(item)[2:-1]).id == item.id
    - deserialize() returns None for tokens it does not own or cannot parse
    """

    id: str
    name: str
    category: MentionCategory
    trigger: MentionTrigger = MentionTrigger()
    priority: int = DEFAULT_PRIORITY

    resolve: Callable[[MentionItem], Awaitable[MentionItem]] | None = None
    get_children: Callable[[MentionItem, MentionSearchContext], Awaitable[MentionSearchResult]] | None = None
    render_item: Callable[[MentionItem, bool], Any] | None = None
    render_chip: Callable[[MentionItem], Any] | None = None
    render_tooltip: Callable[[MentionItem], Any] | None = None
    activate: Callable[[], Awaitable[None]] | None = None
    deactivate: Callable[[], Any] | None = None

    @abstractmethod
    async def search(self, context: MentionSearchContext) -> MentionSearchResult:
        """Search for items matching context.query."""

    def serialize(self, item: MentionItem) -> str:
        """Encode an item as ``@[<id>]``."""
        return format_token(item.id)

    @abstractmethod
    def deserialize(self, token: str) -> MentionItem | None:
        """Rebuild a placeholder item from a token without the ``@[ ]`` wrapper."""

    def is_available(self, context: MentionSearchContext | None = None) -> bool:
        """Whether the provider can work in this context."""
        return True

    @property
    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(**{hook: getattr(self, hook, None) is not None for hook in OPTIONAL_HOOKS})

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, priority={self.priority})"


class CategoryOptions(BaseModel):
    """Category as given to the factory; ``id`` defaults to the provider id."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    label: str
    priority: int = 0
    id: str | None = None
    icon: Any = None


class TriggerOptions(BaseModel):
    """Partial trigger; unset fields take the factory defaults."""

    char: str = "@"
    pattern: Any = None
    position: TriggerPosition = TriggerPosition.STANDALONE
    allow_spaces: bool = True
    max_length: int | None = None


class MentionProviderOptions(BaseModel):
    """Options accepted by create_mention_provider()."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    name: str
    category: CategoryOptions
    trigger: TriggerOptions = Field(default_factory=TriggerOptions)
    priority: int = DEFAULT_PRIORITY
    search: Callable[..., Awaitable[MentionSearchResult]] | None = None
    serialize: Callable[..., str] | None = None
    deserialize: Callable[..., MentionItem | None] | None = None
    resolve: Callable[..., Any] | None = None
    get_children: Callable[..., Any] | None = None
    render_item: Callable[..., Any] | None = None
    render_chip: Callable[..., Any] | None = None
    render_tooltip: Callable[..., Any] | None = None
    activate: Callable[..., Any] | None = None
    deactivate: Callable[..., Any] | None = None
    is_available: Callable[..., bool] | None = None


class FunctionProvider(MentionProvider):
    """Immutable provider assembled from callables by create_mention_provider()."""

    def __init__(self, options: MentionProviderOptions):
        values: dict[str, Any] = {
            "id": options.id,
            "name": options.name,
            "category": MentionCategory(
                id=options.category.id or options.id,
                label=options.category.label,
                icon=options.category.icon,
                priority=options.category.priority,
            ),
            "trigger": MentionTrigger(**options.trigger.model_dump()),
            "priority": options.priority,
            "_search": options.search,
            "_serialize": options.serialize,
            "_deserialize": options.deserialize,
            "_is_available": options.is_available,
        }
        for hook in OPTIONAL_HOOKS:
            values[hook] = getattr(options, hook)

        for key, value in values.items():
            object.__setattr__(self, key, value)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"Provider '{self.id}' is immutable")

    async def search(self, context: MentionSearchContext) -> MentionSearchResult:
        return await self._search(context)

    def serialize(self, item: MentionItem) -> str:
        return self._serialize(item)

    def deserialize(self, token: str) -> MentionItem | None:
        try:
            return self._deserialize(token)
        except Exception:
            logger.warning(f"Provider '{self.id}' failed to deserialize token: {token}")
            return None

    def is_available(self, context: MentionSearchContext | None = None) -> bool:
        if self._is_available is None:
            return True
        return bool(self._is_available(context))


def create_mention_provider(options: MentionProviderOptions | dict[str, Any] | None = None, **kwargs: Any) -> FunctionProvider:
    """Build a fully-populated provider from partial options.

    Defaults filled in:
    - trigger.char = "@", trigger.position = "standalone", trigger.allow_spaces = True
    - priority = 50
    - category.id = options.id

    Args:
        options: MentionProviderOptions, a dict of the same shape, or None when
            passing fields as keyword arguments

    Returns:
        Immutable FunctionProvider

    Raises:
        ProviderConfigError: If the id is empty or a required callable is missing
    """
    if options is None:
        options = kwargs
    if isinstance(options, dict):
        try:
            options = MentionProviderOptions.model_validate(options)
        except ValueError as e:
            raise ProviderConfigError(f"Invalid provider options: {e}") from e

    if not options.id:
        raise ProviderConfigError("Provider id must not be empty")

    missing = [name for name in ("search", "serialize", "deserialize") if getattr(options, name) is None]
    if missing:
        raise ProviderConfigError(f"Provider '{options.id}' is missing required callables: {', '.join(missing)}")

    return FunctionProvider(options)
