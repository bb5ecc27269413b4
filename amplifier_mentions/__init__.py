"""Pluggable @-mention providers with aggregated, ranked, cancellable search."""

from .cancellation import CancellationToken
from .errors import BackendError
from .errors import MentionError
from .errors import ProviderConfigError
from .errors import SearchCancelledError
from .models import AggregatedSearchResult
from .models import ChangedFile
from .models import McpServerInfo
from .models import MentionCategory
from .models import MentionItem
from .models import MentionMetadata
from .models import MentionSearchContext
from .models import MentionSearchOptions
from .models import MentionSearchResult
from .models import MentionTrigger
from .models import TriggerPosition
from .provider import MentionProvider
from .provider import ProviderCapabilities
from .provider import create_mention_provider
from .registry import MentionProviderRegistry
from .relevance import RelevanceScore
from .relevance import calculate_relevance
from .relevance import sort_by_relevance
from .search import MentionCache
from .search import MentionSearchEngine
from .search import MentionSearchSession
from .search import RepositoryAwareCache
from .tokens import MENTION_PREFIXES
from .tokens import MentionPrefix
from .tokens import extract_token_ids
from .tokens import format_token
from .tokens import get_mention_prefix
from .tokens import has_tokens
from .tokens import is_mention_type
from .tokens import parse_tokens

__all__ = [
    "AggregatedSearchResult",
    "BackendError",
    "CancellationToken",
    "ChangedFile",
    "MENTION_PREFIXES",
    "McpServerInfo",
    "MentionCache",
    "MentionCategory",
    "MentionError",
    "MentionItem",
    "MentionMetadata",
    "MentionPrefix",
    "MentionProvider",
    "MentionProviderRegistry",
    "MentionSearchContext",
    "MentionSearchEngine",
    "MentionSearchOptions",
    "MentionSearchResult",
    "MentionSearchSession",
    "MentionTrigger",
    "ProviderCapabilities",
    "ProviderConfigError",
    "RelevanceScore",
    "RepositoryAwareCache",
    "SearchCancelledError",
    "TriggerPosition",
    "calculate_relevance",
    "create_mention_provider",
    "extract_token_ids",
    "format_token",
    "get_mention_prefix",
    "has_tokens",
    "is_mention_type",
    "parse_tokens",
    "sort_by_relevance",
]
