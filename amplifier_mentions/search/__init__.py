"""Search engine, result cache and host-side search session."""

from .cache import CacheStats
from .cache import MentionCache
from .cache import RepositoryAwareCache
from .engine import MentionSearchEngine
from .session import MentionSearchSession

__all__ = [
    "CacheStats",
    "MentionCache",
    "RepositoryAwareCache",
    "MentionSearchEngine",
    "MentionSearchSession",
]
