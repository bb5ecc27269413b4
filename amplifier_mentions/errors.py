"""Exception types for the mention system.

Only configuration mistakes surface to callers. Backend failures, malformed
tokens and cancellation are recovered at the provider/engine boundary.
"""


class MentionError(Exception):
    """Base class for mention system errors."""


class ProviderConfigError(MentionError):
    """Raised when provider options are incomplete or invalid."""


class BackendError(MentionError):
    """Raised by a backend query function when it cannot produce rows."""


class SearchCancelledError(MentionError):
    """Raised by CancellationToken.raise_if_cancelled inside a cancelled search."""
