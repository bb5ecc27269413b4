"""
Cancellation primitives for cooperative search cancellation.

The engine provides the MECHANISM (a token with state passed through the
search context). The host provides the POLICY (cancel when the user types
again, closes the dropdown, or leaves the input).
"""

import asyncio
import logging
from collections.abc import Callable

from .errors import SearchCancelledError

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Cancellation signal carried by every MentionSearchContext.

    Providers check ``is_cancelled`` at entry and after each suspension
    point. Nothing is preempted; a provider that ignores the token still
    finishes, but the engine drops its result.

    Tokens can be chained: cancelling a parent cancels every registered
    child, and a child registered on an already-cancelled parent is
    cancelled immediately.

    Example:
        token = CancellationToken()
        context = MentionSearchContext(query="ind", signal=token)
        task = asyncio.create_task(engine.search("@", "ind", context))
        token.cancel("superseded")   # user typed another character
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None
        self._children: set[CancellationToken] = set()
        self._callbacks: list[Callable[[], None]] = []
        self._event: asyncio.Event | None = None

    @property
    def is_cancelled(self) -> bool:
        """True once cancel() has been called on this token or a parent."""
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> bool:
        """
        Request cancellation.

        Returns:
            True if state changed, False if already cancelled
        """
        if self._cancelled:
            return False

        self._cancelled = True
        self._reason = reason
        if self._event is not None:
            self._event.set()

        for callback in self._callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Error in cancellation callback")

        for child in list(self._children):
            child.cancel(reason)
        return True

    def raise_if_cancelled(self) -> None:
        """Raise SearchCancelledError if cancellation was requested."""
        if self._cancelled:
            raise SearchCancelledError(self._reason or "Search cancelled")

    def register_child(self, child: "CancellationToken") -> None:
        """Register a child token for propagation."""
        self._children.add(child)
        if self._cancelled:
            child.cancel(self._reason)

    def unregister_child(self, child: "CancellationToken") -> None:
        self._children.discard(child)

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Register a synchronous callback; runs immediately if already cancelled."""
        if self._cancelled:
            callback()
            return
        self._callbacks.append(callback)

    async def wait(self) -> None:
        """Suspend until the token is cancelled."""
        if self._cancelled:
            return
        if self._event is None:
            self._event = asyncio.Event()
        await self._event.wait()

    def __repr__(self) -> str:
        state = f"cancelled: {self._reason}" if self._cancelled else "active"
        return f"CancellationToken({state})"


__all__ = ["CancellationToken", "SearchCancelledError"]
