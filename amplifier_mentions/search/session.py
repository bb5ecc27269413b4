"""Debounced search session for one text input.

Drives the engine the way an input box needs it: each keystroke calls
update(), the previous search is cancelled, and the new one starts after a
debounce delay. Until it lands, the last good items stay visible
(stale-while-revalidate), so the dropdown never flickers empty.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from ..cancellation import CancellationToken
from ..models import AggregatedSearchResult
from ..models import ChangedFile
from ..models import McpServerInfo
from ..models import MentionItem
from ..models import MentionSearchContext
from ..models import MentionSearchOptions
from .engine import MentionSearchEngine

logger = logging.getLogger(__name__)


def normalize_changed_files(entries: list[dict[str, Any] | ChangedFile] | None) -> list[ChangedFile] | None:
    """Accept ``path`` or ``file_path`` entries; drop entries without either."""
    if entries is None:
        return None

    normalized = []
    for entry in entries:
        if isinstance(entry, ChangedFile):
            normalized.append(entry)
            continue
        path = entry.get("file_path") or entry.get("filePath") or entry.get("path")
        if not path:
            continue
        normalized.append(
            ChangedFile(path=path, additions=entry.get("additions", 0), deletions=entry.get("deletions", 0))
        )
    return normalized


class MentionSearchSession:
    """Search state for one input box.

    Example:
        async with MentionSearchSession(engine, project_path="/repo") as session:
            session.update("ind")
            session.update("inde")     # cancels the "ind" search
            await session.wait()
            for item in session.items:
                ...
    """

    def __init__(
        self,
        engine: MentionSearchEngine,
        trigger: str = "@",
        project_path: str | None = None,
        session_id: str | None = None,
        changed_files: list[dict[str, Any] | ChangedFile] | None = None,
        mcp_tools: list[str] | None = None,
        mcp_servers: list[McpServerInfo | dict[str, Any]] | None = None,
        options: MentionSearchOptions | None = None,
    ):
        self.engine = engine
        self.trigger = trigger
        self.project_path = project_path
        self.session_id = session_id
        self.changed_files = normalize_changed_files(changed_files)
        self.mcp_tools = mcp_tools
        self.mcp_servers = [McpServerInfo.model_validate(s) for s in mcp_servers] if mcp_servers is not None else None
        self.options = options or engine.default_options

        self.result: AggregatedSearchResult | None = None
        self.previous_result: AggregatedSearchResult | None = None
        self.error: str | None = None

        self._signal: CancellationToken | None = None
        self._task: asyncio.Task | None = None
        self._closed = False

    async def __aenter__(self) -> MentionSearchSession:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    @property
    def items(self) -> list[MentionItem]:
        """Current items, falling back to the previous result while a search runs."""
        if self.result is not None:
            return self.result.items
        if self.previous_result is not None:
            return self.previous_result.items
        return []

    @property
    def has_more(self) -> bool:
        current = self.result or self.previous_result
        return current.has_more if current is not None else False

    @property
    def warnings(self) -> list[str]:
        return self.result.warnings if self.result is not None else []

    def update(self, query: str) -> None:
        """Start a debounced search for query, cancelling the one in flight.

        Must be called from a running event loop.
        """
        if self._closed:
            raise RuntimeError("Search session is closed")

        self._cancel_pending()
        if self.result is not None:
            self.previous_result = self.result
            self.result = None

        signal = CancellationToken()
        self._signal = signal
        self._task = asyncio.get_running_loop().create_task(self._run(query, signal))

    async def wait(self) -> None:
        """Wait for the current search (if any) to settle."""
        if self._task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    def clear(self) -> None:
        """Cancel pending work and forget all results."""
        self._cancel_pending()
        self.result = None
        self.previous_result = None
        self.error = None

    def close(self) -> None:
        self.clear()
        self._closed = True

    def _cancel_pending(self) -> None:
        if self._signal is not None:
            self._signal.cancel("superseded")
            self._signal = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, query: str, signal: CancellationToken) -> None:
        if self.options.debounce_ms > 0:
            await asyncio.sleep(self.options.debounce_ms / 1000)
        if signal.is_cancelled:
            return

        context = MentionSearchContext(
            project_path=self.project_path,
            session_id=self.session_id,
            changed_files=self.changed_files,
            mcp_tools=self.mcp_tools,
            mcp_servers=self.mcp_servers,
            signal=signal,
        )

        try:
            result = await self.engine.search(self.trigger, query, context, self.options)
        except Exception as e:
            if signal.is_cancelled or self._closed:
                return
            logger.exception(f"Mention search for '{query}' failed")
            self.error = str(e) or "Search failed"
            return

        if signal.is_cancelled or self._closed:
            return

        self.result = result
        self.error = None
        if not result.items and result.warnings:
            self.error = result.warnings[0]
