"""Files & folders provider.

Adapts a FileSearchBackend. With an empty query, locally changed files are
listed first (above search hits, de-duplicated by path) so the files a user
is working on are one keystroke away.
"""

from __future__ import annotations

import logging
import time
from typing import Literal

from pydantic import BaseModel

from ..backends.base import FileSearchBackend
from ..backends.base import FileSearchRow
from ..models import ChangedFile
from ..models import DiffStats
from ..models import MentionCategory
from ..models import MentionItem
from ..models import MentionMetadata
from ..models import MentionSearchContext
from ..models import MentionSearchResult
from ..provider import MentionProvider
from ..provider import elapsed_ms
from ..provider import empty_result
from ..provider import failed_result
from ..tokens import MentionPrefix
from ..utils.error_format import format_error_message
from .base import file_name
from .base import truncated_path

logger = logging.getLogger(__name__)

CHANGED_FILE_PRIORITY = 200
LOCAL_REPOSITORY = "local"


class FileData(BaseModel):
    """Payload of a file or folder item."""

    path: str
    type: Literal["file", "folder"] = "file"
    repository: str = LOCAL_REPOSITORY
    additions: int | None = None
    deletions: int | None = None


class FilesProvider(MentionProvider):
    """Mentions of files and folders in the current project."""

    id = "files"
    name = "Files & Folders"
    category = MentionCategory(id="files", label="Files & Folders", priority=100)
    priority = 100

    def __init__(self, backend: FileSearchBackend):
        self.backend = backend

    async def search(self, context: MentionSearchContext) -> MentionSearchResult:
        started = time.perf_counter()

        if context.signal.is_cancelled or not context.project_path:
            return empty_result()

        try:
            rows = await self.backend.search(context.project_path, context.query, context.limit)
        except Exception as e:
            logger.error(f"File search failed in {context.project_path}: {format_error_message(e)}")
            return failed_result("Failed to search files", started)

        if context.signal.is_cancelled:
            return empty_result()

        items = [self._row_item(row) for row in rows]

        changed_count = 0
        if context.changed_files and not context.query.strip():
            existing_paths = {item.data.path for item in items}
            changed_items = [
                self._changed_item(changed)
                for changed in context.changed_files
                if changed.path not in existing_paths
            ]
            changed_count = len(changed_items)
            items = changed_items + items

        limit = context.limit
        return MentionSearchResult(
            items=items[:limit],
            has_more=len(items) > limit or 0 < limit <= len(rows),
            total_count=len(rows) + changed_count,
            timing=elapsed_ms(started),
        )

    def deserialize(self, token: str) -> MentionItem | None:
        if token.startswith(MentionPrefix.FOLDER.value):
            kind, prefix = "folder", MentionPrefix.FOLDER.value
        elif token.startswith(MentionPrefix.FILE.value):
            kind, prefix = "file", MentionPrefix.FILE.value
        else:
            return None

        rest = token[len(prefix) :]
        repository, separator, path = rest.partition(":")
        if not separator:
            repository, path = LOCAL_REPOSITORY, rest
        if not repository or not path:
            return None

        return self._item(token, FileData(path=path, type=kind, repository=repository))

    def is_available(self, context: MentionSearchContext | None = None) -> bool:
        return context is not None and bool(context.project_path)

    def _row_item(self, row: FileSearchRow) -> MentionItem:
        return self._item(
            row.id,
            FileData(path=row.path, type=row.type, repository=row.repository),
            label=row.label,
        )

    def _changed_item(self, changed: ChangedFile) -> MentionItem:
        item = self._item(
            f"{MentionPrefix.FILE.value}{LOCAL_REPOSITORY}:{changed.path}",
            FileData(path=changed.path, additions=changed.additions, deletions=changed.deletions),
            priority=CHANGED_FILE_PRIORITY,
        )
        item.metadata.diff_stats = DiffStats(additions=changed.additions, deletions=changed.deletions)
        return item

    def _item(self, item_id: str, data: FileData, label: str | None = None, priority: int | None = None) -> MentionItem:
        return MentionItem(
            id=item_id,
            label=label or file_name(data.path),
            description=data.path,
            icon="folder" if data.type == "folder" else "file",
            data=data,
            priority=priority,
            metadata=MentionMetadata(
                type=data.type,
                truncated_path=truncated_path(data.path),
                repository=data.repository,
            ),
        )
