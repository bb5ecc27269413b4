"""Local file search backend.

Walks the project tree in a worker thread and matches the query against
relative paths. Good enough for small and medium repositories; larger hosts
plug in an indexed backend behind the same protocol.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from ..errors import BackendError
from ..tokens import MentionPrefix
from .base import FileSearchRow

logger = logging.getLogger(__name__)

DEFAULT_IGNORED_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "node_modules",
        "__pycache__",
        ".venv",
        "venv",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        "dist",
        "build",
    }
)

# Upper bound on visited entries per search
MAX_SCANNED_ENTRIES = 50_000


def _match_rank(relative_path: str, query: str) -> int | None:
    """Lower is better; None means no match."""
    if not query:
        return 3
    name = relative_path.rsplit("/", 1)[-1].lower()
    lowered = relative_path.lower()
    if name == query:
        return 0
    if name.startswith(query):
        return 1
    if query in name:
        return 2
    if query in lowered:
        return 3
    return None


class LocalFileSearch:
    """FileSearchBackend over the local filesystem."""

    def __init__(
        self,
        ignored_dirs: frozenset[str] = DEFAULT_IGNORED_DIRS,
        include_folders: bool = True,
        repository: str = "local",
    ):
        self.ignored_dirs = ignored_dirs
        self.include_folders = include_folders
        self.repository = repository

    async def search(self, project_path: str, query: str, limit: int) -> list[FileSearchRow]:
        return await asyncio.to_thread(self.search_sync, project_path, query, limit)

    def search_sync(self, project_path: str, query: str, limit: int) -> list[FileSearchRow]:
        """Blocking search; see search()."""
        root = Path(project_path)
        if not root.is_dir():
            raise BackendError(f"Project path is not a directory: {project_path}")
        if limit <= 0:
            return []

        needle = " ".join(query.lower().split())
        candidates: list[tuple[int, int, str, str]] = []
        scanned = 0

        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if d not in self.ignored_dirs)
            relative_dir = Path(dirpath).relative_to(root).as_posix()
            prefix = "" if relative_dir == "." else f"{relative_dir}/"

            entries = [(name, "folder") for name in dirnames] if self.include_folders else []
            entries.extend((name, "file") for name in sorted(filenames))

            for name, kind in entries:
                scanned += 1
                relative_path = f"{prefix}{name}"
                rank = _match_rank(relative_path, needle)
                if rank is not None:
                    candidates.append((rank, len(relative_path), relative_path, kind))

            if scanned >= MAX_SCANNED_ENTRIES:
                logger.warning(f"Stopped scanning {project_path} after {scanned} entries")
                break

        candidates.sort()
        return [self._row(path, kind) for _rank, _length, path, kind in candidates[:limit]]

    def _row(self, relative_path: str, kind: str) -> FileSearchRow:
        prefix = MentionPrefix.FOLDER if kind == "folder" else MentionPrefix.FILE
        return FileSearchRow(
            id=f"{prefix.value}{self.repository}:{relative_path}",
            label=relative_path.rsplit("/", 1)[-1],
            path=relative_path,
            type=kind,
            repository=self.repository,
        )
