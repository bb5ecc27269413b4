"""Repository state snapshots for cache invalidation.

A snapshot is the HEAD revision plus a digest of ``git status --porcelain``.
Any commit, checkout, staging change or working-tree edit changes the
fingerprint.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import subprocess
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 5


class RepositoryState(BaseModel):
    """Point-in-time view of a working tree."""

    model_config = ConfigDict(frozen=True)

    head: str | None = None
    status_digest: str = ""

    @property
    def fingerprint(self) -> str:
        return f"{self.head or 'nohead'}:{self.status_digest}"

    @property
    def is_dirty(self) -> bool:
        return self.status_digest != _digest(b"")

    @classmethod
    def from_status(cls, head: str | None, porcelain: str) -> RepositoryState:
        return cls(head=head, status_digest=_digest(porcelain.encode("utf-8")))


def _digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:16]


def _run_git(args: list[str], cwd: Path) -> str | None:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"git {' '.join(args)} failed in {cwd}: {e}")
        return None

    if result.returncode != 0:
        logger.debug(f"git {' '.join(args)} exited {result.returncode} in {cwd}: {result.stderr.strip()}")
        return None
    return result.stdout


def read_repository_state(path: str | Path) -> RepositoryState | None:
    """Read the repository state at path.

    Returns:
        RepositoryState, or None if path is not inside a git work tree or git
        is unavailable
    """
    cwd = Path(path)
    status = _run_git(["status", "--porcelain=v1", "--untracked-files=normal"], cwd)
    if status is None:
        return None

    head = _run_git(["rev-parse", "HEAD"], cwd)
    return RepositoryState.from_status(head.strip() if head else None, status)


async def read_repository_state_async(path: str | Path) -> RepositoryState | None:
    """read_repository_state() without blocking the event loop."""
    return await asyncio.to_thread(read_repository_state, path)
