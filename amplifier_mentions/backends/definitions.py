"""Agent and skill listing from markdown definitions on disk.

Layout (user scope under ``~/.claude``, project scope under ``<cwd>/.claude``):

    agents/<name>.md          agent, YAML frontmatter + prompt body
    skills/<name>/SKILL.md    skill, YAML frontmatter + instructions

Agent format:
```
---
name: code-reviewer
description: Reviews diffs for bugs
tools: Read, Grep, Glob
model: sonnet
---

You are a careful reviewer...
```

Project definitions shadow user definitions with the same name. Files that
fail to parse are logged and skipped; one bad file never hides the rest.
"""

from __future__ import annotations

import asyncio
import logging
import re
from abc import ABC
from abc import abstractmethod
from pathlib import Path
from typing import Any
from typing import get_args

import yaml
from pydantic import ValidationError

from .base import AgentDefinition
from .base import AgentModel
from .base import DefinitionSource
from .base import SkillDefinition

logger = logging.getLogger(__name__)

_FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*\n?", re.DOTALL)

SKILL_FILENAME = "SKILL.md"
AGENT_MODELS = get_args(AgentModel)


def default_user_dir() -> Path:
    return Path.home() / ".claude"


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split markdown into YAML frontmatter and body.

    Returns:
        (frontmatter dict, body); frontmatter is empty when absent

    Raises:
        ValueError: If the frontmatter is not valid YAML or not a mapping
    """
    match = _FRONTMATTER_PATTERN.match(content)
    if not match:
        return {}, content

    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML frontmatter: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Frontmatter must be a mapping")
    return data, content[match.end() :]


def _split_list(value: Any) -> list[str] | None:
    """Accept ``[a, b]`` or ``"a, b"``."""
    if value is None:
        return None
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(part) for part in value]


def _agent_model(value: Any, path: Path) -> str | None:
    if value is None or value in AGENT_MODELS:
        return value
    logger.debug(f"Ignoring unknown model '{value}' in {path}")
    return None


def parse_agent_file(path: Path, source: DefinitionSource) -> AgentDefinition:
    """Parse an agent markdown file; name defaults to the file stem."""
    frontmatter, body = parse_frontmatter(path.read_text(encoding="utf-8"))
    return AgentDefinition(
        name=frontmatter.get("name") or path.stem,
        description=frontmatter.get("description") or "",
        prompt=body.strip(),
        tools=_split_list(frontmatter.get("tools")),
        disallowed_tools=_split_list(frontmatter.get("disallowedTools") or frontmatter.get("disallowed_tools")),
        model=_agent_model(frontmatter.get("model"), path),
        source=source,
        path=str(path),
    )


def parse_skill_file(path: Path, source: DefinitionSource) -> SkillDefinition:
    """Parse a SKILL.md file; name defaults to the skill directory name."""
    frontmatter, _body = parse_frontmatter(path.read_text(encoding="utf-8"))
    return SkillDefinition(
        name=frontmatter.get("name") or path.parent.name,
        description=frontmatter.get("description") or "",
        source=source,
        path=str(path),
    )


class _DirectoryListing(ABC):
    subdir: str

    def __init__(self, user_dir: Path | None = None):
        self.user_dir = user_dir if user_dir is not None else default_user_dir()

    async def list_enabled(self, cwd: str | None = None) -> list:
        return await asyncio.to_thread(self.list_enabled_sync, cwd)

    def list_enabled_sync(self, cwd: str | None = None) -> list:
        """Blocking listing; see list_enabled()."""
        by_name: dict[str, Any] = {}
        scopes: list[tuple[Path, DefinitionSource]] = [(self.user_dir, "user")]
        if cwd:
            project_dir = Path(cwd) / ".claude"
            if project_dir.resolve() != self.user_dir.resolve():
                scopes.append((project_dir, "project"))

        for base, source in scopes:
            for definition in self._scan(base / self.subdir, source):
                by_name[definition.name] = definition

        return sorted(by_name.values(), key=lambda d: d.name)

    def _scan(self, directory: Path, source: DefinitionSource) -> list:
        if not directory.is_dir():
            return []

        definitions = []
        for path in self._candidates(directory):
            try:
                definitions.append(self._parse(path, source))
            except (OSError, ValueError, ValidationError) as e:
                logger.warning(f"Skipping invalid definition {path}: {e}")
        return definitions

    @abstractmethod
    def _candidates(self, directory: Path) -> list[Path]:
        """Files in directory that may hold a definition."""

    @abstractmethod
    def _parse(self, path: Path, source: DefinitionSource) -> Any:
        """Parse one candidate; raises OSError, ValueError or ValidationError."""


class AgentDirectoryListing(_DirectoryListing):
    """DefinitionListingBackend for ``agents/*.md``."""

    subdir = "agents"

    def _candidates(self, directory: Path) -> list[Path]:
        return sorted(directory.glob("*.md"))

    def _parse(self, path: Path, source: DefinitionSource) -> AgentDefinition:
        return parse_agent_file(path, source)


class SkillDirectoryListing(_DirectoryListing):
    """DefinitionListingBackend for ``skills/<name>/SKILL.md``."""

    subdir = "skills"

    def _candidates(self, directory: Path) -> list[Path]:
        return sorted(directory.glob(f"*/{SKILL_FILENAME}"))

    def _parse(self, path: Path, source: DefinitionSource) -> SkillDefinition:
        return parse_skill_file(path, source)
