"""Built-in mention providers."""

from __future__ import annotations

from collections.abc import Callable

from ..backends.base import DefinitionListingBackend
from ..backends.base import FileSearchBackend
from ..backends.definitions import AgentDirectoryListing
from ..backends.definitions import SkillDirectoryListing
from ..backends.files import LocalFileSearch
from ..provider import MentionProvider
from ..registry import MentionProviderRegistry
from .agents import AgentData
from .agents import AgentsProvider
from .files import FileData
from .files import FilesProvider
from .skills import SkillData
from .skills import SkillsProvider
from .tools import ToolData
from .tools import ToolsProvider
from .tools import format_tool_name


def builtin_providers(
    file_backend: FileSearchBackend | None = None,
    agent_backend: DefinitionListingBackend | None = None,
    skill_backend: DefinitionListingBackend | None = None,
    cwd: str | None = None,
) -> list[MentionProvider]:
    """Files, skills, agents and tools providers; local backends by default."""
    return [
        FilesProvider(file_backend or LocalFileSearch()),
        SkillsProvider(skill_backend or SkillDirectoryListing(), cwd=cwd),
        AgentsProvider(agent_backend or AgentDirectoryListing(), cwd=cwd),
        ToolsProvider(),
    ]


def register_builtin_providers(
    registry: MentionProviderRegistry,
    disabled: list[str] | None = None,
    **backends,
) -> Callable[[], None]:
    """Register the built-in providers, minus ``disabled`` ids.

    Returns:
        Function that unregisters them
    """
    skip = set(disabled or [])
    providers = [p for p in builtin_providers(**backends) if p.id not in skip]
    return registry.register_all(providers)


__all__ = [
    "AgentData",
    "AgentsProvider",
    "FileData",
    "FilesProvider",
    "SkillData",
    "SkillsProvider",
    "ToolData",
    "ToolsProvider",
    "builtin_providers",
    "format_tool_name",
    "register_builtin_providers",
]
