"""Backend query contracts consumed by the concrete providers.

Providers depend only on these protocols; the transport behind them (local
filesystem, RPC, index service) is the host's choice.
"""

from __future__ import annotations

from typing import Literal
from typing import Protocol
from typing import runtime_checkable

from pydantic import BaseModel

AgentModel = Literal["sonnet", "opus", "haiku", "inherit"]
DefinitionSource = Literal["user", "project"]


class FileSearchRow(BaseModel):
    """One file or folder returned by a file search backend."""

    id: str
    label: str
    path: str
    type: Literal["file", "folder"] = "file"
    repository: str = "local"


class AgentDefinition(BaseModel):
    """An enabled agent, as listed for a working directory."""

    name: str
    description: str = ""
    prompt: str = ""
    tools: list[str] | None = None
    disallowed_tools: list[str] | None = None
    model: AgentModel | None = None
    source: DefinitionSource = "user"
    path: str = ""


class SkillDefinition(BaseModel):
    """An enabled skill, as listed for a working directory."""

    name: str
    description: str = ""
    source: DefinitionSource = "user"
    path: str = ""


@runtime_checkable
class FileSearchBackend(Protocol):
    """Searches files and folders of one project."""

    async def search(self, project_path: str, query: str, limit: int) -> list[FileSearchRow]:
        """Return at most ``limit`` rows matching query."""
        ...


@runtime_checkable
class DefinitionListingBackend(Protocol):
    """Lists enabled agent or skill definitions visible from a directory."""

    async def list_enabled(self, cwd: str | None) -> list[AgentDefinition] | list[SkillDefinition]:
        """Return definitions; project definitions shadow user ones of the same name."""
        ...

