"""Agents provider: mentions of enabled sub-agents."""

from __future__ import annotations

from pydantic import BaseModel

from ..backends.base import AgentDefinition
from ..backends.base import AgentModel
from ..backends.base import DefinitionSource
from ..models import MentionCategory
from ..models import MentionItem
from ..models import MentionMetadata
from ..tokens import MentionPrefix
from .definitions import DefinitionProvider
from .definitions import source_priority


class AgentData(BaseModel):
    name: str
    description: str = ""
    prompt: str = ""
    tools: list[str] | None = None
    disallowed_tools: list[str] | None = None
    model: AgentModel | None = None
    source: DefinitionSource = "user"
    path: str = ""


class AgentsProvider(DefinitionProvider):
    """Agents are searchable by name, description and the tools they use."""

    id = "agents"
    name = "Agents"
    category = MentionCategory(id="agents", label="Agents", priority=70)
    priority = 70
    prefix = MentionPrefix.AGENT
    failure_warning = "Failed to load agents"

    def build_item(self, definition: AgentDefinition) -> MentionItem:
        return MentionItem(
            id=f"{self.prefix.value}{definition.name}",
            label=definition.name,
            description=definition.description,
            icon="agent",
            data=AgentData(**definition.model_dump()),
            priority=source_priority(definition.source),
            keywords=definition.tools,
            metadata=MentionMetadata(type="agent"),
        )

    def placeholder_item(self, name: str) -> MentionItem:
        return MentionItem(
            id=f"{self.prefix.value}{name}",
            label=name,
            description="",
            icon="agent",
            data=AgentData(name=name),
            metadata=MentionMetadata(type="agent"),
        )
