"""Skills provider: mentions of enabled skills."""

from __future__ import annotations

from pydantic import BaseModel

from ..backends.base import DefinitionSource
from ..backends.base import SkillDefinition
from ..models import MentionCategory
from ..models import MentionItem
from ..models import MentionMetadata
from ..tokens import MentionPrefix
from .definitions import DefinitionProvider
from .definitions import source_priority


class SkillData(BaseModel):
    name: str
    description: str = ""
    source: DefinitionSource = "user"
    path: str = ""


class SkillsProvider(DefinitionProvider):
    id = "skills"
    name = "Skills"
    category = MentionCategory(id="skills", label="Skills", priority=80)
    priority = 80
    prefix = MentionPrefix.SKILL
    failure_warning = "Failed to load skills"

    def build_item(self, definition: SkillDefinition) -> MentionItem:
        # Skills without a description show where they live instead
        return MentionItem(
            id=f"{self.prefix.value}{definition.name}",
            label=definition.name,
            description=definition.description or definition.path,
            icon="skill",
            data=SkillData(**definition.model_dump()),
            priority=source_priority(definition.source),
            metadata=MentionMetadata(type="skill"),
        )

    def placeholder_item(self, name: str) -> MentionItem:
        return MentionItem(
            id=f"{self.prefix.value}{name}",
            label=name,
            description="",
            icon="skill",
            data=SkillData(name=name),
            metadata=MentionMetadata(type="skill"),
        )
