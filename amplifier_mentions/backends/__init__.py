"""Backend query contracts and local reference implementations."""

from .base import AgentDefinition
from .base import DefinitionListingBackend
from .base import FileSearchBackend
from .base import FileSearchRow
from .base import SkillDefinition
from .definitions import AgentDirectoryListing
from .definitions import SkillDirectoryListing
from .definitions import parse_frontmatter
from .files import LocalFileSearch

__all__ = [
    "AgentDefinition",
    "AgentDirectoryListing",
    "DefinitionListingBackend",
    "FileSearchBackend",
    "FileSearchRow",
    "LocalFileSearch",
    "SkillDefinition",
    "SkillDirectoryListing",
    "parse_frontmatter",
]
