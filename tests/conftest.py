"""Shared fixtures for amplifier_mentions tests."""

import logging

import pytest

from amplifier_mentions.backends.base import AgentDefinition
from amplifier_mentions.backends.base import FileSearchRow
from amplifier_mentions.backends.base import SkillDefinition
from amplifier_mentions.registry import MentionProviderRegistry

from fakes import FakeFileBackend
from fakes import FakeListingBackend


@pytest.fixture
def registry():
    """Fresh registry per test, torn down afterwards."""
    registry = MentionProviderRegistry()
    yield registry
    registry.clear()


@pytest.fixture
def index_row():
    return FileSearchRow(
        id="file:local:/src/index.ts",
        label="index.ts",
        path="/src/index.ts",
        type="file",
        repository="local",
    )


@pytest.fixture
def file_backend(index_row):
    return FakeFileBackend([index_row])


@pytest.fixture
def agent_definitions():
    return [
        AgentDefinition(name="code-reviewer", description="Reviews diffs", tools=["Read", "Grep"], source="user"),
        AgentDefinition(name="planner", description="Plans work", source="project", model="opus"),
    ]


@pytest.fixture
def skill_definitions():
    return [
        SkillDefinition(name="commit", description="Write commit messages", source="user", path="/u/commit/SKILL.md"),
        SkillDefinition(name="release", source="project", path="/p/release/SKILL.md"),
    ]


@pytest.fixture
def agent_backend(agent_definitions):
    return FakeListingBackend(agent_definitions)


@pytest.fixture
def skill_backend(skill_definitions):
    return FakeListingBackend(skill_definitions)


@pytest.fixture
def restore_root_logger():
    """Remove handlers added during the test and restore the root level."""
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
