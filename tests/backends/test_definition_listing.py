"""Tests for agent/skill definition parsing and directory listings."""

import logging

import pytest

from amplifier_mentions.backends.base import DefinitionListingBackend
from amplifier_mentions.backends.definitions import AgentDirectoryListing
from amplifier_mentions.backends.definitions import SkillDirectoryListing
from amplifier_mentions.backends.definitions import _DirectoryListing
from amplifier_mentions.backends.definitions import parse_agent_file
from amplifier_mentions.backends.definitions import parse_frontmatter

AGENT_MD = """---
name: code-reviewer
description: Reviews diffs for bugs
tools: Read, Grep, Glob
model: sonnet
---

You are a careful reviewer.
"""


def write(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def user_dir(tmp_path):
    return tmp_path / "home" / ".claude"


@pytest.fixture
def project(tmp_path):
    path = tmp_path / "project"
    path.mkdir()
    return path


class TestFrontmatter:
    def test_parses_yaml_and_body(self):
        data, body = parse_frontmatter(AGENT_MD)

        assert data["name"] == "code-reviewer"
        assert data["model"] == "sonnet"
        assert body.strip() == "You are a careful reviewer."

    def test_no_frontmatter(self):
        data, body = parse_frontmatter("just text")
        assert data == {}
        assert body == "just text"

    def test_invalid_yaml(self):
        with pytest.raises(ValueError, match="Invalid YAML"):
            parse_frontmatter("---\nname: [unclosed\n---\nbody")

    def test_non_mapping(self):
        with pytest.raises(ValueError, match="mapping"):
            parse_frontmatter("---\n- a\n- b\n---\nbody")


class TestParseAgentFile:
    def test_full_definition(self, tmp_path):
        agent = parse_agent_file(write(tmp_path / "reviewer.md", AGENT_MD), "project")

        assert agent.name == "code-reviewer"
        assert agent.description == "Reviews diffs for bugs"
        assert agent.tools == ["Read", "Grep", "Glob"]
        assert agent.model == "sonnet"
        assert agent.prompt == "You are a careful reviewer."
        assert agent.source == "project"

    def test_name_defaults_to_stem(self, tmp_path):
        agent = parse_agent_file(write(tmp_path / "helper.md", "Body only"), "user")
        assert agent.name == "helper"
        assert agent.tools is None

    def test_list_tools_and_unknown_model(self, tmp_path):
        content = "---\ntools: [Read, Edit]\nmodel: gpt-9\n---\nbody"
        agent = parse_agent_file(write(tmp_path / "a.md", content), "user")

        assert agent.tools == ["Read", "Edit"]
        assert agent.model is None


class TestDirectoryListingBase:
    def test_base_cannot_be_instantiated(self, tmp_path):
        with pytest.raises(TypeError):
            _DirectoryListing(user_dir=tmp_path)

    def test_subclass_must_parse(self, tmp_path):
        class CandidatesOnly(_DirectoryListing):
            subdir = "things"

            def _candidates(self, directory):
                return []

        with pytest.raises(TypeError):
            CandidatesOnly(user_dir=tmp_path)


class TestAgentDirectoryListing:
    """Test scope merging and error isolation."""

    def test_satisfies_protocol(self, user_dir):
        assert isinstance(AgentDirectoryListing(user_dir=user_dir), DefinitionListingBackend)

    @pytest.mark.asyncio
    async def test_project_overrides_user(self, user_dir, project):
        write(user_dir / "agents" / "reviewer.md", "---\nname: reviewer\ndescription: user copy\n---\n")
        write(user_dir / "agents" / "planner.md", "---\nname: planner\n---\n")
        write(project / ".claude" / "agents" / "reviewer.md", "---\nname: reviewer\ndescription: project copy\n---\n")

        agents = await AgentDirectoryListing(user_dir=user_dir).list_enabled(str(project))

        assert [a.name for a in agents] == ["planner", "reviewer"]
        reviewer = agents[1]
        assert reviewer.description == "project copy"
        assert reviewer.source == "project"
        assert agents[0].source == "user"

    def test_without_cwd_only_user_scope(self, user_dir, project):
        write(project / ".claude" / "agents" / "local.md", "---\nname: local\n---\n")
        write(user_dir / "agents" / "global.md", "---\nname: global\n---\n")

        agents = AgentDirectoryListing(user_dir=user_dir).list_enabled_sync(None)

        assert [a.name for a in agents] == ["global"]

    def test_invalid_file_skipped(self, user_dir, caplog):
        write(user_dir / "agents" / "broken.md", "---\nname: [oops\n---\n")
        write(user_dir / "agents" / "ok.md", "---\nname: ok\n---\n")

        with caplog.at_level(logging.WARNING):
            agents = AgentDirectoryListing(user_dir=user_dir).list_enabled_sync()

        assert [a.name for a in agents] == ["ok"]
        assert "Skipping invalid definition" in caplog.text

    def test_missing_directories(self, user_dir, project):
        assert AgentDirectoryListing(user_dir=user_dir).list_enabled_sync(str(project)) == []


class TestSkillDirectoryListing:
    @pytest.mark.asyncio
    async def test_lists_skill_directories(self, user_dir, project):
        write(user_dir / "skills" / "commit" / "SKILL.md", "---\ndescription: Write commit messages\n---\n")
        write(project / ".claude" / "skills" / "release" / "SKILL.md", "Steps to release")
        write(project / ".claude" / "skills" / "notes.md", "not a skill")

        skills = await SkillDirectoryListing(user_dir=user_dir).list_enabled(str(project))

        assert [(s.name, s.source) for s in skills] == [("commit", "user"), ("release", "project")]
        assert skills[0].description == "Write commit messages"
        assert skills[1].path.endswith("SKILL.md")
