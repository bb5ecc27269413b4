"""Tests for the prompt_toolkit mention completer."""

import shutil
import subprocess
from unittest.mock import AsyncMock
from unittest.mock import patch

import pytest
from prompt_toolkit.completion import CompleteEvent
from prompt_toolkit.document import Document

from amplifier_mentions.completer import MentionCompleter
from amplifier_mentions.git_state import RepositoryState
from amplifier_mentions.models import MentionSearchOptions
from amplifier_mentions.models import MentionTrigger
from amplifier_mentions.search.cache import RepositoryAwareCache
from amplifier_mentions.search.engine import MentionSearchEngine

from fakes import StaticProvider
from fakes import make_item


@pytest.fixture
def completer(registry):
    registry.register(
        StaticProvider("files", [make_item("file:local:index.ts", description="src/index.ts")], priority=100)
    )
    registry.register(StaticProvider("agents", [make_item("agent:indexer")], priority=70))
    engine = MentionSearchEngine(registry, options=MentionSearchOptions(use_cache=False))
    return MentionCompleter(engine, project_path="/repo")


async def complete(completer, text):
    document = Document(text)
    return [c async for c in completer.get_completions_async(document, CompleteEvent())]


class TestActiveTrigger:
    """Test trigger detection before the cursor."""

    def test_standalone_at(self, completer):
        trigger, match = completer.active_trigger("look at @ind")
        assert trigger.char == "@"
        assert match.start == 8
        assert match.query == "ind"

    def test_email_like_text_is_inactive(self, completer):
        assert completer.active_trigger("mail me@example") is None

    def test_no_trigger(self, completer):
        assert completer.active_trigger("plain text") is None

    def test_finished_token_is_inactive(self, completer):
        assert completer.active_trigger("see @[file:local:index.ts] and") is None

    def test_other_trigger_characters(self, registry, completer):
        slash = StaticProvider("commands")
        slash.trigger = MentionTrigger(char="/", position="start-of-line", allow_spaces=False)
        registry.register(slash)

        trigger, match = completer.active_trigger("/hel")

        assert trigger.char == "/"
        assert match.query == "hel"


class TestCompletions:
    """Test completions produced from engine results."""

    @pytest.mark.asyncio
    async def test_completions_replace_trigger_and_query(self, completer):
        completions = await complete(completer, "see @ind")

        assert [c.text for c in completions] == ["@[file:local:index.ts] ", "@[agent:indexer] "]
        assert all(c.start_position == -4 for c in completions)
        assert completions[0].display_text == "index.ts"
        assert completions[0].display_meta_text == "src/index.ts"
        assert completions[1].display_meta_text == "Agents"

    @pytest.mark.asyncio
    async def test_no_completions_without_trigger(self, completer):
        assert await complete(completer, "nothing here") == []

    def test_sync_api_is_empty(self, completer):
        assert list(completer.get_completions(Document("@ind"), CompleteEvent())) == []


class TestRepositoryRefresh:
    """Test that file results follow working-tree changes between completions."""

    @pytest.fixture
    def files(self, registry):
        provider = StaticProvider("files", [make_item("file:local:index.ts")], priority=100)
        registry.register(provider)
        return provider

    @pytest.fixture
    def engine(self, registry, files):
        return MentionSearchEngine(registry, RepositoryAwareCache())

    @pytest.mark.asyncio
    async def test_changed_state_refetches_files(self, engine, files):
        completer = MentionCompleter(engine, project_path="/repo", refresh_interval=0)
        clean = RepositoryState.from_status("abc", "")
        edited = RepositoryState.from_status("abc", " M index.ts\n")

        with patch("amplifier_mentions.completer.read_repository_state_async", AsyncMock(side_effect=[clean, edited])):
            await complete(completer, "@ind")
            await complete(completer, "@ind")

        assert len(files.calls) == 2
        assert engine.cache.repository_state == edited

    @pytest.mark.asyncio
    async def test_unchanged_state_serves_cache(self, engine, files):
        completer = MentionCompleter(engine, project_path="/repo", refresh_interval=0)
        state = RepositoryState.from_status("abc", "")

        with patch("amplifier_mentions.completer.read_repository_state_async", AsyncMock(return_value=state)):
            await complete(completer, "@ind")
            await complete(completer, "@ind")

        assert len(files.calls) == 1

    @pytest.mark.asyncio
    async def test_reads_at_most_once_per_interval(self, engine):
        completer = MentionCompleter(engine, project_path="/repo", refresh_interval=1.0, clock=lambda: 10.0)
        read = AsyncMock(return_value=RepositoryState.from_status("abc", ""))

        with patch("amplifier_mentions.completer.read_repository_state_async", read):
            await complete(completer, "@ind")
            await complete(completer, "@inde")

        read.assert_awaited_once_with("/repo")

    @pytest.mark.asyncio
    async def test_no_refresh_without_project(self, engine):
        completer = MentionCompleter(engine)
        read = AsyncMock()

        with patch("amplifier_mentions.completer.read_repository_state_async", read):
            assert await completer.refresh_repository_state() is False

        read.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
    async def test_tracked_file_edit_in_real_repository(self, engine, files, tmp_path):
        git = ["git", "-c", "user.name=test", "-c", "user.email=test@example.com", "-c", "commit.gpgsign=false"]
        subprocess.run([*git, "init", "-q"], cwd=tmp_path, check=True)
        (tmp_path / "index.ts").write_text("export {}\n")
        subprocess.run([*git, "add", "index.ts"], cwd=tmp_path, check=True)
        subprocess.run([*git, "commit", "-q", "-m", "init"], cwd=tmp_path, check=True)
        completer = MentionCompleter(engine, project_path=str(tmp_path), refresh_interval=0)

        await complete(completer, "@ind")
        (tmp_path / "index.ts").write_text("export const x = 1\n")
        await complete(completer, "@ind")

        assert len(files.calls) == 2
