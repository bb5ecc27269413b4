"""Tests for repository state snapshots."""

import shutil
import subprocess
from unittest.mock import Mock
from unittest.mock import patch

import pytest

from amplifier_mentions.git_state import RepositoryState
from amplifier_mentions.git_state import read_repository_state
from amplifier_mentions.git_state import read_repository_state_async


def completed(stdout="", returncode=0):
    return Mock(stdout=stdout, stderr="", returncode=returncode)


class TestReadRepositoryState:
    """Test snapshotting with git mocked out."""

    def test_clean_repository(self, tmp_path):
        with patch("amplifier_mentions.git_state.subprocess.run") as run:
            run.side_effect = [completed(""), completed("abc123\n")]
            state = read_repository_state(tmp_path)

        assert state.head == "abc123"
        assert state.is_dirty is False

    def test_dirty_repository(self, tmp_path):
        with patch("amplifier_mentions.git_state.subprocess.run") as run:
            run.side_effect = [completed(" M src/index.ts\n"), completed("abc123\n")]
            state = read_repository_state(tmp_path)

        assert state.is_dirty is True

    def test_not_a_repository(self, tmp_path):
        with patch("amplifier_mentions.git_state.subprocess.run", return_value=completed(returncode=128)):
            assert read_repository_state(tmp_path) is None

    def test_git_missing(self, tmp_path):
        with patch("amplifier_mentions.git_state.subprocess.run", side_effect=FileNotFoundError("git")):
            assert read_repository_state(tmp_path) is None

    def test_git_timeout(self, tmp_path):
        with patch(
            "amplifier_mentions.git_state.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="git", timeout=5),
        ):
            assert read_repository_state(tmp_path) is None

    def test_fresh_repository_without_head(self, tmp_path):
        with patch("amplifier_mentions.git_state.subprocess.run") as run:
            run.side_effect = [completed("?? new.py\n"), completed(returncode=128)]
            state = read_repository_state(tmp_path)

        assert state.head is None
        assert state.fingerprint.startswith("nohead:")

    @pytest.mark.asyncio
    async def test_async_variant(self, tmp_path):
        with patch("amplifier_mentions.git_state.subprocess.run") as run:
            run.side_effect = [completed(""), completed("def456\n")]
            state = await read_repository_state_async(tmp_path)

        assert state.head == "def456"

    @pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
    def test_real_repository_changes_fingerprint(self, tmp_path):
        subprocess.run(["git", "init", "-q"], cwd=tmp_path, check=True)
        before = read_repository_state(tmp_path)

        (tmp_path / "new.py").write_text("x = 1\n")
        after = read_repository_state(tmp_path)

        assert before is not None
        assert after.is_dirty
        assert before.fingerprint != after.fingerprint


class TestRepositoryState:
    def test_frozen(self):
        state = RepositoryState(head="abc")
        with pytest.raises(ValueError):
            state.head = "def"

    def test_same_inputs_same_fingerprint(self):
        assert RepositoryState.from_status("a", "M x").fingerprint == RepositoryState.from_status("a", "M x").fingerprint
