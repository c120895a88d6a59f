"""Tests for local git operations."""

from unittest.mock import patch

import pytest

from pvgit.integrations.git import GitError, GitRepository
from pvgit.utils.shell import ShellError, ShellResult


def result(returncode=0, stdout="", stderr=""):
    return ShellResult(returncode, stdout, stderr, "git")


class TestGitRepository:
    """Test git repository wrapper."""

    @patch("pvgit.integrations.git.run_command")
    def test_current_branch_name(self, mock_run):
        mock_run.return_value = result(stdout="add-login-pv-99\n")

        assert GitRepository().current_branch_name() == "add-login-pv-99"
        mock_run.assert_called_once_with(["git", "branch", "--show-current"], cwd=None, check=True)

    @patch("pvgit.integrations.git.run_command")
    def test_detached_head(self, mock_run):
        """Test an empty branch name is treated as no branch."""
        mock_run.return_value = result(stdout="\n")

        assert GitRepository().current_branch_name() is None

    @patch("pvgit.integrations.git.run_command")
    def test_outside_repository(self, mock_run):
        mock_run.side_effect = ShellError("failed", 128, "", "fatal: not a git repository")

        assert GitRepository("/tmp").current_branch_name() is None

    @patch("pvgit.integrations.git.run_command")
    def test_create_and_checkout_branch(self, mock_run):
        mock_run.return_value = result()

        assert GitRepository("/repo").create_and_checkout_branch("add-login-pv-99")
        mock_run.assert_called_once_with(["git", "checkout", "-b", "add-login-pv-99"], cwd="/repo")

    @patch("pvgit.integrations.git.run_command")
    def test_create_existing_branch_fails(self, mock_run):
        mock_run.return_value = result(128, stderr="fatal: a branch named 'x-pv-1' already exists")

        assert not GitRepository().create_and_checkout_branch("x-pv-1")

    @patch("pvgit.integrations.git.run_command")
    def test_create_branch_git_missing(self, mock_run):
        mock_run.side_effect = ShellError("Command not found: git", -1)

        assert not GitRepository().create_and_checkout_branch("x-pv-1")

    @patch("pvgit.integrations.git.run_command")
    def test_stage_and_commit(self, mock_run):
        mock_run.return_value = result()
        repo = GitRepository()

        repo.stage_all()
        repo.commit("[#99] Add login")

        commands = [call.args[0] for call in mock_run.call_args_list]
        assert commands == [
            ["git", "add", "--all"],
            ["git", "commit", "-m", "[#99] Add login"],
        ]

    @patch("pvgit.integrations.git.run_command")
    def test_nothing_to_commit(self, mock_run):
        mock_run.side_effect = ShellError("failed", 1, "nothing to commit, working tree clean", "")

        with pytest.raises(GitError, match="nothing to commit"):
            GitRepository().commit("[#99] Add login")

    @patch("pvgit.integrations.git.run_command")
    def test_stage_failure(self, mock_run):
        mock_run.side_effect = ShellError("failed", 128, "", "fatal: not a git repository")

        with pytest.raises(GitError, match="not a git repository"):
            GitRepository().stage_all()
