"""Test configuration and fixtures."""

from pathlib import Path
from typing import Generator
from unittest.mock import create_autospec

import pytest
from git import Actor, Repo
from typer.testing import CliRunner

from branchflow.config import FlowConfig
from branchflow.git import GitRepo
from branchflow.initializer import initialize_with_defaults

AUTHOR = Actor("Test User", "test@example.com")


def commit_file(path: Path, filename: str, content: str, message: str) -> str:
    """Write a file and commit it on the current branch.

    Returns:
        The commit hash
    """
    repo = Repo(path)
    target = path / filename
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)
    repo.index.add([filename])
    return repo.index.commit(message, author=AUTHOR, committer=AUTHOR).hexsha


def init_local_repo(path: Path, branch: str = "main") -> Repo:
    """Create a repository whose only branch holds one initial commit."""
    path.mkdir(parents=True, exist_ok=True)
    repo = Repo.init(path)

    # Set up git config
    repo.config_writer().set_value("user", "name", AUTHOR.name).release()
    repo.config_writer().set_value("user", "email", AUTHOR.email).release()

    # Name the unborn branch before the first commit, whatever init.defaultBranch says
    repo.git.symbolic_ref("HEAD", f"refs/heads/{branch}")
    commit_file(path, "README.md", "# Test Repository", "Initial commit")
    return repo


@pytest.fixture
def test_env(tmp_path: Path) -> Generator[tuple[Path, Path], None, None]:
    """Create a test environment with local and remote repositories.

    Returns:
        Tuple of (local_repo_path, remote_repo_path)
    """
    remote_path = tmp_path / "remote"
    local_path = tmp_path / "local"
    remote_path.mkdir()

    # Initialize remote repo
    Repo.init(remote_path, bare=True)

    # Initialize local repo with main pushed to origin
    local_repo = init_local_repo(local_path)
    origin = local_repo.create_remote("origin", url=str(remote_path))
    origin.push("main")
    local_repo.heads.main.set_tracking_branch(origin.refs.main)

    yield local_path, remote_path


@pytest.fixture
def local_path(test_env: tuple[Path, Path]) -> Path:
    local_path, _ = test_env
    return local_path


@pytest.fixture
def initialized_repo(local_path: Path) -> Path:
    """Create a repository with the branching model initialized (develop checked out)."""
    initialize_with_defaults(GitRepo(local_path))
    return local_path


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def fake_repo() -> GitRepo:
    """Create a fake repository facade for an initialized, clean repository."""
    repo = create_autospec(GitRepo, instance=True)
    repo.get_flow_configuration.return_value = FlowConfig()
    repo.is_repository.return_value = True
    repo.is_initialized.return_value = True
    repo.is_working_tree_clean.return_value = True
    repo.current_branch_name.return_value = "develop"
    repo.local_branch_exists.return_value = False
    repo.remote_branch_exists.return_value = False
    repo.ref_exists.return_value = False
    repo.tag_exists.return_value = False
    repo.push_branch.return_value = []
    return repo
