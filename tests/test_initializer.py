"""Tests for initializing the branching model."""

from pathlib import Path

import pytest
from git import Repo

from branchflow.config import FlowConfig
from branchflow.errors import GitFlowError
from branchflow.git import GitRepo
from branchflow.initializer import initialize, initialize_with_defaults
from tests.conftest import init_local_repo


def test_initialize_with_defaults(local_path: Path) -> None:
    """Test that init creates develop and writes the configuration."""
    repo = GitRepo(local_path)
    initialize_with_defaults(repo)

    assert repo.is_initialized()
    assert repo.local_branch_exists("develop")
    assert repo.config_get("gitflow.branch.master") == "main"
    assert repo.config_get("gitflow.prefix.feature") == "feature/"
    assert repo.config_get("gitflow.prefix.support") == "support/"


def test_initialize_omits_empty_tag_message(local_path: Path) -> None:
    """Test that an empty template leaves the key unset."""
    repo = GitRepo(local_path)
    initialize_with_defaults(repo)
    assert repo.config_get("gitflow.message.tag") is None


def test_initialize_writes_tag_message(local_path: Path) -> None:
    repo = GitRepo(local_path)
    initialize(repo, FlowConfig(version_tag_prefix="v", tag_message_template="Version {version}"))
    assert repo.config_get("gitflow.message.tag") == "Version {version}"
    assert repo.get_flow_configuration().version_tag_prefix == "v"


def test_initialize_keeps_existing_develop(local_path: Path) -> None:
    """Test that an existing develop branch is reused."""
    raw = Repo(local_path)
    raw.git.branch("develop")
    develop_commit = raw.heads.develop.commit.hexsha

    initialize_with_defaults(GitRepo(local_path))
    assert raw.heads.develop.commit.hexsha == develop_commit


def test_initialize_twice(local_path: Path) -> None:
    repo = GitRepo(local_path)
    initialize_with_defaults(repo)
    with pytest.raises(GitFlowError, match="already initialized"):
        initialize_with_defaults(repo)


def test_initialize_force(local_path: Path) -> None:
    """Test that --force rewrites the configuration."""
    repo = GitRepo(local_path)
    initialize_with_defaults(repo)
    initialize(repo, FlowConfig(feature_prefix="feat/"), force=True)
    assert repo.get_flow_configuration().feature_prefix == "feat/"


def test_initialize_not_a_repository(tmp_path: Path) -> None:
    with pytest.raises(GitFlowError, match="Not a git repository"):
        initialize_with_defaults(GitRepo(tmp_path))


def test_initialize_invalid_configuration(local_path: Path) -> None:
    with pytest.raises(GitFlowError, match="Invalid gitflow configuration"):
        initialize(GitRepo(local_path), FlowConfig(develop_branch=""))


def test_initialize_suggests_conventional_main(tmp_path: Path) -> None:
    """Test that a missing main branch suggests an existing conventional one."""
    path = tmp_path / "legacy"
    init_local_repo(path, branch="master")
    with pytest.raises(GitFlowError, match="but 'master' does"):
        initialize_with_defaults(GitRepo(path))


def test_initialize_missing_main(tmp_path: Path) -> None:
    path = tmp_path / "trunk"
    init_local_repo(path, branch="trunk")
    with pytest.raises(GitFlowError, match="Main branch 'main' does not exist"):
        initialize_with_defaults(GitRepo(path))


def test_initialize_empty_repository(tmp_path: Path) -> None:
    Repo.init(tmp_path / "empty")
    with pytest.raises(GitFlowError, match="no branches"):
        initialize_with_defaults(GitRepo(tmp_path / "empty"))


def test_initialize_materializes_remote_main(test_env: tuple[Path, Path], tmp_path: Path) -> None:
    """Test that a main branch only on origin is checked out locally."""
    _, remote_path = test_env
    Repo(remote_path).git.symbolic_ref("HEAD", "refs/heads/main")
    clone_path = tmp_path / "clone"
    clone = Repo.clone_from(str(remote_path), str(clone_path))
    clone.git.checkout("-b", "topic")
    clone.git.branch("-D", "main")

    repo = GitRepo(clone_path)
    initialize_with_defaults(repo)
    assert repo.local_branch_exists("main")
    assert repo.local_branch_exists("develop")
