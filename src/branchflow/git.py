"""Git repository operations."""

from pathlib import Path
from typing import Optional, Union

from branchflow.config import FlowConfig, load_config
from branchflow.errors import GitError
from branchflow.executor import ExecutorResult, GitExecutor

REMOTE = "origin"


class GitRepo:
    """Git repository operations.

    Queries that check for existence return False when git exits non-zero.
    Every other failure raises GitError.
    """

    def __init__(self, path: Union[Path, str] = ".", executor: Optional[GitExecutor] = None) -> None:
        """Initialize repository."""
        self.path = Path(path)
        self.executor = executor or GitExecutor(self.path)

    def _run(self, *args: str) -> ExecutorResult:
        return self.executor.execute(*args)

    def _check(self, result: ExecutorResult, message: str, operation: str, target: Optional[str] = None) -> list[str]:
        """Raise GitError for a failed result, otherwise return its lines."""
        if not result.ok:
            raise GitError(message, operation=operation, target=target, output=result.lines)
        return result.lines

    # Repository state

    def is_repository(self) -> bool:
        """Check if the working directory is inside a git work tree."""
        result = self._run("rev-parse", "--is-inside-work-tree")
        return result.ok and result.lines == ["true"]

    def is_working_tree_clean(self) -> bool:
        """Check there are no staged, unstaged or untracked changes."""
        lines = self._check(self._run("status", "--porcelain"), "Failed to get working tree status.", "status")
        return not lines

    def repository_root(self) -> str:
        """Get the top-level directory of the repository."""
        lines = self._check(self._run("rev-parse", "--show-toplevel"), "Failed to get repository root.", "rev-parse")
        return lines[0]

    # Branch queries

    def current_branch_name(self) -> str:
        """Get current branch name ("HEAD" when detached)."""
        lines = self._check(
            self._run("rev-parse", "--abbrev-ref", "HEAD"), "Failed to get current branch name.", "rev-parse"
        )
        return lines[0]

    def local_branches(self) -> list[str]:
        """Get local branch names sorted by refname."""
        return self._check(
            self._run("for-each-ref", "--sort=refname", "--format=%(refname:short)", "refs/heads"),
            "Failed to get local branches.",
            "for-each-ref",
        )

    def remote_branches(self) -> list[str]:
        """Get branch names on origin, without the remote prefix."""
        lines = self._check(
            self._run("for-each-ref", "--sort=refname", "--format=%(refname:short)", f"refs/remotes/{REMOTE}"),
            "Failed to get remote branches.",
            "for-each-ref",
        )
        branches = [line[len(REMOTE) + 1 :] if line.startswith(f"{REMOTE}/") else line for line in lines]
        # Skip the symbolic origin/HEAD ref, which short-formats as plain "origin"
        return [branch for branch in branches if branch not in ("HEAD", REMOTE)]

    def all_branches(self) -> list[str]:
        """Get the sorted union of local and remote branch names."""
        return sorted(set(self.local_branches()) | set(self.remote_branches()))

    def local_branch_exists(self, branch_name: str) -> bool:
        return self._run("show-ref", "--verify", "--quiet", f"refs/heads/{branch_name}").ok

    def remote_branch_exists(self, branch_name: str) -> bool:
        return self._run("show-ref", "--verify", "--quiet", f"refs/remotes/{REMOTE}/{branch_name}").ok

    def is_branch_merged(self, branch_name: str, target_branch: str) -> bool:
        """Check if a branch is merged into the target branch."""
        lines = self._check(
            self._run("branch", "--merged", target_branch),
            f"Failed to check if branch '{branch_name}' is merged into '{target_branch}'.",
            "branch",
            branch_name,
        )
        return any(line.strip().lstrip("*+").strip() == branch_name for line in lines)

    # Tag and ref queries

    def tag_exists(self, tag_name: str) -> bool:
        return self._run("show-ref", "--verify", "--quiet", f"refs/tags/{tag_name}").ok

    def tags(self) -> list[str]:
        """Get tag names, highest version first."""
        return self._check(self._run("tag", "--list", "--sort=-version:refname"), "Failed to get tags.", "tag")

    def ref_exists(self, ref_name: str) -> bool:
        """Check if a branch, tag or commit resolves."""
        return self._run("rev-parse", "--verify", "--quiet", ref_name).ok

    # Configuration

    def config_get(self, key: str) -> Optional[str]:
        """Get a config value, None if unset."""
        result = self._run("config", "--get", key)
        if not result.ok:
            return None
        return result.lines[0] if result.lines else None

    def config_set(self, key: str, value: str) -> None:
        self._check(self._run("config", key, value), f"Failed to set config value '{key}'.", "config", key)

    def is_initialized(self) -> bool:
        """Check if the branching model has been configured."""
        return (
            self.config_get("gitflow.branch.master") is not None
            and self.config_get("gitflow.branch.develop") is not None
        )

    def get_flow_configuration(self) -> FlowConfig:
        """Read the branching model configuration fresh from git config."""
        return load_config(self)

    # Branch operations

    def create_branch(self, branch_name: str, base: str) -> None:
        """Create a branch from base and check it out."""
        self._check(
            self._run("checkout", "-b", branch_name, base),
            f"Failed to create branch '{branch_name}' from '{base}'.",
            "checkout",
            branch_name,
        )

    def checkout_branch(self, branch_name: str) -> None:
        self._check(
            self._run("checkout", branch_name), f"Failed to checkout branch '{branch_name}'.", "checkout", branch_name
        )

    def delete_local_branch(self, branch_name: str, force: bool = False) -> None:
        flag = "-D" if force else "-d"
        self._check(
            self._run("branch", flag, branch_name),
            f"Failed to delete local branch '{branch_name}'.",
            "branch",
            branch_name,
        )

    def delete_remote_branch(self, branch_name: str) -> None:
        self._check(
            self._run("push", REMOTE, "--delete", branch_name),
            f"Failed to delete remote branch '{branch_name}'.",
            "push",
            branch_name,
        )

    # Merge operations

    def merge_branch(self, source: str, no_ff: bool = True) -> None:
        """Merge source into the current branch."""
        args = ["merge", "--no-ff", source] if no_ff else ["merge", source]
        self._check(self._run(*args), f"Failed to merge branch '{source}'.", "merge", source)

    def merge_branch_squash(self, source: str) -> None:
        """Squash-merge source into the current branch and commit the result."""
        self._check(
            self._run("merge", "--squash", source), f"Failed to squash merge branch '{source}'.", "merge", source
        )
        # A squash merge only stages the changes
        self._check(
            self._run("commit", "-m", f"Squashed commit from {source}"),
            f"Failed to commit squash merge from '{source}'.",
            "commit",
            source,
        )

    # Tag operations

    def create_tag(self, tag_name: str, message: Optional[str] = None) -> None:
        """Create an annotated tag, or a lightweight one when there is no message."""
        args = ["tag", "-a", tag_name, "-m", message] if message else ["tag", tag_name]
        self._check(self._run(*args), f"Failed to create tag '{tag_name}'.", "tag", tag_name)

    def delete_tag(self, tag_name: str) -> None:
        self._check(self._run("tag", "-d", tag_name), f"Failed to delete tag '{tag_name}'.", "tag", tag_name)

    # Remote operations

    def fetch(self) -> None:
        self._check(self._run("fetch", REMOTE), f"Failed to fetch from {REMOTE}.", "fetch")

    def push_branch(self, branch_name: str, set_upstream: bool = False) -> list[str]:
        """Push a branch to origin.

        Returns:
            Response lines printed by git, for display
        """
        args = ["push", "-u", REMOTE, branch_name] if set_upstream else ["push", REMOTE, branch_name]
        return self._check(
            self._run(*args), f"Failed to push branch '{branch_name}' to {REMOTE}.", "push", branch_name
        )

    def push_tags(self) -> None:
        self._check(self._run("push", REMOTE, "--tags"), f"Failed to push tags to {REMOTE}.", "push")
