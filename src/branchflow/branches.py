"""Branch workflows for the feature, bugfix, release, hotfix and support types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from branchflow.config import FlowConfig, format_tag_message
from branchflow.errors import GitFlowError
from branchflow.git import REMOTE, GitRepo
from branchflow.log import get_logger

logger = get_logger("branches")


class BranchKind(Enum):
    """Branch type."""

    FEATURE = "feature"
    BUGFIX = "bugfix"
    RELEASE = "release"
    HOTFIX = "hotfix"
    SUPPORT = "support"


class FinishStrategy(Enum):
    """How a branch type is finished."""

    SIMPLE = "simple"  # merge into develop
    DUAL = "dual"  # merge into main, tag, merge back into develop
    UNSUPPORTED = "unsupported"


class BaseBranch(Enum):
    """Which long-lived branch new branches start from."""

    MAIN = "main"
    DEVELOP = "develop"


@dataclass(frozen=True)
class KindSettings:
    """Behaviour of one branch type."""

    default_base: BaseBranch
    finish_strategy: FinishStrategy
    requires_explicit_base: bool = False
    publish_checks_remote: bool = True


BRANCH_KINDS: dict[BranchKind, KindSettings] = {
    BranchKind.FEATURE: KindSettings(BaseBranch.DEVELOP, FinishStrategy.SIMPLE),
    BranchKind.BUGFIX: KindSettings(BaseBranch.DEVELOP, FinishStrategy.SIMPLE),
    BranchKind.RELEASE: KindSettings(BaseBranch.DEVELOP, FinishStrategy.DUAL),
    BranchKind.HOTFIX: KindSettings(BaseBranch.MAIN, FinishStrategy.DUAL),
    # Support branches are long-lived and anchored to an old tag or commit
    BranchKind.SUPPORT: KindSettings(
        BaseBranch.MAIN,
        FinishStrategy.UNSUPPORTED,
        requires_explicit_base=True,
        publish_checks_remote=False,
    ),
}


@dataclass(frozen=True)
class FinishOptions:
    """Options for finishing a branch."""

    fetch: bool = False
    push: bool = False
    keep: bool = False
    squash: bool = False
    # Release and hotfix only
    tag_message: Optional[str] = None
    no_tag: bool = False
    no_backmerge: bool = False
    on_progress: Optional[Callable[[str], None]] = None


@dataclass(frozen=True)
class DeleteOptions:
    """Options for deleting a branch."""

    force: bool = False
    remote: bool = False


class BranchService:
    """Operations on branches of one type."""

    def __init__(self, repo: GitRepo, kind: BranchKind) -> None:
        self.repo = repo
        self.kind = kind
        self.settings = BRANCH_KINDS[kind]

    @property
    def config(self) -> FlowConfig:
        # Read fresh on every access; git's config store is authoritative
        return self.repo.get_flow_configuration()

    @property
    def type_name(self) -> str:
        return self.kind.value

    @property
    def prefix(self) -> str:
        return self.config.prefix_for(self.type_name)

    @property
    def default_base_branch(self) -> str:
        config = self.config
        if self.settings.default_base is BaseBranch.MAIN:
            return config.main_branch
        return config.develop_branch

    def full_name(self, name: str) -> str:
        return f"{self.prefix}{name}"

    def current_name_if_on_type(self) -> Optional[str]:
        """Get the current branch name without prefix, or None if on another type."""
        current = self.repo.current_branch_name()
        prefix = self.prefix
        if current.startswith(prefix):
            return current[len(prefix) :]
        return None

    def resolve_name(self, name: Optional[str] = None) -> str:
        """Use the given name, or detect it from the current branch.

        Raises:
            GitFlowError: If no name is given and the current branch is not of this type
        """
        if name and name.strip():
            return name

        current = self.current_name_if_on_type()
        if current is None:
            raise GitFlowError(
                f"Not on a {self.type_name} branch. "
                f"Please specify a branch name or switch to a {self.type_name} branch."
            )
        return current

    # Validation

    def validate_repository(self) -> None:
        """Require a git repository with the branching model initialized."""
        if not self.repo.is_repository():
            raise GitFlowError("Not a git repository.")
        if not self.repo.is_initialized():
            raise GitFlowError("Gitflow is not initialized. Run 'git-flow init' first.")

    def validate_working_tree_clean(self) -> None:
        if not self.repo.is_working_tree_clean():
            raise GitFlowError("Working tree contains uncommitted changes. Please commit or stash them first.")

    def validate_branch_exists(self, branch_name: str) -> None:
        if not self.repo.local_branch_exists(branch_name):
            raise GitFlowError(f"Branch '{branch_name}' does not exist.")

    def validate_branch_does_not_exist(self, branch_name: str) -> None:
        if self.repo.local_branch_exists(branch_name):
            raise GitFlowError(f"Branch '{branch_name}' already exists locally.")
        if self.repo.remote_branch_exists(branch_name):
            raise GitFlowError(f"Branch '{branch_name}' already exists on remote.")

    def _resolve_start_point(self, base: str) -> str:
        """Find the ref a new branch should be created from.

        A branch that only exists on origin is used through its remote ref.
        Tags and commits are accepted as-is.
        """
        if self.repo.local_branch_exists(base):
            return base
        if self.repo.remote_branch_exists(base):
            return f"{REMOTE}/{base}"
        if self.repo.ref_exists(base):
            return base
        raise GitFlowError(f"Base branch '{base}' does not exist.")

    # Operations

    def list(self) -> list[str]:
        """List branch names of this type, without prefix."""
        self.validate_repository()
        prefix = self.prefix
        return [branch[len(prefix) :] for branch in self.repo.local_branches() if branch.startswith(prefix)]

    def start(self, name: str, base: Optional[str] = None) -> str:
        """Create a branch of this type and check it out.

        Args:
            name: Branch name without prefix
            base: Branch, tag or commit to start from, defaults to the type's base branch

        Returns:
            The full name of the new branch
        """
        if self.settings.requires_explicit_base and not (base and base.strip()):
            raise GitFlowError(
                f"{self.type_name.capitalize()} branches require a base branch (typically a tag or commit)."
            )

        self.validate_repository()
        self.validate_working_tree_clean()

        branch_name = self.full_name(name)
        base = base or self.default_base_branch

        self.validate_branch_does_not_exist(branch_name)
        start_point = self._resolve_start_point(base)

        logger.info("Creating %s from %s", branch_name, start_point)
        self.repo.create_branch(branch_name, start_point)
        return branch_name

    def finish(self, name: str, options: Optional[FinishOptions] = None) -> None:
        """Merge a finished branch according to this type's strategy."""
        strategy = self.settings.finish_strategy
        if strategy is FinishStrategy.SIMPLE:
            finish_simple_merge(self, name, options)
        elif strategy is FinishStrategy.DUAL:
            finish_dual_merge(self, name, options)
        else:
            raise GitFlowError(
                f"{self.type_name.capitalize()} branches do not have a finish operation. "
                "They are long-lived branches."
            )

    def publish(self, name: str) -> list[str]:
        """Push a branch to origin with upstream tracking.

        Returns:
            Response lines from the server
        """
        self.validate_repository()

        branch_name = self.full_name(name)
        self.validate_branch_exists(branch_name)

        if self.settings.publish_checks_remote and self.repo.remote_branch_exists(branch_name):
            raise GitFlowError(f"Branch '{branch_name}' already exists on remote.")

        return self.repo.push_branch(branch_name, set_upstream=True)

    def delete(self, name: str, options: Optional[DeleteOptions] = None) -> None:
        """Delete a branch locally, and on origin if requested."""
        self.validate_repository()
        options = options or DeleteOptions()

        branch_name = self.full_name(name)
        local_exists = self.repo.local_branch_exists(branch_name)
        remote_exists = self.repo.remote_branch_exists(branch_name)

        if not local_exists and not remote_exists:
            raise GitFlowError(f"Branch '{branch_name}' does not exist.")

        # Can't delete the checked out branch
        if self.repo.current_branch_name() == branch_name:
            self.repo.checkout_branch(self.default_base_branch)

        if local_exists:
            self.repo.delete_local_branch(branch_name, force=options.force)

        if options.remote and remote_exists:
            self.repo.delete_remote_branch(branch_name)


def _report(options: FinishOptions, message: str) -> None:
    logger.info(message)
    if options.on_progress:
        options.on_progress(message)


def _merge(repo: GitRepo, source: str, squash: bool) -> None:
    if squash:
        repo.merge_branch_squash(source)
    else:
        repo.merge_branch(source, no_ff=True)


def _delete_finished_branch(repo: GitRepo, branch_name: str, options: FinishOptions) -> None:
    _report(options, f"Deleting branch '{branch_name}'")
    repo.delete_local_branch(branch_name, force=True)
    if repo.remote_branch_exists(branch_name):
        _report(options, f"Deleting remote branch '{REMOTE}/{branch_name}'")
        repo.delete_remote_branch(branch_name)


def finish_simple_merge(service: BranchService, name: str, options: Optional[FinishOptions] = None) -> None:
    """Merge a branch into develop, then clean it up.

    Steps stop at the first failure, leaving whatever was done in place.
    """
    options = options or FinishOptions()
    repo = service.repo

    service.validate_repository()
    service.validate_working_tree_clean()

    config = service.config
    branch_name = f"{config.prefix_for(service.type_name)}{name}"
    target = config.develop_branch

    service.validate_branch_exists(branch_name)

    if options.fetch:
        _report(options, f"Fetching from {REMOTE}")
        repo.fetch()

    _report(options, f"Merging '{branch_name}' into '{target}'")
    repo.checkout_branch(target)
    _merge(repo, branch_name, options.squash)

    if not options.keep:
        _delete_finished_branch(repo, branch_name, options)

    if options.push:
        _report(options, f"Pushing '{target}'")
        repo.push_branch(target)


def finish_dual_merge(service: BranchService, name: str, options: Optional[FinishOptions] = None) -> None:
    """Merge a branch into main, tag it, merge back into develop, then clean up.

    The name doubles as the version for the tag. Steps stop at the first
    failure; there is no rollback of merges already made.
    """
    options = options or FinishOptions()
    repo = service.repo

    service.validate_repository()
    service.validate_working_tree_clean()

    config = service.config
    branch_name = f"{config.prefix_for(service.type_name)}{name}"
    main = config.main_branch
    develop = config.develop_branch
    version = name
    tag_name = f"{config.version_tag_prefix}{version}"

    service.validate_branch_exists(branch_name)

    if options.fetch:
        _report(options, f"Fetching from {REMOTE}")
        repo.fetch()

    _report(options, f"Merging '{branch_name}' into '{main}'")
    repo.checkout_branch(main)
    _merge(repo, branch_name, options.squash)

    if not options.no_tag:
        if repo.tag_exists(tag_name):
            raise GitFlowError(f"Tag '{tag_name}' already exists.")

        message = options.tag_message
        if not message and config.tag_message_template:
            message = format_tag_message(config.tag_message_template, version, service.type_name)

        _report(options, f"Tagging '{tag_name}'")
        repo.create_tag(tag_name, message or None)

    if not options.no_backmerge:
        # Prefer merging the tag so develop records the released version
        source = main if options.no_tag else tag_name
        _report(options, f"Merging '{source}' into '{develop}'")
        repo.checkout_branch(develop)
        repo.merge_branch(source, no_ff=True)

    if not options.keep:
        _delete_finished_branch(repo, branch_name, options)

    if options.push:
        _report(options, f"Pushing '{main}'")
        repo.push_branch(main)
        if not options.no_backmerge:
            _report(options, f"Pushing '{develop}'")
            repo.push_branch(develop)
        if not options.no_tag:
            _report(options, "Pushing tags")
            repo.push_tags()

    repo.checkout_branch(develop)
