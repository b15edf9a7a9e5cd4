"""Set up the branching model in a repository."""

from branchflow.config import CONFIG_KEYS, FlowConfig
from branchflow.errors import GitFlowError
from branchflow.git import GitRepo
from branchflow.log import get_logger

logger = get_logger("initializer")

# Names a production branch conventionally goes by
COMMON_MAIN_NAMES = ("main", "master", "production")


def initialize(repo: GitRepo, config: FlowConfig, force: bool = False) -> None:
    """Initialize the branching model.

    Makes sure the main and develop branches exist, then writes the
    configuration into git config.

    Args:
        repo: Repository to initialize
        config: Branch names and prefixes to use
        force: Reinitialize even if already configured

    Raises:
        GitFlowError: If a precondition is not met
    """
    if not repo.is_repository():
        raise GitFlowError("Not a git repository.")

    if repo.is_initialized() and not force:
        raise GitFlowError("Gitflow is already initialized. Use --force to reinitialize.")

    if not config.is_valid():
        raise GitFlowError("Invalid gitflow configuration.")

    _ensure_main_branch(repo, config.main_branch)
    _ensure_develop_branch(repo, config.main_branch, config.develop_branch)
    _write_configuration(repo, config)


def initialize_with_defaults(repo: GitRepo, force: bool = False) -> None:
    initialize(repo, FlowConfig(), force)


def _ensure_main_branch(repo: GitRepo, main_branch: str) -> None:
    if repo.local_branch_exists(main_branch):
        return

    # Checking out a remote-only branch creates the local tracking branch
    if repo.remote_branch_exists(main_branch):
        logger.info("Creating local %s from origin", main_branch)
        repo.checkout_branch(main_branch)
        return

    if not repo.local_branches():
        raise GitFlowError(f"Repository has no branches. Create an initial commit on '{main_branch}' first.")

    existing = next(
        (name for name in COMMON_MAIN_NAMES if repo.local_branch_exists(name) or repo.remote_branch_exists(name)),
        None,
    )
    if existing is not None and existing != main_branch:
        raise GitFlowError(
            f"Branch '{main_branch}' does not exist, but '{existing}' does. "
            f"Consider using '{existing}' as your main branch."
        )

    raise GitFlowError(f"Main branch '{main_branch}' does not exist.")


def _ensure_develop_branch(repo: GitRepo, main_branch: str, develop_branch: str) -> None:
    if repo.local_branch_exists(develop_branch):
        return
    logger.info("Creating %s from %s", develop_branch, main_branch)
    repo.create_branch(develop_branch, main_branch)


def _write_configuration(repo: GitRepo, config: FlowConfig) -> None:
    for field_name, key in CONFIG_KEYS.items():
        value = getattr(config, field_name)
        # An empty template would override git's own tag message behaviour
        if field_name == "tag_message_template" and not value:
            continue
        repo.config_set(key, value)
