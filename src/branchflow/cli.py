"""Command line interface for branchflow."""

from pathlib import Path
from typing import Annotated, Callable, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from branchflow import __version__
from branchflow.branches import BRANCH_KINDS, BranchKind, BranchService, DeleteOptions, FinishOptions, FinishStrategy
from branchflow.config import SETTABLE_KEYS, FlowConfig, resolve_settable_key
from branchflow.errors import BranchflowError, GitFlowError
from branchflow.git import REMOTE, GitRepo
from branchflow.initializer import initialize
from branchflow.log import setup_logging

app = typer.Typer(help="Git extensions for the main/develop branching model", no_args_is_help=True)
config_app = typer.Typer(help="Manage gitflow configuration.", no_args_is_help=True)
app.add_typer(config_app, name="config")

# Soft wrap keeps branch names and messages on one line
console = Console(soft_wrap=True)


def get_repo(ctx: typer.Context) -> GitRepo:
    """Get the repository selected by the root --path option."""
    return ctx.find_root().obj


def fail(err: BranchflowError) -> NoReturn:
    """Report an error and exit with code 1."""
    console.print(f"[red]Error:[/red] {escape(str(err))}")
    raise typer.Exit(code=1) from err


def success(message: str) -> None:
    console.print(f"[green]{escape(message)}[/green]")


def info(message: str) -> None:
    console.print(f"[blue]{escape(message)}[/blue]")


def ask(value: Optional[str], question: str, default: str, show_default: bool = True) -> str:
    """Use a value given on the command line, otherwise prompt for it."""
    if value is not None:
        return value
    return typer.prompt(question, default=default, show_default=show_default)


@app.callback()
def main(
    ctx: typer.Context,
    path: Annotated[Path, typer.Option("--path", "-C", help="Path to git repository")] = Path("."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every git command"),
) -> None:
    """Git extensions for the main/develop branching model."""
    setup_logging("DEBUG" if verbose else "WARNING")
    ctx.obj = GitRepo(path)


@app.command()
def init(
    ctx: typer.Context,
    defaults: bool = typer.Option(False, "--defaults", "-d", help="Use default values without prompting"),
    force: bool = typer.Option(False, "--force", "-f", help="Reinitialize an already initialized repository"),
    main_branch: Annotated[Optional[str], typer.Option("--main", help="Production release branch")] = None,
    develop_branch: Annotated[Optional[str], typer.Option("--develop", help="Integration branch")] = None,
    feature: Annotated[Optional[str], typer.Option("--feature", help="Feature branch prefix")] = None,
    bugfix: Annotated[Optional[str], typer.Option("--bugfix", help="Bugfix branch prefix")] = None,
    release: Annotated[Optional[str], typer.Option("--release", help="Release branch prefix")] = None,
    hotfix: Annotated[Optional[str], typer.Option("--hotfix", help="Hotfix branch prefix")] = None,
    support: Annotated[Optional[str], typer.Option("--support", help="Support branch prefix")] = None,
    tag: Annotated[Optional[str], typer.Option("--tag", help="Version tag prefix")] = None,
) -> None:
    """Initialize a repository for the branching model."""
    repo = get_repo(ctx)
    try:
        if not repo.is_repository():
            raise GitFlowError("Not a git repository.")
        if repo.is_initialized() and not force:
            raise GitFlowError("Gitflow is already initialized. Use --force to reinitialize.")

        given = FlowConfig()
        if defaults:
            config = FlowConfig(
                main_branch=main_branch if main_branch is not None else given.main_branch,
                develop_branch=develop_branch if develop_branch is not None else given.develop_branch,
                feature_prefix=feature if feature is not None else given.feature_prefix,
                bugfix_prefix=bugfix if bugfix is not None else given.bugfix_prefix,
                release_prefix=release if release is not None else given.release_prefix,
                hotfix_prefix=hotfix if hotfix is not None else given.hotfix_prefix,
                support_prefix=support if support is not None else given.support_prefix,
                version_tag_prefix=tag if tag is not None else given.version_tag_prefix,
            )
        else:
            info("Initializing gitflow...")
            branches = repo.local_branches()
            if branches:
                console.print(f"Existing branches: [cyan]{escape(', '.join(branches))}[/cyan]")
            config = FlowConfig(
                main_branch=ask(main_branch, "Which branch should be used for production releases?", given.main_branch),
                develop_branch=ask(develop_branch, "Which branch should be used for integration?", given.develop_branch),
                feature_prefix=ask(feature, "Feature branch prefix?", given.feature_prefix),
                bugfix_prefix=ask(bugfix, "Bugfix branch prefix?", given.bugfix_prefix),
                release_prefix=ask(release, "Release branch prefix?", given.release_prefix),
                hotfix_prefix=ask(hotfix, "Hotfix branch prefix?", given.hotfix_prefix),
                support_prefix=ask(support, "Support branch prefix?", given.support_prefix),
                version_tag_prefix=ask(tag, "Version tag prefix?", given.version_tag_prefix, show_default=False),
            )

        initialize(repo, config, force=force)
    except BranchflowError as err:
        fail(err)

    success("Gitflow initialized successfully!")
    console.print()
    info("Configuration:")
    console.print(f"  Main branch:      [yellow]{escape(config.main_branch)}[/yellow]")
    console.print(f"  Develop branch:   [yellow]{escape(config.develop_branch)}[/yellow]")
    console.print(f"  Feature prefix:   [yellow]{escape(config.feature_prefix)}[/yellow]")
    console.print(f"  Bugfix prefix:    [yellow]{escape(config.bugfix_prefix)}[/yellow]")
    console.print(f"  Release prefix:   [yellow]{escape(config.release_prefix)}[/yellow]")
    console.print(f"  Hotfix prefix:    [yellow]{escape(config.hotfix_prefix)}[/yellow]")
    console.print(f"  Support prefix:   [yellow]{escape(config.support_prefix)}[/yellow]")
    console.print(f"  Version tag:      [yellow]{escape(config.version_tag_prefix or '(none)')}[/yellow]")


@config_app.command("list")
def config_list(ctx: typer.Context) -> None:
    """List gitflow configuration."""
    repo = get_repo(ctx)
    try:
        config = repo.get_flow_configuration()
    except BranchflowError as err:
        fail(err)

    table = Table(
        title="Gitflow Configuration",
        show_header=True,
        header_style="bold",
        title_style="bold blue",
        show_edge=True,
    )
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="yellow", no_wrap=True)

    table.add_row("Main branch", config.main_branch)
    table.add_row("Develop branch", config.develop_branch)
    table.add_row("Feature prefix", config.feature_prefix)
    table.add_row("Bugfix prefix", config.bugfix_prefix)
    table.add_row("Release prefix", config.release_prefix)
    table.add_row("Hotfix prefix", config.hotfix_prefix)
    table.add_row("Support prefix", config.support_prefix)
    table.add_row("Version tag prefix", config.version_tag_prefix or "(none)")
    table.add_row("Tag message", config.tag_message_template or "(none)")
    console.print(table)


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Setting to change, e.g. develop or feature")],
    value: Annotated[str, typer.Argument(help="New value")],
) -> None:
    """Set a gitflow configuration value."""
    repo = get_repo(ctx)
    try:
        config_key = resolve_settable_key(key)
        if config_key is None:
            raise GitFlowError(f"Unknown config key '{key}'. Valid keys: {', '.join(SETTABLE_KEYS)}")
        repo.config_set(config_key, value)
    except BranchflowError as err:
        fail(err)
    success(f"Set {key} = {value}")


@app.command()
def version() -> None:
    """Show the version."""
    console.print(f"[blue]branchflow[/blue] version [yellow]{__version__}[/yellow]")


@app.command()
def push(ctx: typer.Context) -> None:
    """Push main, develop and tags to origin."""
    repo = get_repo(ctx)
    try:
        config = repo.get_flow_configuration()

        info(f"Pushing '{config.main_branch}'...")
        repo.push_branch(config.main_branch)
        success(f"Pushed '{config.main_branch}'")

        info(f"Pushing '{config.develop_branch}'...")
        repo.push_branch(config.develop_branch)
        success(f"Pushed '{config.develop_branch}'")

        info("Pushing tags...")
        repo.push_tags()
        success("Pushed tags")
    except BranchflowError as err:
        fail(err)


def progress_printer(quiet: bool) -> Optional[Callable[[str], None]]:
    """Get an on_progress callback, or None when quiet."""
    if quiet:
        return None
    return lambda message: info(f"{message}...")


def branch_app(kind: BranchKind) -> typer.Typer:
    """Build the sub-command group for one branch type."""
    type_name = kind.value
    settings = BRANCH_KINDS[kind]
    group = typer.Typer(help=f"Manage {type_name} branches.", no_args_is_help=True)

    def service_for(ctx: typer.Context) -> BranchService:
        return BranchService(get_repo(ctx), kind)

    @group.command("list", help=f"List all {type_name} branches.")
    def list_branches(ctx: typer.Context) -> None:
        service = service_for(ctx)
        try:
            names = service.list()
            current = service.repo.current_branch_name()
            prefix = service.prefix
        except BranchflowError as err:
            fail(err)

        if not names:
            info(f"No {type_name} branches exist.")
            return

        for name in names:
            if f"{prefix}{name}" == current:
                console.print(f"[green]* {escape(name)}[/green]")
            else:
                console.print(f"  {escape(name)}")

    if settings.requires_explicit_base:

        @group.command("start", help=f"Start a new {type_name} branch from a tag or commit.")
        def start_from_base(
            ctx: typer.Context,
            name: Annotated[str, typer.Argument(help="Branch name, typically a version")],
            base: Annotated[str, typer.Argument(help="Tag, branch or commit to start from")],
        ) -> None:
            service = service_for(ctx)
            try:
                branch_name = service.start(name, base)
            except BranchflowError as err:
                fail(err)
            success(f"Started {type_name} branch '{branch_name}' from '{base}'")

    else:

        @group.command("start", help=f"Start a new {type_name} branch.")
        def start(
            ctx: typer.Context,
            name: Annotated[str, typer.Argument(help="Branch name without prefix")],
            base: Annotated[Optional[str], typer.Argument(help="Branch, tag or commit to start from")] = None,
        ) -> None:
            service = service_for(ctx)
            try:
                branch_name = service.start(name, base)
            except BranchflowError as err:
                fail(err)
            success(f"Started {type_name} branch '{branch_name}'")

    if settings.finish_strategy is FinishStrategy.SIMPLE:

        @group.command("finish", help=f"Finish a {type_name} branch by merging it into develop.")
        def finish(
            ctx: typer.Context,
            name: Annotated[Optional[str], typer.Argument(help="Branch name, defaults to the current branch")] = None,
            fetch: bool = typer.Option(False, "--fetch", "-F", help=f"Fetch from {REMOTE} first"),
            push: bool = typer.Option(False, "--push", "-p", help=f"Push develop to {REMOTE} afterwards"),
            keep: bool = typer.Option(False, "--keep", "-k", help="Keep the branch after merging"),
            squash: bool = typer.Option(False, "--squash", "-S", help="Squash commits into one"),
            quiet: bool = typer.Option(False, "--quiet", "-q", help="Don't report progress"),
        ) -> None:
            service = service_for(ctx)
            try:
                name = service.resolve_name(name)
                options = FinishOptions(
                    fetch=fetch,
                    push=push,
                    keep=keep,
                    squash=squash,
                    on_progress=progress_printer(quiet),
                )
                service.finish(name, options)
            except BranchflowError as err:
                fail(err)
            if not quiet:
                success(f"Finished {type_name} branch '{service.full_name(name)}'")

    elif settings.finish_strategy is FinishStrategy.DUAL:

        @group.command("finish", help=f"Finish a {type_name} branch: merge into main, tag, merge back into develop.")
        def finish_tagged(
            ctx: typer.Context,
            name: Annotated[Optional[str], typer.Argument(help="Version, defaults to the current branch")] = None,
            fetch: bool = typer.Option(False, "--fetch", "-F", help=f"Fetch from {REMOTE} first"),
            push: bool = typer.Option(False, "--push", "-p", help=f"Push main, develop and tags to {REMOTE}"),
            keep: bool = typer.Option(False, "--keep", "-k", help="Keep the branch after merging"),
            squash: bool = typer.Option(False, "--squash", "-S", help="Squash commits into one"),
            quiet: bool = typer.Option(False, "--quiet", "-q", help="Don't report progress"),
            message: Annotated[Optional[str], typer.Option("--message", "-m", help="Tag message")] = None,
            notag: bool = typer.Option(False, "--notag", "-n", help="Don't tag the merge"),
            nobackmerge: bool = typer.Option(False, "--nobackmerge", "-b", help="Don't merge back into develop"),
        ) -> None:
            service = service_for(ctx)
            try:
                name = service.resolve_name(name)
                options = FinishOptions(
                    fetch=fetch,
                    push=push,
                    keep=keep,
                    squash=squash,
                    tag_message=message,
                    no_tag=notag,
                    no_backmerge=nobackmerge,
                    on_progress=progress_printer(quiet),
                )
                service.finish(name, options)
            except BranchflowError as err:
                fail(err)
            if not quiet:
                success(f"Finished {type_name} branch '{service.full_name(name)}'")

    # Support branches are only published by hand
    if settings.finish_strategy is not FinishStrategy.UNSUPPORTED:

        @group.command("publish", help=f"Publish a {type_name} branch to {REMOTE}.")
        def publish(
            ctx: typer.Context,
            name: Annotated[Optional[str], typer.Argument(help="Branch name, defaults to the current branch")] = None,
        ) -> None:
            service = service_for(ctx)
            try:
                name = service.resolve_name(name)
                response = service.publish(name)
            except BranchflowError as err:
                fail(err)
            for line in response:
                console.print(f"[dim]{escape(line)}[/dim]")
            success(f"Published {type_name} branch '{service.full_name(name)}' to {REMOTE}")

    @group.command("delete", help=f"Delete a {type_name} branch.")
    def delete(
        ctx: typer.Context,
        name: Annotated[Optional[str], typer.Argument(help="Branch name, defaults to the current branch")] = None,
        force: bool = typer.Option(False, "--force", "-f", help="Delete even if not merged"),
        remote: bool = typer.Option(False, "--remote", "-r", help=f"Also delete the branch on {REMOTE}"),
    ) -> None:
        service = service_for(ctx)
        try:
            name = service.resolve_name(name)
            service.delete(name, DeleteOptions(force=force, remote=remote))
        except BranchflowError as err:
            fail(err)
        success(f"Deleted {type_name} branch '{service.full_name(name)}'")

    return group


for _kind in BranchKind:
    app.add_typer(branch_app(_kind), name=_kind.value)


if __name__ == "__main__":
    app()
