"""Runs git as a child process."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from git import Git
from git.exc import GitCommandNotFound

from branchflow.errors import GitError
from branchflow.log import get_logger

logger = get_logger("executor")


@dataclass
class ExecutorResult:
    """Output lines and exit code of one git invocation."""

    lines: list[str] = field(default_factory=list)
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class GitExecutor:
    """Executes git commands in a working directory.

    Standard output is always captured. Standard error is only appended when
    the command fails, since git writes progress chatter there on success.
    """

    def __init__(self, working_dir: Union[Path, str] = ".") -> None:
        self.working_dir = Path(working_dir)
        self._git = Git(str(self.working_dir))

    def execute(self, *args: str) -> ExecutorResult:
        """Run ``git <args>`` and block until it exits.

        Raises:
            GitError: If git could not be started at all, or the working
                directory does not exist
        """
        if not self.working_dir.is_dir():
            raise GitError(f"Failed to run git: '{self.working_dir}' is not a directory")

        command = ["git", *args]
        logger.debug("Running %s in %s", " ".join(command), self.working_dir)
        try:
            status, stdout, stderr = self._git.execute(
                command,
                with_extended_output=True,
                with_exceptions=False,
            )
        except (GitCommandNotFound, OSError) as err:
            raise GitError(f"Failed to run git: {err}") from err

        lines = stdout.splitlines()
        if status != 0:
            lines.extend(stderr.splitlines())
            logger.debug("git %s exited with %d", args[0] if args else "", status)
        return ExecutorResult(lines=lines, exit_code=status)
