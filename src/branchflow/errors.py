"""Branchflow exceptions."""

from typing import Optional


class BranchflowError(Exception):
    """Base error for branchflow operations."""


class GitError(BranchflowError):
    """Git command error."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        target: Optional[str] = None,
        output: Optional[list[str]] = None,
    ) -> None:
        """Initialize error.

        Args:
            message: Error message
            operation: The git operation that failed (e.g. "merge")
            target: Branch, tag or key the operation was applied to
            output: Output lines git produced before failing
        """
        super().__init__(message)
        self.operation = operation
        self.target = target
        self.output = output or []


class GitFlowError(BranchflowError):
    """Branching model precondition violated."""
