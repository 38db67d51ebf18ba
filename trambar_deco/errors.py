"""Top-level environment errors that abort a run.

Everything below the top level recovers locally (missing files, unreadable
directories, malformed definitions); only these reach the operator.
"""

from __future__ import annotations


class DecoError(Exception):
    """Base class for fatal errors, carrying the process exit code."""

    exit_code = 1


class RepositoryNotFoundError(DecoError):
    """Raised when the start folder is not inside a git working folder."""

    exit_code = 2

    def __init__(self, start: object) -> None:
        super().__init__(f"Not inside a Git working folder: {start}")
        self.start = start


class WorkingDirectoryError(DecoError):
    """Raised when the start folder cannot be read."""

    exit_code = 3

    def __init__(self, path: object, reason: str) -> None:
        super().__init__(f"Cannot read {path}: {reason}")
        self.path = path


__all__ = ["DecoError", "RepositoryNotFoundError", "WorkingDirectoryError"]
