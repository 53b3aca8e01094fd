"""Failure taxonomy for a backup run.

Each stage of the run raises its own subclass of `BackupError`, so the CLI can
report which stage failed and exit with a stable code.
"""

from enum import Enum


class ErrorKind(Enum):
    """The stage a backup run failed in."""

    BOOTSTRAP_FAILED = 1
    FETCH_FAILED = 2
    COMPARE_FAILED = 3
    WRITE_FAILED = 4
    PUBLISH_FAILED = 5


class BackupError(Exception):
    """Base exception for a failed backup run.

    Attributes:
        kind (ErrorKind): The stage that failed.
    """

    kind: ErrorKind

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def exit_code(self) -> int:
        """int: The process exit code for this failure."""
        return self.kind.value


class BootstrapFailed(BackupError):
    """The remote or local repository could not be created."""

    kind = ErrorKind.BOOTSTRAP_FAILED


class FetchFailed(BackupError):
    """The task sequence could not be resolved or read from the site."""

    kind = ErrorKind.FETCH_FAILED


class CompareFailed(BackupError):
    """The saved snapshot could not be read for comparison."""

    kind = ErrorKind.COMPARE_FAILED


class WriteFailed(BackupError):
    """The snapshot or export archive could not be written."""

    kind = ErrorKind.WRITE_FAILED


class PublishFailed(BackupError):
    """Staging, committing or pushing the change failed."""

    kind = ErrorKind.PUBLISH_FAILED
