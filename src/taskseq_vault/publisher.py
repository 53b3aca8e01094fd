import datetime
import logging
from dataclasses import dataclass, field

from .constants import APP_NAME, HEADER_TIME_FORMAT
from .errors import PublishFailed
from .git_wrapper import GitError, GitRepo

logger = logging.getLogger(APP_NAME)


@dataclass
class CommitRecord:
    """The commit produced by one backup run.

    Attributes:
        header (str): First line; always present.
        body (str | None): Caller-supplied detail, if any.
        changed_files (list[str]): Untracked files staged for this commit.
    """

    header: str
    body: str | None = None
    changed_files: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        """str: The full commit message (header, blank line, body)."""
        if self.body:
            return f"{self.header}\n\n{self.body}"
        return self.header


def build_record(
    header_template: str, moment: datetime.datetime, custom: str | None = None
) -> CommitRecord:
    """Composes the commit header from the template and attaches a non-empty body."""
    header = header_template.format(timestamp=moment.strftime(HEADER_TIME_FORMAT))
    body = custom.strip() if custom and custom.strip() else None
    return CommitRecord(header=header, body=body)


def has_pending_work(repo: GitRepo, remote: str = "origin") -> bool:
    """Whether an earlier run left files uncommitted or commits unpushed.

    Raises:
        PublishFailed: If the working copy cannot be inspected.
    """
    try:
        return repo.has_uncommitted_changes() or repo.is_ahead_of(remote)
    except GitError as e:
        raise PublishFailed(str(e)) from e


def publish(repo: GitRepo, record: CommitRecord, remote: str = "origin") -> CommitRecord:
    """Stages all untracked files, commits everything and pushes.

    Every untracked file in the working tree is swept in, not just the ones this
    run wrote. The commit is skipped when the tree is already clean, so commits
    left unpushed by a failed run are still pushed.

    Args:
        repo (GitRepo): The local working copy.
        record (CommitRecord): Message parts; `changed_files` is filled in.
        remote (str): The remote to push to.

    Returns:
        CommitRecord: The record, with the staged files.

    Raises:
        PublishFailed: If any git step fails.
    """
    try:
        for name in repo.get_untracked_files():
            repo.add(name)
            record.changed_files.append(name)
        logger.info(f"Staged {len(record.changed_files)} untracked file(s).")

        if repo.has_uncommitted_changes():
            repo.commit_all(record.message)
            logger.info(f"Committed: {record.header}")
        else:
            logger.info("Nothing to commit; pushing earlier commits.")

        repo.push(remote)
        logger.info(f"Pushed to {remote}.")
    except GitError as e:
        raise PublishFailed(str(e)) from e

    return record
