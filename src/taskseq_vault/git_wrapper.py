import logging
import subprocess
from pathlib import Path

from .constants import APP_NAME

logger = logging.getLogger(APP_NAME)


class GitError(RuntimeError):
    """A git command exited with a non-zero status.

    Attributes:
        args_list (list[str]): The git arguments that were run.
        returncode (int): The process exit code.
        stderr (str): Captured standard error, if any.
    """

    def __init__(self, args: list[str], returncode: int, stderr: str = ""):
        self.args_list = args
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = self.stderr or f"exit status {returncode}"
        super().__init__(f"Git error (git {' '.join(args)}): {detail}")


def run_git(args: list[str], cwd: Path | None = None, capture: bool = True) -> str:
    """Executes a git command.

    Args:
        args (list[str]): A list of arguments to pass to the git command.
        cwd (Path | None, optional): Working directory for the command.
        capture (bool, optional): Whether to capture and return stdout.
            Defaults to True.

    Returns:
        str: The stripped stdout of the command if capture is True,
            otherwise an empty string.

    Raises:
        GitError: If the git command returns a non-zero exit code or git is missing.
    """
    logger.debug(f"git {' '.join(args)}")
    try:
        res = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=capture,
            text=True,
            check=True,
        )
        return res.stdout.strip() if capture else ""
    except subprocess.CalledProcessError as e:
        raise GitError(args, e.returncode, e.stderr or "") from e
    except FileNotFoundError as e:
        raise GitError(args, 127, "git executable not found") from e


def init_bare(path: Path) -> None:
    """Initializes a bare repository at `path`."""
    run_git(["init", "--bare", str(path)])


def clone(remote: Path, local: Path) -> "GitRepo":
    """Clones `remote` into `local` and returns the working copy.

    Args:
        remote (Path): Location of the repository to clone.
        local (Path): Destination directory (must not exist or be empty).

    Returns:
        GitRepo: The new working copy.
    """
    run_git(["clone", str(remote), str(local)])
    return GitRepo(local)


class GitRepo:
    """A wrapper around the Git command-line interface for a working copy.

    Only the narrow set of operations needed to publish a backup is exposed:
    status, add, commit and push.

    Attributes:
        path (Path): The file system path to the repository root.
    """

    def __init__(self, path: Path):
        """Initializes the GitRepo instance.

        Args:
            path (Path): The path to the repository root directory.

        Raises:
            ValueError: If the specified path does not contain a .git directory.
        """
        self.path = path
        if not (self.path / ".git").exists():
            raise ValueError(f"Not a git repository: {self.path}")

    def _run(self, args: list[str], capture: bool = True) -> str:
        """Executes a Git command within the repository context."""
        return run_git(args, cwd=self.path, capture=capture)

    def status_porcelain(self) -> list[str]:
        """Returns the short-form status lines, listing untracked files individually.

        Returns:
            list[str]: Lines from `git status --porcelain --untracked-files=all`.
        """
        output = self._run(["status", "--porcelain", "--untracked-files=all"])
        return output.splitlines() if output else []

    def get_untracked_files(self) -> list[str]:
        """Lists untracked (and not ignored) files relative to the repository root.

        Returns:
            list[str]: Paths reported with the `??` status code.
        """
        # -z disables path quoting (archive names contain spaces).
        output = self._run(
            ["status", "--porcelain", "-z", "--untracked-files=all"]
        )
        return [
            entry[3:] for entry in output.split("\0") if entry.startswith("?? ")
        ]

    def add(self, file: str) -> None:
        """Stages a single path."""
        self._run(["add", "--", file], capture=True)

    def commit_all(self, message: str) -> None:
        """Commits every tracked change plus whatever is already staged.

        Args:
            message (str): The commit message.
        """
        self._run(["commit", "-a", "-m", message], capture=True)

    def push(self, remote: str = "origin") -> None:
        """Pushes the current branch to the same-named branch on `remote`."""
        self._run(["push", remote, "HEAD"], capture=True)

    def current_branch(self) -> str:
        """Retrieves the name of the currently checked-out branch.

        Returns:
            str: The branch name (also for a branch with no commits yet).
        """
        return self._run(["branch", "--show-current"])

    def has_uncommitted_changes(self) -> bool:
        """Whether the working tree has modified, staged or untracked files."""
        return bool(self.status_porcelain())

    def is_ahead_of(self, remote: str = "origin") -> bool:
        """Whether HEAD holds commits that were never pushed to `remote`.

        Compares HEAD with the remote-tracking ref of the current branch. A
        missing tracking ref with an existing HEAD means nothing was pushed yet.

        Args:
            remote (str): The remote name.

        Returns:
            bool: True if HEAD differs from the last known remote state.
        """
        head = self.rev_parse("HEAD")
        if head is None:
            return False
        branch = self.current_branch()
        if not branch:
            return False
        return head != self.rev_parse(f"refs/remotes/{remote}/{branch}")

    def rev_parse(self, rev: str) -> str | None:
        """Resolves a revision to a full SHA-1 hash.

        Args:
            rev (str): The revision to parse (e.g., 'HEAD').

        Returns:
            str | None: The full SHA-1 hash, or None if the revision could not be resolved.
        """
        try:
            return self._run(["rev-parse", "--verify", "--quiet", rev])
        except GitError as e:
            logger.debug(f"rev-parse failed for '{rev}': {e}")
            return None
