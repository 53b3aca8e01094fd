import logging

from . import git_wrapper
from .config import RepositoryPair
from .constants import APP_NAME
from .errors import BootstrapFailed
from .git_wrapper import GitError, GitRepo

logger = logging.getLogger(APP_NAME)


def ensure_repositories(pair: RepositoryPair) -> GitRepo:
    """Makes sure the bare remote and its local clone both exist.

    The remote is created before the clone. When both already exist nothing is
    touched.

    Args:
        pair (RepositoryPair): The remote and local locations.

    Returns:
        GitRepo: The local working copy.

    Raises:
        BootstrapFailed: If a directory or repository cannot be created.
    """
    if not pair.remote.exists():
        logger.info(f"Creating bare repository at {pair.remote}")
        try:
            pair.remote.mkdir(parents=True)
            git_wrapper.init_bare(pair.remote)
        except (OSError, GitError) as e:
            raise BootstrapFailed(
                f"Could not create remote repository {pair.remote}: {e}"
            ) from e

    if not pair.local.exists():
        logger.info(f"Cloning {pair.remote} into {pair.local}")
        try:
            pair.local.parent.mkdir(parents=True, exist_ok=True)
            return git_wrapper.clone(pair.remote, pair.local)
        except (OSError, GitError) as e:
            raise BootstrapFailed(
                f"Could not clone {pair.remote} into {pair.local}: {e}"
            ) from e

    try:
        return GitRepo(pair.local)
    except ValueError as e:
        raise BootstrapFailed(str(e)) from e
