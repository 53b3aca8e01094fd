import datetime
import logging
import sys
from collections.abc import Callable
from enum import Enum
from logging.handlers import RotatingFileHandler

from rich.console import Console

from . import provider as site
from . import snapshot
from .bootstrap import ensure_repositories
from .config import Config
from .constants import APP_NAME, LOG_FILE
from .provider import TaskSequenceProvider
from .publisher import build_record, has_pending_work, publish
from .selection import NonInteractiveSelector, PromptSelector, Selector

logger = logging.getLogger(APP_NAME)

console = Console()


class RunResult(Enum):
    """How a backup run ended."""

    UNCHANGED = "unchanged"
    PUBLISHED = "published"


def run_backup(
    config: Config,
    message: str | None = None,
    provider: TaskSequenceProvider | None = None,
    selector: Selector | None = None,
    interactive: bool = True,
    clock: Callable[[], datetime.datetime] = datetime.datetime.now,
) -> RunResult:
    """Orchestrates one backup pass for a single task sequence.

    Steps:
    1. Ensures the bare remote and local clone exist.
    2. Resolves the task sequence name and fetches its live definition.
    3. Compares it to the saved snapshot. If nothing changed and an earlier run
       left nothing uncommitted or unpushed, stops here.
    4. Writes a timestamped export archive, then the new snapshot (changed only).
    5. Stages untracked files, commits everything and pushes.

    Args:
        config (Config): The merged configuration.
        message (str | None): Optional commit message body.
        provider (TaskSequenceProvider | None): Site client. Built from `config`
            when omitted.
        selector (Selector | None): Used when no name is configured. Defaults to
            a prompt when interactive, otherwise the first available name.
        interactive (bool): Whether a user is at the terminal.
        clock (Callable[[], datetime.datetime]): Source of the run time.

    Returns:
        RunResult: Whether a change was published.

    Raises:
        BackupError: A subclass naming the stage that failed.
    """
    pair = config.repositories()
    repo = ensure_repositories(pair)
    console.print(f"[bold blue]REPOSITORY:[/bold blue] {repo.path}")

    if provider is None:
        provider = site.get_provider(config)
    if selector is None:
        selector = PromptSelector() if interactive else NonInteractiveSelector()

    name = site.resolve_name(provider, config.sequence.name, selector)
    console.print(f"[bold blue]FETCHING:[/bold blue] '{name}'...")
    artifact = site.fetch_artifact(provider, name)

    remote = config.repository.remote_name
    target = snapshot.snapshot_path(repo.path, name)
    moment = clock()
    if snapshot.has_changed(artifact.definition, target):
        console.print(f"[bold yellow]CHANGED:[/bold yellow] '{name}'. Saving...")
        snapshot.save(provider, repo.path, artifact, moment)
    elif has_pending_work(repo, remote):
        # An earlier run saved files but failed to commit or push them.
        logger.warning(f"PENDING {name}: unpublished work from an earlier run.")
        console.print(
            f"[bold yellow]PENDING:[/bold yellow] '{name}' is unchanged, "
            "publishing earlier work..."
        )
    else:
        logger.info(f"UNCHANGED {name}: nothing to back up.")
        console.print(f"[bold green]No changes[/bold green] to '{name}'.")
        return RunResult.UNCHANGED

    record = build_record(config.commit.header_template, moment, message)
    with console.status("[bold blue]Publishing...[/bold blue]", spinner="dots"):
        publish(repo, record, remote)

    logger.info(f"SUCCESS {name}: {len(record.changed_files)} file(s) published.")
    console.print(
        f"[bold green]SUCCESS:[/bold green] '{name}' backed up "
        f"({len(record.changed_files)} new file(s))."
    )
    return RunResult.PUBLISHED


def setup_logging(config: Config, verbose: bool = False) -> None:
    """Configures the logging subsystem.

    Records always go to a rotating log file in the state directory. With
    `verbose`, they are also echoed to stderr.

    Args:
        config (Config): Supplies the level and the rotation size.
        verbose (bool): Echo log records to stderr.
    """
    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    )
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG if verbose else config.logging.level)

    if verbose:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    try:
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=config.logging.max_log_size,
            backupCount=5,
        )
    except OSError as e:
        console.print(f"[yellow]Logging to file disabled: {e}[/yellow]")
        return
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
