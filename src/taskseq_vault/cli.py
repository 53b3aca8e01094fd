import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console

from .backup import run_backup, setup_logging
from .config import Config
from .constants import APP_NAME
from .errors import BackupError

logger = logging.getLogger(APP_NAME)
console = Console()
err_console = Console(stderr=True)


def build_parser() -> argparse.ArgumentParser:
    """Builds the command-line parser."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description=(
            "Back up a Configuration Manager task sequence into a git repository "
            "whenever its definition changes."
        ),
    )
    parser.add_argument(
        "message",
        nargs="?",
        default=None,
        help="Optional commit message body describing the change",
    )
    parser.add_argument("--name", "-n", help="Task sequence to back up")
    parser.add_argument("--config", "-c", type=Path, help="Extra TOML config file")
    parser.add_argument("--repo-name", help="Repository name")
    parser.add_argument(
        "--remote-root", type=Path, help="Directory holding the bare remote"
    )
    parser.add_argument(
        "--local-root", type=Path, help="Directory holding the local clone"
    )
    parser.add_argument("--site-code", help="Configuration Manager site code")
    parser.add_argument(
        "--non-interactive",
        action="store_true",
        help="Never prompt; pick the first task sequence if none is named",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Echo debug logs to stderr"
    )
    return parser


def load_config(args: argparse.Namespace) -> Config:
    """Merges file configuration with command-line overrides."""
    conf = Config.load(args.config)
    conf = conf.with_overrides(
        "repository",
        name=args.repo_name,
        remote_root=args.remote_root,
        local_root=args.local_root,
    )
    return conf.with_overrides("sequence", name=args.name, site_code=args.site_code)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the taskseq-vault CLI."""
    args = build_parser().parse_args(argv)

    conf = load_config(args)
    setup_logging(conf, verbose=args.verbose)

    interactive = not args.non_interactive and sys.stdin.isatty()
    try:
        run_backup(conf, message=args.message, interactive=interactive)
    except BackupError as e:
        logger.error(f"{e.kind.name}: {e}")
        err_console.print(f"[bold red]{e.kind.name}:[/bold red] {e}")
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        err_console.print("[bold red]ABORTED.[/bold red]")
        sys.exit(130)


if __name__ == "__main__":
    main()
