"""taskseq-vault: Change-tracked git backups of a Configuration Manager task sequence.

This package provides the command-line interface, the repository bootstrapper,
the site client, change detection and the commit publisher for keeping a
task sequence definition under version control.
"""

from . import (
    backup,
    bootstrap,
    cli,
    config,
    constants,
    errors,
    git_wrapper,
    provider,
    publisher,
    selection,
    snapshot,
    system,
)

__all__ = [
    "backup",
    "bootstrap",
    "cli",
    "config",
    "constants",
    "errors",
    "git_wrapper",
    "provider",
    "publisher",
    "selection",
    "snapshot",
    "system",
]
