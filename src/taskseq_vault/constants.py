import os
from pathlib import Path

"""Global constants and path definitions for taskseq-vault.

This module defines the filesystem layout (adhering to XDG standards where applicable),
application identifiers, and the default naming rules for snapshots and exports.
"""

# --- Identity ---
APP_NAME = "taskseq-vault"
"""str: The human-readable application name."""

# --- Paths ---
_XDG_STATE = os.environ.get("XDG_STATE_HOME")
_BASE_STATE = Path(_XDG_STATE) if _XDG_STATE else Path.home() / ".local/state"

STATE_DIR = _BASE_STATE / "taskseq-vault"
"""Path: The directory for runtime state data (logs)."""

LOG_FILE = STATE_DIR / "backup.log"
"""Path: The file path for the backup run logs."""

# --- Configuration Paths ---
CONFIG_DIR: Path = Path.home() / ".config/taskseq-vault"
"""Path: The directory for user configuration files."""

CONFIG_FILE: Path = CONFIG_DIR / "config.toml"
"""Path: The global configuration file path."""

# --- Repository Defaults ---
DEFAULT_REPO_NAME = "TaskSequences"
"""str: The repository name used when none is configured."""

DEFAULT_REMOTE_ROOT: Path = Path.home() / "git-remotes"
"""Path: The directory that holds bare remote repositories."""

DEFAULT_LOCAL_ROOT: Path = Path.home() / "git"
"""Path: The directory that holds local working copies."""

# --- Layout / Naming ---
SNAPSHOT_SUFFIX = ".xml"
"""str: Extension of the saved task sequence definition."""

EXPORTS_DIR = "Exports"
"""str: Directory (under the local repository root) holding export archives."""

EXPORT_NAME_TEMPLATE = "{name} - {stamp}.zip"
"""str: File name of a point-in-time export archive."""

DEFAULT_HEADER_TEMPLATE = "{timestamp} - Task Sequence backup"
"""str: Commit header; `timestamp` is the run time."""

HEADER_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
"""str: strftime format used for the commit header timestamp."""
