import logging
import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .constants import (
    APP_NAME,
    CONFIG_FILE,
    DEFAULT_HEADER_TEMPLATE,
    DEFAULT_LOCAL_ROOT,
    DEFAULT_REMOTE_ROOT,
    DEFAULT_REPO_NAME,
)

logger = logging.getLogger(APP_NAME)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_size(value: int | str) -> int:
    """Converts human-readable size strings (e.g., '100MB') to bytes."""
    if isinstance(value, int):
        return value
    match = re.match(r"^(\d+(?:\.\d+)?)\s*([kmg]b?)$", str(value).strip().lower())
    if not match:
        raise ValueError(f"Invalid size format '{value}'")
    num, unit = float(match.group(1)), match.group(2)
    multiplier = {
        "k": 1024,
        "kb": 1024,
        "m": 1024**2,
        "mb": 1024**2,
        "g": 1024**3,
        "gb": 1024**3,
    }
    return int(num * multiplier[unit])


def parse_path(value: str | Path) -> Path:
    """Expands `~` in a configured directory and returns it as a Path."""
    if not str(value).strip():
        raise ValueError("Empty path")
    return Path(value).expanduser()


def parse_level(value: str) -> str:
    """Normalizes a logging level name."""
    level = str(value).strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Invalid log level '{value}'")
    return level


def parse_template(value: str) -> str:
    """Checks that a commit header template only references `{timestamp}`."""
    try:
        str(value).format(timestamp="")
    except (KeyError, IndexError, ValueError) as e:
        raise ValueError(f"Invalid header template '{value}' ({e})") from e
    return str(value)


@dataclass(frozen=True)
class RepositoryPair:
    """The bare remote repository and its local working copy.

    Attributes:
        remote (Path): Location of the bare repository.
        local (Path): Location of the clone.
    """

    remote: Path
    local: Path


@dataclass
class RepositoryConfig:
    """Repository layout settings.

    Attributes:
        name (str): Repository name, used for both the remote and local directory.
        remote_root (Path): Directory holding bare remote repositories.
        local_root (Path): Directory holding local working copies.
        remote_name (str): The git remote to push to.
    """

    name: str = DEFAULT_REPO_NAME
    remote_root: Path = DEFAULT_REMOTE_ROOT
    local_root: Path = DEFAULT_LOCAL_ROOT
    remote_name: str = "origin"


@dataclass
class SequenceConfig:
    """Task sequence source settings.

    Attributes:
        name (str): The task sequence to back up. Empty means "ask".
        site_code (str): Configuration Manager site code. Empty means
            auto-detect from the local SMS provider.
        powershell (str): The PowerShell executable to drive the console module.
        module_path (str): Optional explicit path to ConfigurationManager.psd1.
    """

    name: str = ""
    site_code: str = ""
    powershell: str = "powershell"
    module_path: str = ""


@dataclass
class CommitConfig:
    """Commit message settings.

    Attributes:
        header_template (str): Header line; `{timestamp}` is replaced by the run time.
    """

    header_template: str = DEFAULT_HEADER_TEMPLATE


@dataclass
class LoggingConfig:
    """Logging settings.

    Attributes:
        level (str): Minimum level written to the log.
        max_log_size (int): Max bytes for the log file before rotation.
    """

    level: str = "INFO"
    max_log_size: int = 5 * 1024 * 1024


_PARSERS = {
    "remote_root": parse_path,
    "local_root": parse_path,
    "max_log_size": parse_size,
    "level": parse_level,
    "header_template": parse_template,
}


@dataclass
class Config:
    """Global configuration aggregator.

    Attributes:
        repository (RepositoryConfig): Repository layout.
        sequence (SequenceConfig): Task sequence source.
        commit (CommitConfig): Commit message composition.
        logging (LoggingConfig): Log output.
    """

    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    sequence: SequenceConfig = field(default_factory=SequenceConfig)
    commit: CommitConfig = field(default_factory=CommitConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Loads and merges configuration from defaults, global, and explicit sources.

        Args:
            path (Path | None): An additional config file applied on top of the
                global one (e.g. from `--config`).

        Returns:
            Config: The fully merged configuration object.
        """
        instance = cls()
        if CONFIG_FILE.exists():
            instance._merge_from_file(CONFIG_FILE)

        if path is not None:
            if path.exists():
                instance._merge_from_file(path)
            else:
                logger.warning(f"Config file not found: {path}. Ignoring.")

        return instance

    def repositories(self) -> RepositoryPair:
        """Derives the remote/local repository locations from the layout settings."""
        repo = self.repository
        return RepositoryPair(
            remote=repo.remote_root / f"{repo.name}.git",
            local=repo.local_root / repo.name,
        )

    def with_overrides(self, section: str, **overrides: Any) -> "Config":
        """Returns a copy with the non-None overrides applied to one section."""
        updates = {k: v for k, v in overrides.items() if v is not None}
        if not updates:
            return replace(self)
        current = getattr(self, section)
        updated = self._update_dataclass(section, current, updates)
        return replace(self, **{section: updated})

    def _merge_from_file(self, path: Path) -> None:
        """Parses a TOML file and merges it into the current instance.

        Args:
            path (Path): Path to the TOML file.
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)

            unknown = sorted(set(data) - set(self.__dataclass_fields__))
            if unknown:
                logger.warning(
                    f"Unknown config sections in {path}: {', '.join(unknown)}. Ignoring."
                )

            for section in self.__dataclass_fields__:
                if section not in data:
                    continue
                updates = data[section]
                if not isinstance(updates, dict):
                    logger.warning(f"Config [{section}] in {path} is not a table. Ignoring.")
                    continue
                current = getattr(self, section)
                setattr(self, section, self._update_dataclass(section, current, updates))

        except tomllib.TOMLDecodeError as e:
            logger.error(f"Config syntax error in {path}: {e}")
        except OSError as e:
            logger.warning(f"Failed to load config from {path}: {e}")

    @staticmethod
    def _update_dataclass(section_name: str, instance: Any, updates: dict) -> Any:
        """Updates a dataclass, warning on invalid keys and parsing human-readable formats."""
        valid_keys = instance.__dataclass_fields__.keys()
        filtered_updates = {}

        invalid_keys = set(updates.keys()) - set(valid_keys)
        if invalid_keys:
            logger.warning(
                f"Unknown config keys in [{section_name}]: {', '.join(sorted(invalid_keys))}. Ignoring."
            )

        for k, v in updates.items():
            if k not in valid_keys:
                continue

            try:
                parser = _PARSERS.get(k)
                filtered_updates[k] = parser(v) if parser else v
            except ValueError as e:
                logger.warning(
                    f"Config error in [{section_name}].{k}: {e}. Falling back to default."
                )

        return replace(instance, **filtered_updates)
