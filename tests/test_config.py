"""Tests for the configuration management subsystem."""

import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from taskseq_vault.config import Config, RepositoryPair, parse_level, parse_size
from taskseq_vault.constants import DEFAULT_HEADER_TEMPLATE


@pytest.fixture(autouse=True)
def no_global_config(tmp_path: Path, mocker: MagicMock) -> Path:
    """Points the global config at a file that does not exist yet."""
    path = tmp_path / "global.toml"
    mocker.patch("taskseq_vault.config.CONFIG_FILE", path)
    return path


def test_config_defaults() -> None:
    """Verifies that the configuration initializes with sensible defaults."""
    conf = Config()
    assert conf.repository.name == "TaskSequences"
    assert conf.repository.remote_name == "origin"
    assert conf.sequence.name == ""
    assert conf.commit.header_template == DEFAULT_HEADER_TEMPLATE
    assert conf.logging.max_log_size == 5 * 1024 * 1024


def test_repositories_derives_pair(tmp_path: Path) -> None:
    """Verifies that the remote gets a .git suffix and the clone the bare name."""
    conf = Config()
    conf.repository.name = "OSD"
    conf.repository.remote_root = tmp_path / "remotes"
    conf.repository.local_root = tmp_path / "work"

    assert conf.repositories() == RepositoryPair(
        remote=tmp_path / "remotes" / "OSD.git",
        local=tmp_path / "work" / "OSD",
    )


def test_config_load_merges_layers(tmp_path: Path, no_global_config: Path) -> None:
    """Verifies the cascading merge logic (Defaults -> Global -> Explicit).

    Args:
        tmp_path (Path): Pytest fixture for a temporary directory.
        no_global_config (Path): The patched global config location.
    """
    no_global_config.write_text(
        '[repository]\nname = "Global"\nremote_root = "/srv/git"\n'
        '[sequence]\nsite_code = "PS1"\n'
    )
    explicit = tmp_path / "run.toml"
    explicit.write_text('[repository]\nname = "Explicit"\n[logging]\nmax_log_size = "1MB"\n')

    conf = Config.load(explicit)

    assert conf.repository.name == "Explicit"  # Explicit overrides Global
    assert conf.repository.remote_root == Path("/srv/git")  # From Global
    assert conf.sequence.site_code == "PS1"
    assert conf.logging.max_log_size == 1024 * 1024


def test_config_load_expands_home(no_global_config: Path) -> None:
    """Verifies that configured directories may start with '~'."""
    no_global_config.write_text('[repository]\nlocal_root = "~/backups"\n')

    conf = Config.load()

    assert conf.repository.local_root == Path.home() / "backups"


def test_config_missing_explicit_file_warns(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Verifies that a missing --config file is reported and defaults are kept."""
    caplog.set_level(logging.WARNING)

    conf = Config.load(tmp_path / "nope.toml")

    assert conf.repository.name == "TaskSequences"
    assert "Config file not found" in caplog.text


def test_config_syntax_error_is_logged(
    no_global_config: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Verifies that a broken TOML file is skipped with an error."""
    no_global_config.write_text("[repository\nname = ")

    conf = Config.load()

    assert conf.repository.name == "TaskSequences"
    assert "Config syntax error" in caplog.text


def test_config_invalid_keys_and_values(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Verifies that unknown keys are ignored and invalid values fallback to defaults.

    Args:
        tmp_path (Path): Pytest fixture for a temporary directory.
        caplog (pytest.LogCaptureFixture): Pytest fixture for capturing logs.
    """
    caplog.set_level(logging.WARNING)

    local_toml = tmp_path / "run.toml"
    local_toml.write_text(
        "[logging]\n"
        'level = "chatty"\n'
        'max_log_size = "10 gallons"\n'
        "[commit]\n"
        'header_template = "{when} backup"\n'
        'colour = "blue"\n'
        "[daemon]\n"
        "interval = 5\n"
    )

    conf = Config.load(local_toml)

    assert conf.logging.level == "INFO"
    assert conf.logging.max_log_size == 5242880
    assert conf.commit.header_template == DEFAULT_HEADER_TEMPLATE

    assert "Unknown config keys in [commit]: colour" in caplog.text
    assert "Unknown config sections" in caplog.text
    assert "Config error in [logging].level: Invalid log level" in caplog.text
    assert "Config error in [logging].max_log_size: Invalid size format" in caplog.text
    assert "Config error in [commit].header_template" in caplog.text


def test_with_overrides_skips_none() -> None:
    """Verifies that unset command-line options leave file values alone."""
    conf = Config()
    conf.sequence.site_code = "PS1"

    updated = conf.with_overrides("sequence", name="Deploy-Win10", site_code=None)

    assert updated.sequence.name == "Deploy-Win10"
    assert updated.sequence.site_code == "PS1"
    assert conf.sequence.name == ""


def test_parse_size() -> None:
    """Verifies that human-readable sizes are correctly converted to bytes."""
    assert parse_size(100) == 100
    assert parse_size("100kb") == 102400
    assert parse_size("10 MB") == 10485760

    with pytest.raises(ValueError, match=r"Invalid size format '100 bits'"):
        parse_size("100 bits")


def test_parse_level() -> None:
    """Verifies that level names are normalized."""
    assert parse_level("debug") == "DEBUG"
    with pytest.raises(ValueError):
        parse_level("loud")
