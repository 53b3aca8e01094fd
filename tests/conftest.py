"""Shared fixtures: an in-memory site and an isolated git identity."""

import shutil
import xml.etree.ElementTree as ET
import zipfile
from pathlib import Path

import pytest

from taskseq_vault.config import Config
from taskseq_vault.provider import ProviderError, TaskSequenceProvider

DEPLOY_XML = """<sequence version="3.00">
  <group name="Install Operating System" description="">
    <step type="SMS_TaskSequence_ApplyOperatingSystemAction" name="Apply OS">
      <action>OSDApplyOS.exe</action>
    </step>
  </group>
</sequence>"""

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git missing")


class FakeProvider(TaskSequenceProvider):
    """Serves task sequences from a dict of XML strings."""

    def __init__(self, sequences: dict[str, str]):
        self.sequences = sequences
        self.exports: list[Path] = []

    def list_names(self) -> list[str]:
        return sorted(self.sequences)

    def get_definition(self, name: str) -> ET.Element:
        if name not in self.sequences:
            raise ProviderError(f"Task sequence not found: {name}")
        return ET.fromstring(self.sequences[name])

    def export(self, name: str, destination: Path) -> None:
        with zipfile.ZipFile(destination, "w") as zf:
            zf.writestr("object.xml", self.sequences[name])
        self.exports.append(destination)


@pytest.fixture
def provider() -> FakeProvider:
    """A site holding a single 'Deploy-Win10' task sequence."""
    return FakeProvider({"Deploy-Win10": DEPLOY_XML})


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """A configuration rooted in a temporary directory.

    Args:
        tmp_path (Path): Pytest fixture for a temporary directory.
    """
    conf = Config()
    conf.repository.remote_root = tmp_path / "remote"
    conf.repository.local_root = tmp_path / "local"
    conf.sequence.name = "Deploy-Win10"
    return conf


@pytest.fixture(autouse=True)
def git_identity(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Isolates git from the user's global configuration."""
    global_config = tmp_path_factory.mktemp("git-home") / "gitconfig"
    global_config.write_text(
        "[user]\n\tname = Backup Tester\n\temail = tester@example.com\n"
        "[init]\n\tdefaultBranch = main\n"
    )
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(global_config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
