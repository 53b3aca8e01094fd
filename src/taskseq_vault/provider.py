"""Access to task sequences on a Configuration Manager site.

The site is reached through the ConfigurationManager PowerShell module, run as
a subprocess. `TaskSequenceProvider` is the narrow interface the rest of the
package depends on, so a run can be driven by any other source in tests.
"""

import logging
import subprocess
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from .config import Config
from .constants import APP_NAME
from .errors import FetchFailed
from .selection import Selector
from .system import detect_site_code, get_host_name

logger = logging.getLogger(APP_NAME)

_DEFAULT_MODULE = (
    "(Join-Path (Split-Path $Env:SMS_ADMIN_UI_PATH) 'ConfigurationManager.psd1')"
)


class ProviderError(RuntimeError):
    """The management console could not complete a request."""


@dataclass
class Artifact:
    """A task sequence fetched from the site.

    Attributes:
        name (str): The task sequence name.
        definition (ET.Element): Root of the sequence XML document.
        export_path (Path | None): Archive written for this run, if any.
    """

    name: str
    definition: ET.Element
    export_path: Path | None = None


class TaskSequenceProvider:
    """Base class defining the management API operations a backup consumes."""

    def list_names(self) -> list[str]:
        """Returns the names of every task sequence on the site."""
        raise NotImplementedError

    def get_definition(self, name: str) -> ET.Element:
        """Returns the current sequence document for `name`.

        Raises:
            ProviderError: If the task sequence does not exist or cannot be read.
        """
        raise NotImplementedError

    def export(self, name: str, destination: Path) -> None:
        """Writes a full export archive of `name` to `destination`."""
        raise NotImplementedError


def _ps_quote(value: str) -> str:
    """Quotes a value as a PowerShell single-quoted string literal."""
    return "'" + value.replace("'", "''") + "'"


class PowerShellProvider(TaskSequenceProvider):
    """Talks to the site through the ConfigurationManager PowerShell module.

    Args:
        site_code (str): The site whose PSDrive commands run against.
        powershell (str): The PowerShell executable.
        module_path (str): Explicit path to ConfigurationManager.psd1. When empty,
            the module is located through the console's `SMS_ADMIN_UI_PATH`.
    """

    def __init__(
        self, site_code: str, powershell: str = "powershell", module_path: str = ""
    ):
        self.site_code = site_code
        self.powershell = powershell
        self.module_path = module_path

    def _prelude(self) -> str:
        module = _ps_quote(self.module_path) if self.module_path else _DEFAULT_MODULE
        return (
            "$ErrorActionPreference = 'Stop'\n"
            f"Import-Module {module}\n"
            f"Set-Location {_ps_quote(self.site_code + ':')}\n"
        )

    def _run(self, body: str) -> str:
        """Runs a script against the site drive and returns its stdout.

        Raises:
            ProviderError: If PowerShell is missing or the script fails.
        """
        script = self._prelude() + body
        try:
            res = subprocess.run(
                [self.powershell, "-NoProfile", "-NonInteractive", "-Command", script],
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise ProviderError(f"PowerShell not found: {self.powershell}") from e
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
            raise ProviderError(f"Console error: {detail}") from e
        return res.stdout

    def list_names(self) -> list[str]:
        output = self._run(
            "Get-CMTaskSequence -Fast | Sort-Object Name "
            "| ForEach-Object { $_.Name }\n"
        )
        return [line.strip() for line in output.splitlines() if line.strip()]

    def get_definition(self, name: str) -> ET.Element:
        output = self._run(
            f"$ts = Get-CMTaskSequence -Name {_ps_quote(name)}\n"
            f"if (-not $ts) {{ throw {_ps_quote('Task sequence not found: ' + name)} }}\n"
            "$ts.Sequence\n"
        )
        try:
            return ET.fromstring(output.strip().lstrip("\ufeff"))
        except ET.ParseError as e:
            raise ProviderError(f"Unreadable sequence XML for '{name}': {e}") from e

    def export(self, name: str, destination: Path) -> None:
        self._run(
            f"Export-CMTaskSequence -Name {_ps_quote(name)} "
            f"-ExportFilePath {_ps_quote(str(destination))}\n"
        )


def get_provider(config: Config) -> TaskSequenceProvider:
    """Factory function building the site client from configuration.

    Raises:
        FetchFailed: If no site code is configured and none can be detected.
    """
    seq = config.sequence
    site_code = seq.site_code or detect_site_code(seq.powershell)
    if not site_code:
        raise FetchFailed(
            f"Could not determine the site code on {get_host_name()}. "
            "Set [sequence].site_code or pass --site-code."
        )
    logger.info(f"Using site {site_code} via {get_host_name()}")
    return PowerShellProvider(site_code, seq.powershell, seq.module_path)


def resolve_name(
    provider: TaskSequenceProvider, configured: str, selector: Selector
) -> str:
    """Returns the configured task sequence name, or asks `selector` for one.

    Raises:
        FetchFailed: If the names cannot be listed or no choice is made.
    """
    if configured.strip():
        return configured.strip()
    try:
        candidates = provider.list_names()
    except ProviderError as e:
        raise FetchFailed(f"Could not list task sequences: {e}") from e
    return selector.select_one(candidates)


def fetch_artifact(provider: TaskSequenceProvider, name: str) -> Artifact:
    """Fetches the live definition of `name`.

    Raises:
        FetchFailed: If the site cannot return the definition.
    """
    try:
        definition = provider.get_definition(name)
    except ProviderError as e:
        raise FetchFailed(f"Could not fetch '{name}': {e}") from e
    return Artifact(name=name, definition=definition)
