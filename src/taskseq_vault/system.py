import logging
import socket
import subprocess

from .constants import APP_NAME

logger = logging.getLogger(APP_NAME)

_SITE_CODE_QUERY = (
    "(Get-CimInstance -Namespace root\\sms -ClassName SMS_ProviderLocation "
    "| Where-Object { $_.ProviderForLocalSite } "
    "| Select-Object -First 1).SiteCode"
)


def get_host_name() -> str:
    """Returns the short host name of this machine (the SMS provider host)."""
    return socket.gethostname().split(".")[0]


def detect_site_code(powershell: str = "powershell") -> str | None:
    """Resolves the Configuration Manager site code served by the local host.

    Queries the SMS provider location over CIM. This only succeeds on a machine
    that hosts (or can reach, as the current user) the site's SMS provider.

    Args:
        powershell (str): The PowerShell executable to use.

    Returns:
        str | None: The three-character site code, or None if it could not be found.
    """
    try:
        res = subprocess.run(
            [powershell, "-NoProfile", "-NonInteractive", "-Command", _SITE_CODE_QUERY],
            capture_output=True,
            text=True,
            timeout=30,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"Site code query failed on {get_host_name()}: {e}")
        return None

    code = res.stdout.strip()
    if res.returncode != 0 or not code:
        logger.debug(
            f"No SMS provider for the local site on {get_host_name()}: "
            f"{res.stderr.strip() or 'empty response'}"
        )
        return None
    return code
