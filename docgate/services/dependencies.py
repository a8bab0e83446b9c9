"""
External tool probing.

Both converters must answer ``--version`` with exit status zero. The
startup check refuses to run the service without them; the health
endpoint reports their state on every call.
"""

from dataclasses import asdict, dataclass

from loguru import logger

from docgate.config import Settings
from docgate.exceptions import DependencyError
from docgate.utils.shell import get_command_version

INSTALL_HINTS = {
    "wkhtmltopdf": "Install it (e.g., apt-get install wkhtmltopdf) or set WKHTMLTOPDF_PATH.",
    "unrtf": "Install it (e.g., apt-get install unrtf) or set UNRTF_PATH.",
}


@dataclass(frozen=True)
class ToolStatus:
    """Availability of one external tool."""

    name: str
    path: str
    present: bool
    version: str | None

    def as_dict(self) -> dict:
        data = asdict(self)
        data.pop("name")
        return data


def probe_tool(name: str, path: str) -> ToolStatus:
    """Run ``<path> --version`` and report whether it succeeded."""
    version = get_command_version(path)
    return ToolStatus(name=name, path=path, present=version is not None, version=version)


def check_dependencies(settings: Settings) -> dict[str, ToolStatus]:
    """Probe every external tool the converters rely on."""
    return {
        "wkhtmltopdf": probe_tool("wkhtmltopdf", settings.WKHTMLTOPDF_PATH),
        "unrtf": probe_tool("unrtf", settings.UNRTF_PATH),
    }


def assert_startup_dependencies(settings: Settings) -> dict[str, ToolStatus]:
    """
    Verify that every external tool is invocable.

    Returns:
        The probe results when all tools are present

    Raises:
        DependencyError: For the first missing tool
    """
    statuses = check_dependencies(settings)
    for name, status in statuses.items():
        if not status.present:
            raise DependencyError(
                f"Missing dependency: {name} not found at '{status.path}'. {INSTALL_HINTS[name]}",
                name,
            )
        logger.info(f"{name} verified: {status.version}")
    return statuses
