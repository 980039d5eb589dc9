"""Host-specific file status inspection via the `stat` command."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class UnsupportedPlatformError(RuntimeError):
    """Raised when no inspector exists for the host operating system."""


class FileInspector:
    """Read owner, permission bits and hard-link count of a path.

    Subclasses only provide the `stat` format arguments for their OS family.
    """

    name = "generic"
    owner_format: tuple[str, ...] = ()
    permissions_format: tuple[str, ...] = ()
    link_count_format: tuple[str, ...] = ()

    def owner(self, path: Path) -> str:
        """Return the owning user name."""
        return self._stat(self.owner_format, path)

    def permissions(self, path: Path) -> str:
        """Return permission bits as an octal string, e.g. ``755``."""
        return self._stat(self.permissions_format, path)

    def link_count(self, path: Path) -> int:
        """Return the number of hard links."""
        return int(self._stat(self.link_count_format, path))

    def _stat(self, format_args: tuple[str, ...], path: Path) -> str:
        command = ["stat", *format_args, str(path)]
        logger.debug("Running %s", " ".join(command))
        result = subprocess.run(command, capture_output=True, text=True, check=True)
        return result.stdout.strip()


class LinuxInspector(FileInspector):
    """GNU coreutils `stat`."""

    name = "linux"
    owner_format = ("-c", "%U")
    permissions_format = ("-c", "%a")
    link_count_format = ("-c", "%h")


class DarwinInspector(FileInspector):
    """BSD `stat` as shipped with macOS."""

    name = "darwin"
    owner_format = ("-f", "%Su")
    permissions_format = ("-f", "%Lp")
    link_count_format = ("-f", "%l")


def detect_inspector(platform: str) -> FileInspector:
    """Select the inspector for a ``sys.platform`` value."""
    if platform.startswith("linux"):
        return LinuxInspector()
    if platform.startswith("darwin"):
        return DarwinInspector()
    raise UnsupportedPlatformError(f"Unsupported operating system: {platform}")


def running_process_names() -> list[str]:
    """Return the command names of all live processes on the host.

    Zombies (state `Z`) are skipped: a killed child that was not reaped yet
    is gone as far as the learner is concerned.
    """
    result = subprocess.run(["ps", "-A", "-o", "stat=,comm="], capture_output=True, text=True, check=True)
    names: list[str] = []
    for line in result.stdout.splitlines():
        state, _, command = line.strip().partition(" ")
        command = command.strip()
        if not command or state.startswith("Z"):
            continue
        names.append(Path(command).name)
    return names
