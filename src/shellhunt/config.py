"""Explicit runtime configuration for the tutorial."""

from __future__ import annotations

import getpass
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_PROJECT_SUBPATH = "linux-kurs"
DEFAULT_LOG_NAME = ".schnitzel.log"
DEFAULT_SUCCESS_DELAY = 2.0
CHAOS_URL = "https://smits-net.de/files/ei/chaos.tar.xz"


@dataclass(frozen=True)
class TutorialConfig:
    """Paths and identity used by the runner and the exercise checks."""

    base_path: Path
    user: str
    project_subpath: str = DEFAULT_PROJECT_SUBPATH
    log_name: str = DEFAULT_LOG_NAME
    success_delay: float = DEFAULT_SUCCESS_DELAY
    chaos_url: str = CHAOS_URL

    @property
    def workdir(self) -> Path:
        """Directory the learner works in."""
        return self.base_path / self.project_subpath

    @property
    def log_file(self) -> Path:
        """Location of the progress log."""
        return self.workdir / self.log_name

    @classmethod
    def from_environment(
        cls,
        environ: Mapping[str, str],
        *,
        base_path: Path | str | None = None,
        success_delay: float = DEFAULT_SUCCESS_DELAY,
    ) -> TutorialConfig:
        """Build config from an environment mapping, e.g. ``os.environ``."""
        if base_path is None:
            home = environ.get("HOME", "").strip()
            resolved = Path(home) if home else Path.home()
        else:
            resolved = Path(base_path).expanduser()

        user = environ.get("USER", "").strip() or environ.get("LOGNAME", "").strip()
        if not user:
            user = getpass.getuser()

        return cls(base_path=resolved, user=user, success_delay=success_delay)
