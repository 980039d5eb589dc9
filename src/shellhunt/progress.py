"""Append-only progress log of completed exercises."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %z"


class ProgressLogError(ValueError):
    """Raised when the progress log cannot be interpreted."""


@dataclass(frozen=True)
class LogEntry:
    """One completed exercise."""

    index: int
    user: str
    title: str
    timestamp: str

    def to_line(self) -> str:
        return f"{self.index}\t{self.user}\t'{self.title}'\t{self.timestamp}\n"

    @classmethod
    def from_line(cls, line: str) -> LogEntry:
        """Parse one tab-separated log line."""
        fields = line.rstrip("\n").split("\t")
        try:
            index = int(fields[0])
        except ValueError as exc:
            raise ProgressLogError(f"Invalid progress log line: {line.rstrip()!r}") from exc
        user = fields[1].strip() if len(fields) > 1 else ""
        title = fields[2].strip() if len(fields) > 2 else ""
        if len(title) >= 2 and title.startswith("'") and title.endswith("'"):
            title = title[1:-1]
        timestamp = fields[3].strip() if len(fields) > 3 else ""
        return cls(index=index, user=user, title=title, timestamp=timestamp)


class ProgressLog:
    """File-backed log; the last entry determines where to resume."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.is_file()

    def entries(self) -> list[LogEntry]:
        """Return all logged entries in file order."""
        if not self.exists():
            return []
        lines = self.path.read_text(encoding="utf-8").splitlines()
        return [LogEntry.from_line(line) for line in lines if line.strip()]

    def last_entry(self) -> LogEntry | None:
        """Return the most recent entry, or None for a missing/empty log."""
        if not self.exists():
            return None
        for line in reversed(self.path.read_text(encoding="utf-8").splitlines()):
            if line.strip():
                return LogEntry.from_line(line)
        return None

    def resume_index(self) -> int:
        """Index of the first exercise not yet completed."""
        last = self.last_entry()
        start = 0 if last is None else last.index + 1
        logger.info("Resuming at exercise %d (log: %s)", start, self.path)
        return start

    def completed_indices(self) -> set[int]:
        return {entry.index for entry in self.entries()}

    def append(self, index: int, user: str, title: str, when: datetime | None = None) -> LogEntry:
        """Record a completed exercise, creating the log directory on demand."""
        moment = when if when is not None else datetime.now().astimezone()
        entry = LogEntry(index=index, user=user, title=title, timestamp=moment.strftime(TIMESTAMP_FORMAT))
        if not self.path.parent.is_dir():
            self.path.parent.mkdir(mode=0o700, parents=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(entry.to_line())
        logger.info("Logged exercise %d (%s)", index, title)
        return entry
