"""Setup actions and check predicates used by exercises."""

from __future__ import annotations

import logging
import subprocess
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .fileinfo import running_process_names
from .models import Action, Check, ExerciseContext

logger = logging.getLogger(__name__)

# Decoy file names written by `fill_dir`.
FILENAMES = (
    "Battlefield",
    "BioShock",
    "Borderlands",
    "Burnout",
    "Castlevania",
    "Crysis",
    "Deponia",
    "Doom",
    "Elite",
    "Fallout",
    "Halo",
    "Hitman",
    "Minecraft",
    "Payday",
    "Prey",
    "Quake",
    "Rayman",
    "Risen",
    "Splatoon",
    "Thief",
    "Uncharted",
    "Witcher",
    "Wolfenstein",
    "Yakuza",
    "Zork",
)
FILLER_TEXT = "Gehen Sie weiter, hier gibt es nichts zu sehen."


# ------------
# Actions
# ------------


@dataclass(frozen=True)
class MakeDir:
    """Create a directory below the workdir unless it exists."""

    path: str = ""
    mode: int = 0o700

    def run(self, context: ExerciseContext) -> None:
        target = context.path(self.path) if self.path else context.workdir
        if target.is_dir():
            return
        logger.debug("Creating directory %s", target)
        target.mkdir(mode=self.mode, parents=True)


@dataclass(frozen=True)
class WriteFile:
    """Write a text file below the workdir."""

    path: str
    content: str
    only_if_missing: bool = False

    def run(self, context: ExerciseContext) -> None:
        target = context.path(self.path)
        if self.only_if_missing and target.exists():
            return
        logger.debug("Writing %s", target)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.content, encoding="utf-8")


@dataclass(frozen=True)
class FillDir:
    """Populate a directory with decoy files."""

    path: str
    names: tuple[str, ...] = FILENAMES
    content: str = FILLER_TEXT

    def run(self, context: ExerciseContext) -> None:
        target = context.path(self.path)
        for name in self.names:
            (target / name).write_text(self.content, encoding="utf-8")


@dataclass
class SpawnProcess:
    """Start a long-running background process the learner must find."""

    command: tuple[str, ...]
    _process: subprocess.Popen[bytes] | None = field(default=None, init=False, repr=False, compare=False)

    def run(self, context: ExerciseContext) -> None:
        self._process = subprocess.Popen(
            list(self.command),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        logger.info("Spawned %s with pid %d", " ".join(self.command), self._process.pid)
        # Reap the child once the learner kills it, so it leaves the process table.
        threading.Thread(target=self._process.wait, name=f"reap-{self._process.pid}", daemon=True).start()


@dataclass(frozen=True)
class RunAll:
    """Run several actions in order."""

    actions: tuple[Action, ...]

    def run(self, context: ExerciseContext) -> None:
        for action in self.actions:
            action.run(context)


# ------------
# Checks on the typed answer
# ------------


@dataclass(frozen=True)
class AnswerEquals:
    expected: str

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        return answer == self.expected


@dataclass(frozen=True)
class AnswerInteger:
    """Answer parsed as a leading integer, like `wc` output."""

    expected: int

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        return _leading_int(answer) == self.expected


@dataclass(frozen=True)
class AnswerIsUser:
    """Answer names the acting user."""

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        return answer == context.config.user


# ------------
# Checks on the filesystem
# ------------


@dataclass(frozen=True)
class FileContent:
    """File exists and its stripped content matches."""

    path: str
    expected: str

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        target = context.path(self.path)
        return target.is_file() and _read(target).strip() == self.expected


@dataclass(frozen=True)
class Exists:
    path: str

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        return context.path(self.path).exists()


@dataclass(frozen=True)
class Missing:
    """Path does not resolve; a dangling symlink counts as missing."""

    path: str

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        return not context.path(self.path).exists()


@dataclass(frozen=True)
class IsDir:
    path: str

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        return context.path(self.path).is_dir()


@dataclass(frozen=True)
class FilesEqual:
    """A copy exists and has identical content."""

    source: str
    copy: str

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        source = context.path(self.source)
        copy = context.path(self.copy)
        if not (source.is_file() and copy.is_file()):
            return False
        return source.read_bytes() == copy.read_bytes()


@dataclass(frozen=True)
class DirContains:
    """Directory holds every named entry."""

    path: str
    names: tuple[str, ...]

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        target = context.path(self.path)
        return target.is_dir() and all((target / name).exists() for name in self.names)


@dataclass(frozen=True)
class FileSize:
    path: str
    size: int

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        target = context.path(self.path)
        return target.is_file() and target.stat().st_size == self.size


@dataclass(frozen=True)
class TreeCount:
    """Number of non-hidden entries below a directory, at any depth."""

    path: str
    count: int

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        target = context.path(self.path)
        if not target.is_dir():
            return False
        total = 0
        for entry in target.rglob("*"):
            if not any(part.startswith(".") for part in entry.relative_to(target).parts):
                total += 1
        return total == self.count


@dataclass(frozen=True)
class FileLine:
    """Line at a 0-based index matches one of the accepted values."""

    path: str
    line: int
    accepted: tuple[str, ...]

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        target = context.path(self.path)
        if not target.is_file():
            return False
        lines = _read(target).splitlines()
        if self.line >= len(lines):
            return False
        return lines[self.line].strip() in self.accepted


@dataclass(frozen=True)
class FileLines:
    path: str
    expected: tuple[str, ...]

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        target = context.path(self.path)
        return target.is_file() and tuple(_read(target).splitlines()) == self.expected


@dataclass(frozen=True)
class Symlink:
    """Path is a symbolic link whose target resolves."""

    path: str

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        target = context.path(self.path)
        return target.is_symlink() and target.exists()


@dataclass(frozen=True)
class Owner:
    path: str
    user: str

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        target = context.path(self.path)
        return _inspect(lambda: context.inspector.owner(target), target) == self.user


@dataclass(frozen=True)
class Permissions:
    path: str
    accepted: tuple[str, ...]

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        target = context.path(self.path)
        return _inspect(lambda: context.inspector.permissions(target), target) in self.accepted


@dataclass(frozen=True)
class LinkCount:
    path: str
    count: int

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        target = context.path(self.path)
        return _inspect(lambda: context.inspector.link_count(target), target) == self.count


# ------------
# Checks on processes and combinators
# ------------


@dataclass(frozen=True)
class NoProcess:
    """No process with the given command name is running."""

    name: str

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        return self.name not in running_process_names()


@dataclass(frozen=True)
class AllOf:
    checks: tuple[Check, ...]

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        for check in self.checks:
            if not check.verify(context, answer):
                return False
        return True


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def _leading_int(text: str) -> int | None:
    digits = ""
    for char in text.strip():
        if not char.isdigit():
            break
        digits += char
    return int(digits) if digits else None


def _inspect(query: Callable[[], object], target: Path) -> object:
    """Run an inspector query, mapping a failed `stat` to None."""
    if not target.exists():
        return None
    try:
        return query()
    except (subprocess.CalledProcessError, ValueError) as exc:
        logger.warning("Could not inspect %s: %s", target, exc)
        return None


def sequence(actions: Sequence[Action]) -> Action | None:
    """Collapse a list of actions into one, or None when empty."""
    if not actions:
        return None
    if len(actions) == 1:
        return actions[0]
    return RunAll(tuple(actions))
