"""Core domain models for the exercise sequence."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

from .config import TutorialConfig
from .fileinfo import FileInspector


class PromptKind(Enum):
    """Prompt variants that are not a literal question."""

    ENTER = "enter"


ENTER = PromptKind.ENTER


@dataclass(frozen=True)
class ExerciseContext:
    """Everything a setup action or check may consult."""

    config: TutorialConfig
    inspector: FileInspector

    @property
    def workdir(self) -> Path:
        return self.config.workdir

    def path(self, relative: str) -> Path:
        """Resolve a path inside the tutorial working directory."""
        return self.config.workdir / relative


class Action(Protocol):
    """Side effect run before (setup) or after (teardown) an exercise."""

    def run(self, context: ExerciseContext) -> None: ...


class Check(Protocol):
    """Predicate deciding whether the learner solved an exercise."""

    def verify(self, context: ExerciseContext, answer: str) -> bool: ...


@dataclass(frozen=True)
class Exercise:
    """One instructional unit with setup, prompt, check and teardown."""

    id: str
    title: str
    purpose: str
    task: str
    prompt: str | PromptKind
    solution: str
    check: Check
    setup: Action | None = None
    teardown: Action | None = None

    @property
    def asks_for_answer(self) -> bool:
        return self.prompt is not ENTER

    def prepare(self, context: ExerciseContext) -> None:
        """Run the setup action, if any."""
        if self.setup is not None:
            self.setup.run(context)

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        """Evaluate the check against the current state and trimmed answer."""
        return bool(self.check.verify(context, answer))

    def cleanup(self, context: ExerciseContext) -> None:
        """Run the teardown action, if any."""
        if self.teardown is not None:
            self.teardown.run(context)
