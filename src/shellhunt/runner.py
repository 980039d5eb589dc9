"""Linear exercise runner with resume support."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from .models import Exercise, ExerciseContext
from .progress import ProgressLog

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]
SleepFn = Callable[[float], None]

ENTER_TEXT = "Drücken Sie <ENTER>, um die Lösung zu überprüfen:"
WRONG_TEXT = "Leider falsch. Probieren Sie es noch einmal."
CORRECT_TEXT = "Korrekt. Gut gemacht!"
FINISHED_TEXT = "Alle Aufgaben gelöst. Herzlichen Glückwunsch!"
PROGRESS_WIDTH = 70


def progress_bar(total: int, done: int, width: int = PROGRESS_WIDTH) -> str:
    """Render a block progress bar followed by ``done/total``."""
    ratio = 1.0 if total <= 0 else min(max(done / total, 0.0), 1.0)
    filled = int(width * ratio)
    return "█" * filled + "░" * (width - filled) + f" {done}/{total}"


class ExerciseRunner:
    """Runs exercises in order, retrying each until its check passes."""

    def __init__(
        self,
        exercises: Sequence[Exercise],
        context: ExerciseContext,
        progress: ProgressLog,
        console: Console | None = None,
        input_fn: InputFn | None = None,
        sleep_fn: SleepFn = time.sleep,
    ) -> None:
        self.exercises = list(exercises)
        self.context = context
        self.progress = progress
        self.console = console if console is not None else Console(highlight=False)
        self._input = input_fn if input_fn is not None else self.console.input
        self._sleep = sleep_fn

    def resume_index(self, override: int | None = None) -> int:
        """Explicit override wins; otherwise continue after the last logged exercise."""
        if override is not None:
            logger.info("Starting at exercise %d (override)", override)
            return override
        return self.progress.resume_index()

    def run(self, start: int | None = None) -> int:
        """Run every exercise from the resume point to the end."""
        first = self.resume_index(start)
        total = len(self.exercises)
        for index, exercise in enumerate(self.exercises):
            if index < first:
                continue
            self.console.clear()
            self.console.print(progress_bar(total, index))
            self.console.print()
            self.run_exercise(index, exercise)
            self._sleep(self.context.config.success_delay)

        self.console.clear()
        self.console.print(progress_bar(total, total))
        self.console.print()
        self.console.print(Text(FINISHED_TEXT, style="green"))
        return 0

    def run_exercise(self, index: int, exercise: Exercise) -> None:
        """Prepare, present and check one exercise, then log it."""
        exercise.prepare(self.context)
        self.present(exercise)

        attempts = 0
        while True:
            answer = self.ask(exercise)
            attempts += 1
            if exercise.verify(self.context, answer):
                break
            logger.debug("Check failed for %s (attempt %d)", exercise.id, attempts)
            self.console.print()
            self.console.print(Text(WRONG_TEXT, style="red"))
            self.console.print()

        self.console.print()
        self.console.print(Text(CORRECT_TEXT, style="green"))
        self.progress.append(index, self.context.config.user, exercise.title)
        exercise.cleanup(self.context)

    def present(self, exercise: Exercise) -> None:
        """Show title, purpose and task; done once per exercise."""
        self.console.print(Text(exercise.title, style="red"))
        self.console.print()
        self.console.print(Text(exercise.purpose, style="yellow"))
        self.console.print()
        self.console.print(Text(exercise.task))
        self.console.print()

    def ask(self, exercise: Exercise) -> str:
        """Block for one line; confirm prompts discard what was typed."""
        if exercise.asks_for_answer:
            line = self._input(f"[bold]{escape(str(exercise.prompt))}[/bold] ")
            return line.strip()
        self._input(f"[bold]{escape(ENTER_TEXT)}[/bold] ")
        return ""
