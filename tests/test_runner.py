from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from conftest import console_output
from rich.console import Console

from shellhunt.models import ENTER, Exercise, ExerciseContext
from shellhunt.progress import ProgressLog
from shellhunt.runner import (
    CORRECT_TEXT,
    ENTER_TEXT,
    FINISHED_TEXT,
    WRONG_TEXT,
    ExerciseRunner,
    progress_bar,
)


@dataclass
class Recorder:
    events: list[str] = field(default_factory=list)


@dataclass
class RecordingAction:
    recorder: Recorder
    label: str

    def run(self, context: ExerciseContext) -> None:
        self.recorder.events.append(self.label)


@dataclass
class ScriptedCheck:
    """Fails a fixed number of times, then passes; records every answer."""

    recorder: Recorder
    label: str
    failures: int = 0
    answers: list[str] = field(default_factory=list)

    def verify(self, context: ExerciseContext, answer: str) -> bool:
        self.recorder.events.append(self.label)
        self.answers.append(answer)
        if self.failures > 0:
            self.failures -= 1
            return False
        return True


def _exercise(recorder: Recorder, index: int, *, prompt=ENTER, failures: int = 0, teardown: bool = False) -> Exercise:
    return Exercise(
        id=f"ex-{index}",
        title=f"Title {index}",
        purpose=f"Purpose {index}",
        task=f"Task {index}",
        prompt=prompt,
        solution="",
        check=ScriptedCheck(recorder, f"check-{index}", failures=failures),
        setup=RecordingAction(recorder, f"setup-{index}"),
        teardown=RecordingAction(recorder, f"teardown-{index}") if teardown else None,
    )


class Prompts:
    def __init__(self, replies: list[str], recorder: Recorder | None = None) -> None:
        self.replies = iter(replies)
        self.seen: list[str] = []
        self.recorder = recorder

    def __call__(self, prompt: str) -> str:
        self.seen.append(prompt)
        if self.recorder is not None:
            self.recorder.events.append("prompt")
        return next(self.replies)


def _runner(
    exercises: list[Exercise],
    context: ExerciseContext,
    console: Console,
    prompts: Prompts,
    sleeps: list[float] | None = None,
) -> ExerciseRunner:
    sleeps = sleeps if sleeps is not None else []
    return ExerciseRunner(
        exercises,
        context,
        ProgressLog(context.config.log_file),
        console=console,
        input_fn=prompts,
        sleep_fn=sleeps.append,
    )


def test_progress_bar_rendering() -> None:
    assert progress_bar(4, 1, width=8) == "██░░░░░░ 1/4"
    assert progress_bar(4, 4, width=8) == "████████ 4/4"
    assert progress_bar(0, 0, width=4) == "████ 0/0"


def test_first_run_creates_log_with_first_entry(context: ExerciseContext, console: Console) -> None:
    recorder = Recorder()
    exercises = [_exercise(recorder, 0)]
    prompts = Prompts(["whatever"], recorder)
    sleeps: list[float] = []

    code = _runner(exercises, context, console, prompts, sleeps).run()

    assert code == 0
    assert recorder.events == ["setup-0", "prompt", "check-0"]
    assert ENTER_TEXT in prompts.seen[0]
    lines = context.config.log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    assert lines[0].startswith("0\talice\t'Title 0'\t")
    assert sleeps == [0.0]
    output = console_output(console)
    assert CORRECT_TEXT in output
    assert FINISHED_TEXT in output


def test_setup_runs_before_task_is_shown(context: ExerciseContext, console: Console) -> None:
    recorder = Recorder()
    exercise = _exercise(recorder, 0)

    def setup_checks_console(ctx: ExerciseContext) -> None:
        assert "Task 0" not in console_output(console)
        recorder.events.append("setup-0")

    exercise.setup.run = setup_checks_console  # type: ignore[union-attr, method-assign]
    _runner([exercise], context, console, Prompts([""])).run()
    assert recorder.events[0] == "setup-0"
    assert "Task 0" in console_output(console)


def test_confirm_prompt_discards_input(context: ExerciseContext, console: Console) -> None:
    recorder = Recorder()
    exercise = _exercise(recorder, 0)
    _runner([exercise], context, console, Prompts(["  typed text  "])).run()
    assert exercise.check.answers == [""]  # type: ignore[attr-defined]


def test_literal_prompt_passes_trimmed_answer(context: ExerciseContext, console: Console) -> None:
    recorder = Recorder()
    exercise = _exercise(recorder, 0, prompt="Which option?")
    prompts = Prompts(["  ls -t \n"])
    _runner([exercise], context, console, prompts).run()
    assert "Which option?" in prompts.seen[0]
    assert exercise.check.answers == ["ls -t"]  # type: ignore[attr-defined]


def test_failed_check_retries_prompt_without_setup_or_task(context: ExerciseContext, console: Console) -> None:
    recorder = Recorder()
    exercise = _exercise(recorder, 0, prompt="Answer?", failures=2)
    prompts = Prompts(["a", "b", "c"], recorder)

    _runner([exercise], context, console, prompts).run()

    assert recorder.events == ["setup-0", "prompt", "check-0", "prompt", "check-0", "prompt", "check-0"]
    assert exercise.check.answers == ["a", "b", "c"]  # type: ignore[attr-defined]
    output = console_output(console)
    assert output.count("Task 0") == 1
    assert output.count(WRONG_TEXT) == 2
    assert output.count(CORRECT_TEXT) == 1
    assert len(context.config.log_file.read_text(encoding="utf-8").splitlines()) == 1


def test_resume_skips_logged_exercises(context: ExerciseContext, console: Console) -> None:
    context.config.log_file.write_text("3\t alice\t'X'\t2026-01-01 00:00:00 +0000\n", encoding="utf-8")
    recorder = Recorder()
    exercises = [_exercise(recorder, index) for index in range(6)]

    _runner(exercises, context, console, Prompts(["", ""])).run()

    assert recorder.events == ["setup-4", "check-4", "setup-5", "check-5"]
    lines = context.config.log_file.read_text(encoding="utf-8").splitlines()
    assert [line.split("\t")[0] for line in lines] == ["3", "4", "5"]


def test_override_bypasses_log(context: ExerciseContext, console: Console) -> None:
    context.config.log_file.write_text("garbage that would not parse\n", encoding="utf-8")
    recorder = Recorder()
    exercises = [_exercise(recorder, index) for index in range(3)]

    _runner(exercises, context, console, Prompts([""])).run(start=2)

    assert recorder.events == ["setup-2", "check-2"]


def test_override_zero_reruns_everything(context: ExerciseContext, console: Console) -> None:
    context.config.log_file.write_text("1\talice\t'Title 1'\tt\n", encoding="utf-8")
    recorder = Recorder()
    exercises = [_exercise(recorder, index) for index in range(2)]

    _runner(exercises, context, console, Prompts(["", ""])).run(start=0)

    assert recorder.events == ["setup-0", "check-0", "setup-1", "check-1"]


def test_start_past_end_only_shows_completion(context: ExerciseContext, console: Console) -> None:
    recorder = Recorder()
    exercises = [_exercise(recorder, index) for index in range(2)]

    code = _runner(exercises, context, console, Prompts([])).run(start=5)

    assert code == 0
    assert recorder.events == []
    output = console_output(console)
    assert progress_bar(2, 2) in output
    assert FINISHED_TEXT in output


def test_teardown_runs_after_logging(context: ExerciseContext, console: Console) -> None:
    recorder = Recorder()
    log_path: Path = context.config.log_file
    exercise = _exercise(recorder, 0, teardown=True)

    def teardown_sees_log(ctx: ExerciseContext) -> None:
        assert log_path.is_file()
        recorder.events.append("teardown-0")

    exercise.teardown.run = teardown_sees_log  # type: ignore[union-attr, method-assign]
    _runner([exercise], context, console, Prompts([""])).run()
    assert recorder.events == ["setup-0", "check-0", "teardown-0"]


def test_progress_bar_shown_per_exercise(context: ExerciseContext, console: Console) -> None:
    recorder = Recorder()
    exercises = [_exercise(recorder, index) for index in range(2)]
    _runner(exercises, context, console, Prompts(["", ""])).run()
    output = console_output(console)
    assert progress_bar(2, 0) in output
    assert progress_bar(2, 1) in output
    assert progress_bar(2, 2) in output
