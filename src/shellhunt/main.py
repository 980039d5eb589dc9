"""CLI entrypoint for the shell scavenger hunt."""

from __future__ import annotations

import argparse
import logging
import os
import sys

from rich.console import Console
from rich.text import Text

from . import __version__
from .config import DEFAULT_SUCCESS_DELAY, TutorialConfig
from .content_loader import load_exercises
from .fileinfo import UnsupportedPlatformError, detect_inspector
from .models import Exercise, ExerciseContext
from .progress import ProgressLog
from .runner import ExerciseRunner

UNSUPPORTED_OS_TEXT = "Unbekanntes Betriebssystem. Beende..."

logger = logging.getLogger(__name__)


def _start_index(value: str) -> int:
    """argparse type for a non-negative exercise index."""
    try:
        index = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid exercise index: {value!r}") from exc
    if index < 0:
        raise argparse.ArgumentTypeError(f"exercise index must be >= 0, got {index}")
    return index


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shellhunt", description="Interactive Linux shell scavenger hunt")
    parser.add_argument(
        "start",
        nargs="?",
        type=_start_index,
        default=None,
        help="exercise index to start at (default: resume from the progress log)",
    )
    parser.add_argument("--base-path", default=None, help="directory holding the course folder (default: $HOME)")
    parser.add_argument(
        "--delay",
        type=float,
        default=DEFAULT_SUCCESS_DELAY,
        help="seconds to pause after a solved exercise",
    )
    parser.add_argument("--list", action="store_true", help="list exercises and completion state, then exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def run(argv: list[str] | None = None, console: Console | None = None) -> int:
    """Run the CLI application."""
    args = _parser().parse_args(argv)
    _configure_logging(args.verbose)
    console = console if console is not None else Console(highlight=False)

    try:
        inspector = detect_inspector(sys.platform)
    except UnsupportedPlatformError as exc:
        logger.warning("%s", exc)
        console.print(UNSUPPORTED_OS_TEXT)
        return 0

    config = TutorialConfig.from_environment(os.environ, base_path=args.base_path, success_delay=args.delay)
    exercises = load_exercises(config)
    progress = ProgressLog(config.log_file)

    if args.list:
        _list_exercises(exercises, progress, console)
        return 0

    runner = ExerciseRunner(exercises, ExerciseContext(config=config, inspector=inspector), progress, console=console)
    return runner.run(args.start)


def _list_exercises(exercises: list[Exercise], progress: ProgressLog, console: Console) -> None:
    """Print every exercise with a done/open marker."""
    completed = progress.completed_indices()
    width = len(str(max(len(exercises) - 1, 0)))
    for index, exercise in enumerate(exercises):
        marker = "x" if index in completed else " "
        line = Text(f"[{marker}] {index:>{width}} {exercise.title}")
        if index in completed:
            line.stylize("green")
        console.print(line)


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
