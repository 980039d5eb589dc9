"""Load the declarative exercise sequence from bundled JSON resources."""

from __future__ import annotations

import json
from collections.abc import Callable
from importlib import resources
from pathlib import Path
from typing import Any

from . import actions
from .config import TutorialConfig
from .models import ENTER, Action, Check, Exercise, PromptKind

CONTENT_PACKAGE = "shellhunt.content"
CONTENT_FILE = "exercises.json"

ActionBuilder = Callable[[dict[str, Any]], Action]
CheckBuilder = Callable[[dict[str, Any]], Check]

ACTION_BUILDERS: dict[str, ActionBuilder] = {
    "make_dir": lambda raw: actions.MakeDir(path=str(raw.get("path", "")), mode=int(str(raw.get("mode", "700")), 8)),
    "write_file": lambda raw: actions.WriteFile(
        path=str(raw["path"]),
        content=str(raw["content"]),
        only_if_missing=bool(raw.get("only_if_missing", False)),
    ),
    "fill_dir": lambda raw: actions.FillDir(
        path=str(raw["path"]),
        names=_names(raw["names"]) if "names" in raw else actions.FILENAMES,
        content=str(raw.get("content", actions.FILLER_TEXT)),
    ),
    "spawn_process": lambda raw: actions.SpawnProcess(command=tuple(str(item) for item in raw["command"])),
}

CHECK_BUILDERS: dict[str, CheckBuilder] = {
    "answer_equals": lambda raw: actions.AnswerEquals(expected=str(raw["expected"])),
    "answer_integer": lambda raw: actions.AnswerInteger(expected=int(raw["expected"])),
    "answer_is_user": lambda raw: actions.AnswerIsUser(),
    "file_content": lambda raw: actions.FileContent(path=str(raw["path"]), expected=str(raw["expected"])),
    "exists": lambda raw: actions.Exists(path=str(raw["path"])),
    "missing": lambda raw: actions.Missing(path=str(raw["path"])),
    "is_dir": lambda raw: actions.IsDir(path=str(raw["path"])),
    "files_equal": lambda raw: actions.FilesEqual(source=str(raw["source"]), copy=str(raw["copy"])),
    "dir_contains": lambda raw: actions.DirContains(path=str(raw["path"]), names=_names(raw["names"])),
    "file_size": lambda raw: actions.FileSize(path=str(raw["path"]), size=int(raw["size"])),
    "tree_count": lambda raw: actions.TreeCount(path=str(raw["path"]), count=int(raw["count"])),
    "file_line": lambda raw: actions.FileLine(
        path=str(raw["path"]), line=int(raw["line"]), accepted=tuple(str(item) for item in raw["accepted"])
    ),
    "file_lines": lambda raw: actions.FileLines(
        path=str(raw["path"]), expected=tuple(str(item) for item in raw["expected"])
    ),
    "symlink": lambda raw: actions.Symlink(path=str(raw["path"])),
    "owner": lambda raw: actions.Owner(path=str(raw["path"]), user=str(raw["user"])),
    "permissions": lambda raw: actions.Permissions(
        path=str(raw["path"]), accepted=tuple(str(item) for item in raw["accepted"])
    ),
    "link_count": lambda raw: actions.LinkCount(path=str(raw["path"]), count=int(raw["count"])),
    "no_process": lambda raw: actions.NoProcess(name=str(raw["name"])),
    "all": lambda raw: actions.AllOf(checks=tuple(_check_from_dict(item) for item in raw["checks"])),
}


def _names(raw: Any) -> tuple[str, ...]:
    """Expand a name list; a string like ``"a-z"`` means a letter range."""
    if isinstance(raw, str):
        first, _, last = raw.partition("-")
        if len(first) != 1 or len(last) != 1 or first > last:
            raise ValueError(f"Invalid name range: {raw!r}")
        return tuple(chr(code) for code in range(ord(first), ord(last) + 1))
    return tuple(str(item) for item in raw)


def _action_from_dict(raw: dict[str, Any]) -> Action:
    """Build one setup/teardown action from raw JSON content."""
    kind = str(raw.get("kind", ""))
    builder = ACTION_BUILDERS.get(kind)
    if builder is None:
        raise ValueError(f"Unknown action kind: {kind!r}")
    return builder(raw)


def _check_from_dict(raw: dict[str, Any]) -> Check:
    """Build one check predicate from raw JSON content."""
    kind = str(raw.get("kind", ""))
    builder = CHECK_BUILDERS.get(kind)
    if builder is None:
        raise ValueError(f"Unknown check kind: {kind!r}")
    return builder(raw)


def _actions_from_list(raw: Any) -> Action | None:
    if raw is None:
        return None
    items = raw if isinstance(raw, list) else [raw]
    return actions.sequence([_action_from_dict(item) for item in items])


def _exercise_from_dict(raw: dict[str, Any], values: dict[str, str]) -> Exercise:
    """Build an exercise from raw JSON content."""
    exercise_id = str(raw.get("id", "")).strip()
    if not exercise_id:
        raise ValueError(f"Exercise '{raw.get('title', '<unknown>')}' has no id.")
    if "check" not in raw:
        raise ValueError(f"Exercise '{exercise_id}' has no check.")

    task_raw = raw.get("task", [])
    paragraphs = [task_raw] if isinstance(task_raw, str) else list(task_raw)
    task = "\n\n".join(_fill(str(paragraph).strip(), values) for paragraph in paragraphs)

    prompt_raw = raw.get("prompt")
    prompt: str | PromptKind = ENTER if prompt_raw is None else _fill(str(prompt_raw), values)

    return Exercise(
        id=exercise_id,
        title=str(raw["title"]),
        purpose=_fill(str(raw.get("purpose", "")), values),
        task=task,
        prompt=prompt,
        solution=_fill(str(raw.get("solution", "")), values),
        check=_check_from_dict(raw["check"]),
        setup=_actions_from_list(raw.get("setup")),
        teardown=_actions_from_list(raw.get("teardown")),
    )


def _fill(text: str, values: dict[str, str]) -> str:
    """Substitute ``{project}``-style placeholders."""
    for key, value in values.items():
        text = text.replace("{" + key + "}", value)
    return text


def _placeholder_values(config: TutorialConfig | None) -> dict[str, str]:
    if config is None:
        config = TutorialConfig(base_path=Path.home(), user="")
    return {"project": config.project_subpath, "chaos_url": config.chaos_url}


def _exercises_from_text(text: str, config: TutorialConfig | None) -> list[Exercise]:
    raw = json.loads(text)
    if not isinstance(raw, list):
        raise ValueError("Exercise content root must be a JSON list.")
    values = _placeholder_values(config)
    exercises = [_exercise_from_dict(item, values) for item in raw]
    _validate_unique_ids(exercises)
    return exercises


def load_exercises(config: TutorialConfig | None = None) -> list[Exercise]:
    """Load the bundled exercise sequence in course order."""
    entry = resources.files(CONTENT_PACKAGE).joinpath(CONTENT_FILE)
    return _exercises_from_text(entry.read_text(encoding="utf-8-sig"), config)


def load_exercises_from_path(path: Path, config: TutorialConfig | None = None) -> list[Exercise]:
    """Load exercises from a JSON file for tests/tools."""
    return _exercises_from_text(path.read_text(encoding="utf-8-sig"), config)


def _validate_unique_ids(exercises: list[Exercise]) -> None:
    """Validate that exercise IDs are unique within the sequence."""
    seen: set[str] = set()
    for exercise in exercises:
        if exercise.id in seen:
            raise ValueError(f"Duplicate exercise id: {exercise.id}")
        seen.add(exercise.id)
