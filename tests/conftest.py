from __future__ import annotations

import io
import shutil
import sys
from collections.abc import Iterator
from pathlib import Path
from uuid import uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from rich.console import Console  # noqa: E402

from shellhunt.config import TutorialConfig  # noqa: E402
from shellhunt.fileinfo import FileInspector  # noqa: E402
from shellhunt.models import ExerciseContext  # noqa: E402


def _tmp_path_fixture() -> Iterator[Path]:
    """Provide per-test temporary directory path inside the workspace.

    Overrides pytest's builtin ``tmp_path`` so temporary course folders live
    under ``.tmp_pytest/`` in the project checkout.
    """
    base = ROOT / ".tmp_pytest"
    base.mkdir(parents=True, exist_ok=True)
    path = base / str(uuid4())
    path.mkdir(parents=True, exist_ok=False)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        try:
            next(base.iterdir())
        except StopIteration:
            base.rmdir()
        except FileNotFoundError:
            pass


tmp_path = pytest.fixture(name="tmp_path")(_tmp_path_fixture)


class FakeInspector(FileInspector):
    """Inspector answering from dictionaries instead of running `stat`."""

    name = "fake"

    def __init__(self) -> None:
        self.owners: dict[Path, str] = {}
        self.modes: dict[Path, str] = {}
        self.links: dict[Path, int] = {}

    def owner(self, path: Path) -> str:
        return self.owners[path]

    def permissions(self, path: Path) -> str:
        return self.modes[path]

    def link_count(self, path: Path) -> int:
        return self.links[path]


@pytest.fixture
def config(tmp_path: Path) -> TutorialConfig:
    return TutorialConfig(base_path=tmp_path, user="alice", success_delay=0.0)


@pytest.fixture
def inspector() -> FakeInspector:
    return FakeInspector()


@pytest.fixture
def context(config: TutorialConfig, inspector: FakeInspector) -> ExerciseContext:
    config.workdir.mkdir(parents=True, exist_ok=True)
    return ExerciseContext(config=config, inspector=inspector)


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, width=200, highlight=False)


def console_output(console: Console) -> str:
    buffer = console.file
    assert isinstance(buffer, io.StringIO)
    return buffer.getvalue()
