"""Shared fixtures: a recording console, test settings and a setup-script factory."""

import copy
import io
import stat
import sys
from pathlib import Path

import pytest
from rich.console import Console

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from easy import console_output as con  # noqa: E402
from easy.config import DEFAULT_SETTINGS  # noqa: E402


@pytest.fixture(autouse=True)
def record_console(monkeypatch):
    """Routes all rich output to a buffer; read it back with record_console.file.getvalue()."""
    console = Console(file=io.StringIO(), width=120, force_terminal=False, highlight=False)
    monkeypatch.setattr(con, "console", console)
    return console


@pytest.fixture
def settings():
    test_settings = copy.deepcopy(DEFAULT_SETTINGS)
    test_settings.update(
        clear_between=False,
        pause_after_each=False,
        poll_interval=0.05,
        spinner_duration=0.1,
    )
    return test_settings


@pytest.fixture
def make_script(tmp_path):
    """Writes an executable /bin/sh setup script into tmp_path/scripts."""
    scripts_dir = tmp_path / "scripts"
    scripts_dir.mkdir()

    def _make(name: str, body: str = "exit 0", shebang: str = "#!/bin/sh") -> Path:
        path = scripts_dir / name
        path.write_text(f"{shebang}\n{body}\n" if shebang else f"{body}\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR)
        return path

    _make.dir = scripts_dir
    return _make


@pytest.fixture
def answers(monkeypatch):
    """Feeds prepared answers to console_output.ask_question, in order."""
    queue = []

    def _ask(prompt_message, default=None, password=False, choices=None):
        if not queue:
            raise AssertionError(f"Unexpected prompt: {prompt_message}")
        return queue.pop(0)

    monkeypatch.setattr(con, "ask_question", _ask)
    return queue
