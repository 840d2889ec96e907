# EASY/easy/discovery.py

import os
import re
import stat
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from easy.errors import NoScriptsFoundError
from easy.logger_utils import app_logger

SEPARATORS = "_-"
_WORD_START = re.compile(r"(^| )(.)")


@dataclass
class ScriptEntry:
    """One checklist row: a discovered setup script and its display label."""
    filename: str
    path: Path
    label: str
    index: int = 0
    selected: bool = False

    @property
    def is_shell(self) -> bool:
        return self.path.suffix == ".sh"

    @property
    def is_python(self) -> bool:
        return self.path.suffix == ".py"


def matching_suffix(filename: str, suffixes: Sequence[str]):
    """Returns the first suffix the filename ends with, or None."""
    for suffix in suffixes:
        if filename.endswith(suffix) and len(filename) > len(suffix):
            return suffix
    return None


def to_title(filename: str, suffixes: Sequence[str]) -> str:
    """
    Display name for a setup script: 'auto_updates_setup.sh' -> 'Auto Updates'.
    The suffix is removed, separators become spaces and the first letter
    after the start or a space is upper-cased (the rest is left alone).
    """
    suffix = matching_suffix(filename, suffixes)
    base = filename[: -len(suffix)] if suffix else filename
    spaced = base.translate(str.maketrans(SEPARATORS, " " * len(SEPARATORS)))
    return _WORD_START.sub(lambda m: m.group(1) + m.group(2).upper(), spaced)


def _make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    wanted = mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH
    if mode != wanted:
        try:
            os.chmod(path, wanted)
        except OSError as e:
            app_logger.warning(f"Could not mark {path} executable: {e}")


def discover_scripts(
    directory: Path,
    suffixes: Sequence[str],
    sort_mode: str = "alphabetical",
    default_selected: bool = False
) -> List[ScriptEntry]:
    """
    Lists the setup scripts in directory as checklist entries.

    Entries come back ordered by label ("alphabetical") or by filename, the
    way a shell glob lists them ("discovery"), and are numbered from 1 in
    that order. Raises NoScriptsFoundError when nothing matches.
    """
    directory = Path(directory)
    entries: List[ScriptEntry] = []
    if directory.is_dir():
        for path in sorted(directory.iterdir(), key=lambda p: p.name):
            if not path.is_file() or path.name.startswith(("_", ".")):
                continue
            if matching_suffix(path.name, suffixes) is None:
                continue
            if path.suffix == ".sh":
                _make_executable(path)
            entries.append(ScriptEntry(
                filename=path.name,
                path=path,
                label=to_title(path.name, suffixes),
                selected=default_selected,
            ))

    if not entries:
        app_logger.error(f"No setup scripts matching {list(suffixes)} in {directory}")
        raise NoScriptsFoundError("No setup scripts found in the directory. Exiting.")

    if sort_mode == "alphabetical":
        entries.sort(key=lambda e: e.label)
    for number, entry in enumerate(entries, start=1):
        entry.index = number

    app_logger.info(f"Discovered {len(entries)} setup script(s): {', '.join(e.filename for e in entries)}")
    return entries


def build_command(entry: ScriptEntry, trace: bool = False) -> List[str]:
    """Command line that runs the entry; shell scripts can be traced with bash -x."""
    if entry.is_python:
        return [sys.executable, str(entry.path)]
    if entry.is_shell and trace:
        return ["bash", "-x", str(entry.path)]
    return [str(entry.path)]


def count_script_lines(path: Path) -> int:
    """Non-blank, non-comment lines: the denominator of the progress gauge."""
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        app_logger.warning(f"Could not read {path} to size the gauge: {e}")
        return 0
    return sum(
        1 for line in text.splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    )
