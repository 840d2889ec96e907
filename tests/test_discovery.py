import os
import sys

import pytest

from easy.config import SCRIPT_SUFFIXES
from easy.discovery import build_command, count_script_lines, discover_scripts, to_title
from easy.errors import EnvironmentFatalError, NoScriptsFoundError


@pytest.mark.parametrize("filename, expected", [
    ("immich_setup.sh", "Immich"),
    ("auto_updates_setup.sh", "Auto Updates"),
    ("nextcloud_setup.py", "Nextcloud"),
    ("home-assistant_setup.sh", "Home Assistant"),
    ("pi_hole_v2_setup.sh", "Pi Hole V2"),
    ("alreadyCamel_setup.sh", "AlreadyCamel"),
])
def test_to_title_strips_suffix_and_capitalizes_words(filename, expected):
    assert to_title(filename, SCRIPT_SUFFIXES) == expected


def test_to_title_is_deterministic():
    assert to_title("auto_updates_setup.sh", SCRIPT_SUFFIXES) == to_title("auto_updates_setup.sh", SCRIPT_SUFFIXES)


def test_discover_sorts_by_label_and_numbers_from_one(make_script):
    make_script("zulu_setup.sh")
    make_script("auto_updates_setup.sh")
    make_script("immich_setup.sh")
    make_script("notes.txt")

    entries = discover_scripts(make_script.dir, SCRIPT_SUFFIXES)

    assert [e.label for e in entries] == ["Auto Updates", "Immich", "Zulu"]
    assert [e.index for e in entries] == [1, 2, 3]
    assert all(not e.selected for e in entries)


def test_discover_keeps_filename_order_in_discovery_mode(make_script):
    make_script("b_first_setup.sh")
    make_script("a_second_setup.sh")

    entries = discover_scripts(make_script.dir, ["_setup.sh"], sort_mode="discovery", default_selected=True)

    assert [e.filename for e in entries] == ["a_second_setup.sh", "b_first_setup.sh"]
    assert all(e.selected for e in entries)


def test_discover_marks_shell_scripts_executable(make_script):
    path = make_script("immich_setup.sh")
    path.chmod(0o644)

    discover_scripts(make_script.dir, SCRIPT_SUFFIXES)

    assert os.access(path, os.X_OK)


def test_discover_with_no_matches_is_fatal(make_script):
    make_script("readme.md")
    with pytest.raises(NoScriptsFoundError) as excinfo:
        discover_scripts(make_script.dir, SCRIPT_SUFFIXES)
    assert isinstance(excinfo.value, EnvironmentFatalError)
    assert "No setup scripts found" in str(excinfo.value)


def test_discover_missing_directory_is_fatal(tmp_path):
    with pytest.raises(NoScriptsFoundError):
        discover_scripts(tmp_path / "nope", SCRIPT_SUFFIXES)


def test_build_command(make_script):
    make_script("a_setup.sh")
    py = make_script.dir / "b_setup.py"
    py.write_text("print('hi')\n")
    shell_entry, python_entry = discover_scripts(make_script.dir, SCRIPT_SUFFIXES)

    assert build_command(shell_entry) == [str(shell_entry.path)]
    assert build_command(shell_entry, trace=True) == ["bash", "-x", str(shell_entry.path)]
    assert build_command(python_entry, trace=True) == [sys.executable, str(python_entry.path)]


def test_count_script_lines_skips_blanks_and_comments(tmp_path):
    script = tmp_path / "x_setup.sh"
    script.write_text("#!/bin/sh\n\n# comment\necho one\n   # indented comment\necho two\n\n")
    assert count_script_lines(script) == 2
    assert count_script_lines(tmp_path / "missing.sh") == 0
