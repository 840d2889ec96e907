# EASY/easy/app.py

from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console

from easy import console_output as con
from easy.discovery import discover_scripts
from easy.logger_utils import app_logger
from easy.main_menu import apply_flags, prompt_selection
from easy.progress import make_reporter
from easy.report import render_report
from easy.runner import run_selected
from easy.selection import selected_entries


def run_app(settings: Dict[str, Any], script_dir: Path, console: Optional[Console] = None) -> int:
    """
    Checklist discovery, selection, sequential execution and the final
    report. Returns the process exit status.
    """
    entries = discover_scripts(
        script_dir,
        settings["script_suffixes"],
        sort_mode=settings["sort_mode"],
        default_selected=settings.get("default_selected", False),
    )

    selection = prompt_selection(entries, settings)
    if selection.empty:
        app_logger.info("No options selected.")
        con.message_box("No options selected. Exiting.")
        return 0

    settings = apply_flags(selection, settings)
    to_run = selected_entries(entries, selection)
    reporter = make_reporter(settings["progress_mode"], settings, console)
    app_logger.info(f"Running {len(to_run)} setup script(s) with progress mode '{settings['progress_mode']}'")

    summary = run_selected(to_run, settings, reporter)

    if settings.get("clear_between", True):
        con.clear_screen()
    render_report(summary, console)
    app_logger.info(
        "Run finished: " + ", ".join(f"{r.entry.filename}={r.returncode}" for r in summary.results)
    )
    return 1 if summary.aborted else 0
