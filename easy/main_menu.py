# EASY/easy/main_menu.py

import copy
from typing import Any, Dict, List

from rich.table import Table

from easy import console_output as con
from easy.config import ADVANCED_TOKEN, APP_TITLE, BACKTITLE, PROGRESS_MODES, SHOW_OUTPUT_TOKEN, SPECIAL_TOKENS
from easy.discovery import ScriptEntry
from easy.errors import SelectionError
from easy.logger_utils import app_logger
from easy.selection import Selection, parse_selection


def special_tokens_for(settings: Dict[str, Any]) -> Dict[str, str]:
    """Non-item rows shown under the scripts, if enabled."""
    return dict(SPECIAL_TOKENS) if settings.get("show_advanced_toggle", True) else {}


def display_checklist(entries: List[ScriptEntry], settings: Dict[str, Any]) -> None:
    """Prints the checklist of discovered setup scripts."""
    con.print_step(BACKTITLE, char="*")
    table = Table(title=f"[bold]{APP_TITLE}[/]", show_header=False, box=None, padding=(0, 1))
    table.add_column(style="cyan", justify="right")
    table.add_column(justify="center")
    table.add_column()
    for entry in entries:
        mark = "\\[x]" if entry.selected else "\\[ ]"
        table.add_row(f"{entry.index}.", mark, entry.label)
    for token, description in special_tokens_for(settings).items():
        table.add_row(f"{token}.", "", f"[dim]{description}[/]")
    con.console.print(table)
    con.print_rule()
    con.print_info("Select the setup scripts you want to run (they will execute from top to bottom).", icon=False)
    con.print_info("[dim]Enter the numbers separated by spaces; leave empty to exit.[/]", icon=False)


def prompt_selection(entries: List[ScriptEntry], settings: Dict[str, Any]) -> Selection:
    """Shows the checklist and asks until the answer parses."""
    specials = special_tokens_for(settings)
    default = " ".join(str(e.index) for e in entries if e.selected)
    while True:
        display_checklist(entries, settings)
        answer = con.ask_question("Your selection", default=default)
        try:
            selection = parse_selection(answer or "", len(entries), specials)
        except SelectionError as e:
            con.print_warning(f"{e} Please try again.")
            continue
        app_logger.info(f"Checklist answer '{answer}' -> indices {selection.indices}, flags {sorted(selection.flags)}")
        return selection


def advanced_options_menu(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Secondary menu for output and failure handling. Returns an updated copy."""
    updated = copy.deepcopy(settings)
    con.print_step("Advanced options", char="-")

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="cyan", justify="right")
    table.add_column()
    for mode, description in PROGRESS_MODES.items():
        table.add_row(mode, description)
    con.console.print(table)

    updated["progress_mode"] = con.ask_question(
        "Progress display", default=settings["progress_mode"], choices=list(PROGRESS_MODES)
    )
    updated["continue_on_failure"] = con.confirm_action(
        "Keep going when a setup script fails?", default=settings.get("continue_on_failure", True)
    )
    updated["confirm_each"] = con.confirm_action(
        "Ask before running each setup script?", default=settings.get("confirm_each", False)
    )
    app_logger.info(
        f"Advanced options: progress_mode={updated['progress_mode']}, "
        f"continue_on_failure={updated['continue_on_failure']}, confirm_each={updated['confirm_each']}"
    )
    return updated


def apply_flags(selection: Selection, settings: Dict[str, Any]) -> Dict[str, Any]:
    """Applies the special checklist rows the user ticked."""
    if ADVANCED_TOKEN in selection.flags:
        settings = advanced_options_menu(settings)
    if SHOW_OUTPUT_TOKEN in selection.flags:
        settings = dict(settings, progress_mode="passthrough")
    return settings
