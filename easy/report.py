# EASY/easy/report.py

from dataclasses import dataclass
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from easy import console_output as con
from easy.config import APP_TITLE
from easy.runner import RunSummary

STATUS_SUCCEEDED = "succeeded"
STATUS_FAILED = "failed"
STATUS_NOT_RUN = "not run"


@dataclass
class ReportEntry:
    label: str
    success: bool
    status: str
    returncode: Optional[int] = None


def build_report(summary: RunSummary) -> List[ReportEntry]:
    """One entry per selected script. Scripts that never ran count as not succeeded."""
    report = []
    for result in summary.results:
        if not result.ran:
            status = STATUS_NOT_RUN
        elif result.success:
            status = STATUS_SUCCEEDED
        else:
            status = STATUS_FAILED
        report.append(ReportEntry(result.entry.label, result.success, status, result.returncode))
    return report


def render_report(summary: RunSummary, console: Optional[Console] = None) -> List[ReportEntry]:
    """Shows the selected checklist again, ticked where the script succeeded."""
    console = console or con.console
    report = build_report(summary)

    table = Table(title=f"[bold]{APP_TITLE}[/]", caption="Setup results", show_lines=False)
    table.add_column("", justify="center", no_wrap=True)
    table.add_column("Setup script")
    table.add_column("Result")
    styles = {STATUS_SUCCEEDED: "green", STATUS_FAILED: "red", STATUS_NOT_RUN: "yellow"}
    for item in report:
        mark = "[green]\\[x][/]" if item.success else "[red]\\[ ][/]"
        detail = item.status
        if item.status == STATUS_FAILED:
            detail = f"{item.status} (exit status {item.returncode})"
        table.add_row(mark, item.label, f"[{styles[item.status]}]{detail}[/]")
    console.print(table)

    if summary.aborted:
        con.message_box("A setup script failed. The remaining scripts were not run.", style="red")
    else:
        con.message_box("All selected setup scripts have been executed.")
    return report
