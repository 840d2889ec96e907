# EASY/easy/runner.py

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from easy import console_output as con
from easy.discovery import ScriptEntry
from easy.logger_utils import app_logger
from easy.progress import ProgressReporter


@dataclass
class ScriptResult:
    entry: ScriptEntry
    returncode: Optional[int] = None

    @property
    def ran(self) -> bool:
        return self.returncode is not None

    @property
    def success(self) -> bool:
        return self.returncode == 0


@dataclass
class RunSummary:
    results: List[ScriptResult] = field(default_factory=list)
    aborted: bool = False

    @property
    def failed(self) -> List[ScriptResult]:
        return [r for r in self.results if r.ran and not r.success]

    @property
    def all_succeeded(self) -> bool:
        return all(r.success for r in self.results)


def run_selected(
    entries: List[ScriptEntry],
    settings: Dict[str, Any],
    reporter: ProgressReporter,
) -> RunSummary:
    """
    Runs the selected entries one at a time, in the given order.

    With continue_on_failure a non-zero exit status is recorded and the next
    entry still runs. Otherwise the loop stops at the first failure and the
    remaining entries are recorded as not run.
    """
    summary = RunSummary(results=[ScriptResult(entry) for entry in entries])
    continue_on_failure = settings.get("continue_on_failure", True)

    for position, result in enumerate(summary.results):
        entry = result.entry
        if settings.get("clear_between", True):
            con.clear_screen()

        if settings.get("confirm_each", False) and not con.confirm_action(f"Run {entry.label}?", default=True):
            app_logger.info(f"User skipped {entry.filename}")
            con.print_warning(f"Skipping {entry.label}.")
            continue

        result.returncode = reporter.run(entry)

        if not result.success:
            app_logger.warning(f"{entry.filename} failed with exit status {result.returncode}")
            if not continue_on_failure:
                remaining = [r.entry.label for r in summary.results[position + 1:]]
                if remaining:
                    con.print_error(f"{entry.label} failed; not running: {', '.join(remaining)}.")
                else:
                    con.print_error(f"{entry.label} failed.")
                summary.aborted = True
                break

        if settings.get("pause_after_each", False):
            con.ask_question("Press Enter to continue...", default="")

    return summary
