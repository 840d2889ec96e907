# EASY/easy/progress.py

"""
Progress reporters: each one runs a single setup script as a child process
and shows its progress in a different way. All of them return the child's
exit status; none of them interrupts the child.
"""

import os
import shutil
import subprocess
import tempfile
import threading
import time
from collections import deque
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.rule import Rule
from rich.text import Text

from easy import console_output as con
from easy.config import EXIT_NOT_EXECUTABLE
from easy.discovery import ScriptEntry, build_command, count_script_lines
from easy.logger_utils import app_logger

TRACE_PREFIX = "+"


def gauge_percent(seen: int, total: int) -> int:
    """Percentage shown while a script runs; held at 99 until the child exits."""
    if total <= 0:
        return 0
    return min(99, int(seen * 100 / total))


def spinner_triggered(line: str, triggers: Sequence[str]) -> bool:
    """True when an output line mentions one of the long-running commands."""
    return any(trigger in line for trigger in triggers)


def is_trace_line(line: str) -> bool:
    """bash -x writes every executed command prefixed with '+' (one per nesting level)."""
    return line.startswith(TRACE_PREFIX)


class ProgressTracker:
    """Line counter and ring buffer shared between the child reader and the display loop."""

    def __init__(self, keep_lines: int = 10, counts: Optional[Callable[[str], bool]] = None):
        self._lock = threading.Lock()
        self._buffer = deque(maxlen=keep_lines)
        self._counts = counts
        self._lines_seen = 0
        self.stop_event = threading.Event()

    def add_line(self, line: str) -> None:
        with self._lock:
            self._buffer.append(line)
            if self._counts is None or self._counts(line):
                self._lines_seen += 1

    @property
    def lines_seen(self) -> int:
        with self._lock:
            return self._lines_seen

    def tail(self) -> List[str]:
        with self._lock:
            return list(self._buffer)

    def wait(self, interval: float) -> bool:
        """Sleeps for one tick; returns True if the tracker was stopped meanwhile."""
        return self.stop_event.wait(interval)


class OutputFollower:
    """Reads complete lines appended to a file since the previous poll."""

    def __init__(self, path: Path, tracker: ProgressTracker):
        self._fh = open(path, "r", encoding="utf-8", errors="replace")
        self._pending = ""
        self._tracker = tracker

    def poll(self) -> List[str]:
        chunk = self._fh.read()
        if not chunk:
            return []
        lines = (self._pending + chunk).split("\n")
        self._pending = lines.pop()
        for line in lines:
            self._tracker.add_line(line)
        return lines

    def flush(self) -> List[str]:
        lines = self.poll()
        if self._pending:
            self._tracker.add_line(self._pending)
            lines.append(self._pending)
            self._pending = ""
        return lines

    def close(self) -> None:
        self._fh.close()


def _child_env() -> Dict[str, str]:
    env = os.environ.copy()
    # Python payloads write to a file or pipe here; keep their output line by line.
    env["PYTHONUNBUFFERED"] = "1"
    return env


class ProgressReporter:
    """Base reporter. Subclasses implement _execute(entry) -> exit status."""

    mode = ""
    trace = False

    def __init__(self, settings: Dict[str, Any], console: Optional[Console] = None):
        self.settings = settings
        self.console = console or con.console
        self.poll_interval = float(settings.get("poll_interval", 0.5))

    def command_for(self, entry: ScriptEntry) -> List[str]:
        return build_command(entry, trace=self.trace)

    def run(self, entry: ScriptEntry) -> int:
        self.console.print(Rule(f"[bold cyan]Running {entry.label}...[/]", style="cyan"))
        app_logger.info(f"Running {entry.filename} with the '{self.mode}' reporter")
        try:
            returncode = self._execute(entry)
        except OSError as e:
            app_logger.error(f"Could not start {entry.path}: {e}")
            con.print_error(f"Could not start {entry.filename}: {e}")
            returncode = EXIT_NOT_EXECUTABLE
        outcome = "[green]completed[/]" if returncode == 0 else f"[red]failed (exit status {returncode})[/]"
        self.console.print(Rule(f"{entry.label} {outcome}.", style="cyan"))
        app_logger.info(f"{entry.filename} finished with exit status {returncode}")
        return returncode

    def _execute(self, entry: ScriptEntry) -> int:
        raise NotImplementedError

    def _run_to_file(self, entry: ScriptEntry, tracker: ProgressTracker,
                     on_tick: Callable[[List[str]], None]) -> int:
        """
        Runs the child with stdout/stderr going to a fresh temp file and calls
        on_tick with the new lines every poll_interval until the child exits.
        """
        fd, tmp_name = tempfile.mkstemp(prefix="easy_", suffix=".log")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w") as out:
                proc = subprocess.Popen(
                    self.command_for(entry),
                    stdout=out,
                    stderr=subprocess.STDOUT,
                    cwd=str(entry.path.parent),
                    env=_child_env(),
                )
            follower = OutputFollower(tmp_path, tracker)
            try:
                while proc.poll() is None:
                    on_tick(follower.poll())
                    tracker.wait(self.poll_interval)
                on_tick(follower.flush())
            finally:
                follower.close()
                tracker.stop_event.set()
            return proc.returncode
        finally:
            tmp_path.unlink(missing_ok=True)


class PassthroughReporter(ProgressReporter):
    """The child writes straight to the terminal."""

    mode = "passthrough"

    def _execute(self, entry: ScriptEntry) -> int:
        return subprocess.run(self.command_for(entry), cwd=str(entry.path.parent)).returncode


class SilentReporter(ProgressReporter):
    """
    Output is hidden. A spinner is shown for a fixed time whenever the traced
    output mentions one of the configured long-running commands.
    """

    mode = "silent"
    trace = True

    def __init__(self, settings: Dict[str, Any], console: Optional[Console] = None):
        super().__init__(settings, console)
        self.triggers = list(settings.get("spinner_triggers", []))
        self.duration = float(settings.get("spinner_duration", 3.0))
        self.spins = 0

    def _execute(self, entry: ScriptEntry) -> int:
        status = self.console.status(f"[green]{entry.label}: working...[/]", spinner="dots")
        state = {"active": False, "until": 0.0}

        def on_tick(new_lines: List[str]) -> None:
            now = time.monotonic()
            if any(spinner_triggered(line, self.triggers) for line in new_lines):
                state["until"] = now + self.duration
                if not state["active"]:
                    status.start()
                    state["active"] = True
                    self.spins += 1
            elif state["active"] and now >= state["until"]:
                status.stop()
                state["active"] = False

        try:
            return self._run_to_file(entry, ProgressTracker(), on_tick)
        finally:
            if state["active"]:
                status.stop()


class GaugeReporter(ProgressReporter):
    """Percentage gauge: trace lines seen / script lines that can execute."""

    mode = "gauge"
    trace = True

    def _execute(self, entry: ScriptEntry) -> int:
        total = count_script_lines(entry.path)
        counts = is_trace_line if entry.is_shell else None
        tracker = ProgressTracker(counts=counts)
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self.console,
            transient=False,
        )
        with progress:
            task = progress.add_task(entry.label, total=100)

            def on_tick(new_lines: List[str]) -> None:
                progress.update(task, completed=gauge_percent(tracker.lines_seen, total))

            returncode = self._run_to_file(entry, tracker, on_tick)
            progress.update(task, completed=100)
        return returncode


def _tail_panel(title: str, lines: List[str], height: int) -> Panel:
    body = Text("\n".join(lines[-height:]), no_wrap=True, overflow="ellipsis")
    return Panel(body, title=f"[bold]{title}[/]", border_style="cyan", height=height + 2)


class TailReporter(ProgressReporter):
    """Live panel with the last tail_lines lines of the accumulated output."""

    mode = "tail"

    def __init__(self, settings: Dict[str, Any], console: Optional[Console] = None):
        super().__init__(settings, console)
        self.tail_lines = int(settings.get("tail_lines", 10))

    def _execute(self, entry: ScriptEntry) -> int:
        tracker = ProgressTracker(keep_lines=self.tail_lines)
        with Live(_tail_panel(entry.label, [], self.tail_lines), console=self.console,
                  refresh_per_second=4, transient=False) as live:

            def on_tick(new_lines: List[str]) -> None:
                if new_lines:
                    live.update(_tail_panel(entry.label, tracker.tail(), self.tail_lines))

            return self._run_to_file(entry, tracker, on_tick)


class FifoReporter(ProgressReporter):
    """Streams the child's output through a named pipe into a live panel."""

    mode = "fifo"

    def __init__(self, settings: Dict[str, Any], console: Optional[Console] = None):
        super().__init__(settings, console)
        self.tail_lines = int(settings.get("tail_lines", 10))

    @staticmethod
    def _drain(fifo: Path, tracker: ProgressTracker) -> None:
        # open() blocks until the writer side is opened.
        with open(fifo, "r", encoding="utf-8", errors="replace") as reader:
            for line in reader:
                tracker.add_line(line.rstrip("\n"))

    def _execute(self, entry: ScriptEntry) -> int:
        tracker = ProgressTracker(keep_lines=self.tail_lines)
        fifo_dir = Path(tempfile.mkdtemp(prefix="easy_fifo_"))
        fifo = fifo_dir / "output"
        try:
            os.mkfifo(fifo)
            reader = threading.Thread(target=self._drain, args=(fifo, tracker), daemon=True)
            reader.start()
            with open(fifo, "w") as writer:
                proc = subprocess.Popen(
                    self.command_for(entry),
                    stdout=writer,
                    stderr=subprocess.STDOUT,
                    cwd=str(entry.path.parent),
                    env=_child_env(),
                )
            with Live(_tail_panel(entry.label, [], self.tail_lines), console=self.console,
                      refresh_per_second=4, transient=False) as live:
                while proc.poll() is None:
                    live.update(_tail_panel(entry.label, tracker.tail(), self.tail_lines))
                    tracker.wait(self.poll_interval)
                # A background process the script left behind may hold the pipe open.
                reader.join(timeout=max(1.0, self.poll_interval * 4))
                tracker.stop_event.set()
                live.update(_tail_panel(entry.label, tracker.tail(), self.tail_lines))
            return proc.returncode
        finally:
            shutil.rmtree(fifo_dir, ignore_errors=True)


REPORTERS = {
    PassthroughReporter.mode: PassthroughReporter,
    SilentReporter.mode: SilentReporter,
    GaugeReporter.mode: GaugeReporter,
    TailReporter.mode: TailReporter,
    FifoReporter.mode: FifoReporter,
}


def make_reporter(mode: str, settings: Dict[str, Any], console: Optional[Console] = None) -> ProgressReporter:
    """Reporter instance for one of the PROGRESS_MODES."""
    try:
        reporter_cls = REPORTERS[mode]
    except KeyError:
        raise ValueError(f"Unknown progress mode '{mode}'") from None
    return reporter_cls(settings, console)
