import shutil
import threading

import pytest

from easy.config import EXIT_NOT_EXECUTABLE
from easy.discovery import discover_scripts
from easy.progress import (
    FifoReporter,
    GaugeReporter,
    PassthroughReporter,
    ProgressTracker,
    SilentReporter,
    TailReporter,
    gauge_percent,
    is_trace_line,
    make_reporter,
    spinner_triggered,
)

needs_bash = pytest.mark.skipif(shutil.which("bash") is None, reason="bash is required for traced runs")


def _only_entry(make_script, name, body, **kwargs):
    make_script(name, body, **kwargs)
    (entry,) = discover_scripts(make_script.dir, ["_setup.sh"])
    return entry


@pytest.mark.parametrize("seen, total, expected", [
    (0, 10, 0),
    (5, 10, 50),
    (10, 10, 99),
    (25, 10, 99),
    (3, 0, 0),
])
def test_gauge_percent(seen, total, expected):
    assert gauge_percent(seen, total) == expected


def test_spinner_triggered():
    triggers = ["docker pull", "dnf "]
    assert spinner_triggered("+ sudo dnf install -y git", triggers)
    assert spinner_triggered("++ docker pull ghcr.io/x", triggers)
    assert not spinner_triggered("+ echo done", triggers)


def test_is_trace_line():
    assert is_trace_line("+ echo hi")
    assert is_trace_line("++ nested")
    assert not is_trace_line("hi")


def test_tracker_counts_and_keeps_tail_from_many_threads():
    tracker = ProgressTracker(keep_lines=3, counts=is_trace_line)

    def feed():
        for i in range(100):
            tracker.add_line(f"+ step {i}")
            tracker.add_line("plain output")

    threads = [threading.Thread(target=feed) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert tracker.lines_seen == 400
    assert len(tracker.tail()) == 3


def test_make_reporter_modes(settings, record_console):
    assert isinstance(make_reporter("gauge", settings, record_console), GaugeReporter)
    assert isinstance(make_reporter("fifo", settings, record_console), FifoReporter)
    with pytest.raises(ValueError):
        make_reporter("bogus", settings, record_console)


def test_passthrough_returns_child_exit_status(make_script, settings, record_console, capfd):
    entry = _only_entry(make_script, "fail_setup.sh", "echo visible-output\nexit 3")

    returncode = PassthroughReporter(settings, record_console).run(entry)

    assert returncode == 3
    assert "visible-output" in capfd.readouterr().out
    assert "Running Fail..." in record_console.file.getvalue()


def test_unstartable_script_is_recorded_as_127(make_script, settings, record_console):
    entry = _only_entry(make_script, "broken_setup.sh", "exit 0", shebang="")

    assert PassthroughReporter(settings, record_console).run(entry) == EXIT_NOT_EXECUTABLE


def test_tail_shows_last_lines(make_script, settings, record_console):
    settings["tail_lines"] = 2
    entry = _only_entry(make_script, "tail_setup.sh", "echo line-one\necho line-two\necho line-three\nexit 0")

    assert TailReporter(settings, record_console).run(entry) == 0

    output = record_console.file.getvalue()
    assert "line-three" in output
    assert "line-two" in output


def test_fifo_streams_output(make_script, settings, record_console):
    entry = _only_entry(make_script, "fifo_setup.sh", "echo through-the-pipe\necho to-stderr >&2\nexit 4")

    reporter = FifoReporter(settings, record_console)
    assert reporter.run(entry) == 4

    output = record_console.file.getvalue()
    assert "through-the-pipe" in output
    assert "to-stderr" in output


@needs_bash
def test_gauge_reaches_completion(make_script, settings, record_console):
    entry = _only_entry(make_script, "gauge_setup.sh", "echo a\necho b\ntrue")

    assert GaugeReporter(settings, record_console).run(entry) == 0
    assert "100%" in record_console.file.getvalue()


@needs_bash
def test_silent_hides_output_and_spins_on_triggers(make_script, settings, record_console, capfd):
    settings["spinner_triggers"] = ["docker pull"]
    entry = _only_entry(make_script, "quiet_setup.sh", "echo docker pull something\nexit 0")

    reporter = SilentReporter(settings, record_console)
    assert reporter.run(entry) == 0

    assert reporter.spins >= 1
    assert "docker pull something" not in capfd.readouterr().out


@needs_bash
def test_silent_without_trigger_does_not_spin(make_script, settings, record_console):
    settings["spinner_triggers"] = ["docker pull"]
    entry = _only_entry(make_script, "calm_setup.sh", "echo nothing special\nexit 1")

    reporter = SilentReporter(settings, record_console)
    assert reporter.run(entry) == 1
    assert reporter.spins == 0
