from easy.discovery import ScriptEntry
from easy.report import STATUS_FAILED, STATUS_NOT_RUN, STATUS_SUCCEEDED, build_report, render_report
from easy.runner import RunSummary, ScriptResult


def _result(label, returncode):
    entry = ScriptEntry(filename=f"{label.lower()}_setup.sh", path=None, label=label)
    return ScriptResult(entry, returncode)


def test_report_has_one_entry_per_selected_item():
    summary = RunSummary([_result("Immich", 0), _result("Nextcloud", 1), _result("Auto Updates", None)])

    report = build_report(summary)

    assert [(r.label, r.success, r.status) for r in report] == [
        ("Immich", True, STATUS_SUCCEEDED),
        ("Nextcloud", False, STATUS_FAILED),
        ("Auto Updates", False, STATUS_NOT_RUN),
    ]


def test_items_that_never_ran_are_not_reported_as_succeeded():
    report = build_report(RunSummary([_result("Immich", None)], aborted=True))
    assert report[0].success is False


def test_render_report_lists_every_item(record_console):
    summary = RunSummary([_result("Immich", 0), _result("Nextcloud", 7)])

    render_report(summary, record_console)

    output = record_console.file.getvalue()
    assert "Immich" in output
    assert "exit status 7" in output
    assert "All selected setup scripts have been executed." in output


def test_render_report_after_abort(record_console):
    render_report(RunSummary([_result("Immich", 1), _result("Nextcloud", None)], aborted=True), record_console)
    output = record_console.file.getvalue()
    assert "not run" in output
    assert "remaining scripts were not run" in output
