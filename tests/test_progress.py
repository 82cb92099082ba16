from __future__ import annotations

import io

from phasepoly.progress import ProgressReporter


def test_report_lines_carry_the_file_index() -> None:
    stream = io.StringIO()
    reporter = ProgressReporter(2, stream=stream)

    reporter.report("Processing: a.qasm")
    reporter.advance()
    reporter.report("Processing: b.qasm")
    reporter.advance()

    lines = stream.getvalue().replace("\r", "").splitlines()
    assert lines == ["[1/2]   Processing: a.qasm", "[2/2]   Processing: b.qasm"]


def test_announce_is_overwritten() -> None:
    stream = io.StringIO()
    reporter = ProgressReporter(1, stream=stream)

    reporter.announce("  Verifying...")
    reporter.report("  Done")
    reporter.close()

    text = stream.getvalue()
    assert text.endswith("\r" + " " * len("[1/1]     Verifying...") + "\r[1/1]     Done\n")


def test_close_terminates_a_transient_line() -> None:
    stream = io.StringIO()
    reporter = ProgressReporter(10, stream=stream)
    reporter.announce("working")
    reporter.close()
    assert stream.getvalue().endswith("[ 1/10]   working\n")


def test_disabled_reporter_is_silent() -> None:
    stream = io.StringIO()
    reporter = ProgressReporter(3, stream=stream, enabled=False)
    reporter.announce("a")
    reporter.report("b")
    reporter.close()
    assert stream.getvalue() == ""
