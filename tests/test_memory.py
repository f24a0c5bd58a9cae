"""Tests for the append-only run log."""

from navigator.memory import RunLog
from navigator.models import LogStatus


def test_record_appends_in_order():
    log = RunLog()
    log.info("Starting execution")
    log.success("click: Add to Cart", "Completed in 5ms")
    log.error("type: Coupon", "element not found")

    assert len(log) == 3
    assert [e.status for e in log] == [LogStatus.INFO, LogStatus.SUCCESS, LogStatus.ERROR]


def test_entries_is_a_copy():
    log = RunLog()
    log.info("Goal received")
    entries = log.entries
    entries.clear()
    assert len(log) == 1


def test_format_history():
    log = RunLog()
    assert log.format_history() == "(无历史)"

    for i in range(7):
        log.info(f"step {i}")
    lines = log.format_history(last_n=5).splitlines()
    assert len(lines) == 5
    assert "step 6" in lines[-1]
    assert lines[-1].endswith("→ info")
