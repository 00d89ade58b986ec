"""Tests for security event recording"""

from security_log import INVALID_STATE, WRONG_PIN, SecurityLog


def test_events_filtered_by_card():
    log = SecurityLog()
    log.record("a", WRONG_PIN)
    log.record("b", INVALID_STATE, "PIN entered in state IDLE")
    log.record("a", INVALID_STATE)

    assert [e.kind for e in log.events("a")] == [WRONG_PIN, INVALID_STATE]
    assert log.count("a", WRONG_PIN) == 1
    assert log.count("b") == 1
    assert len(log.events()) == 3


def test_log_keeps_newest_events():
    """Older events fall off once the log is full"""
    log = SecurityLog(max_events=2)
    for detail in ("first", "second", "third"):
        log.record("a", WRONG_PIN, detail)
    assert [e.detail for e in log.events()] == ["second", "third"]
