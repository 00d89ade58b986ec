"""Tests for the background service ticker"""

import time

import pytest

from atm_states import ScreenState
from ticker import ServiceTicker
from tests.conftest import CARD


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_tick_drains_queue(terminal):
    ticker = ServiceTicker(terminal)
    terminal.present_card(CARD)
    ticker.tick()
    assert terminal.current_state() == ScreenState.ENTER_PIN


def test_tick_expires_stale_session(terminal, clock):
    ticker = ServiceTicker(terminal)
    terminal.present_card(CARD)
    ticker.tick()
    clock.advance(terminal.session_timeout + 1)
    # expiry queues IDLE and the same tick applies it
    ticker.tick()
    assert terminal.current_state() == ScreenState.IDLE


def test_background_thread_applies_transitions(terminal):
    ticker = ServiceTicker(terminal, hz=50)
    ticker.start()
    try:
        assert ticker.is_running
        terminal.present_card(CARD)
        assert wait_for(lambda: terminal.current_state() == ScreenState.ENTER_PIN)
    finally:
        ticker.stop()
    assert not ticker.is_running


def test_start_twice_keeps_one_thread(terminal):
    ticker = ServiceTicker(terminal, hz=50)
    ticker.start()
    try:
        thread = ticker._thread
        ticker.start()
        assert ticker._thread is thread
    finally:
        ticker.stop()


def test_rejects_non_positive_rate(terminal):
    with pytest.raises(ValueError):
        ServiceTicker(terminal, hz=0)
