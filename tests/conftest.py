"""Pytest fixtures for testing"""

import pytest

from app import create_app
from atm_logic import Terminal
from atm_session import AccountSession
from atm_states import AccountType, ScreenState
from ledger import InMemoryLedger

CARD = "1111222233334444"
PIN = "4321"
CHECKING = 1000
SAVINGS = 10000


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def ledger() -> InMemoryLedger:
    """Ledger with one known card and a large cash reserve"""
    return InMemoryLedger(
        {CARD: {"pin": PIN, "checking": CHECKING, "savings": SAVINGS}},
        cash_reserve=100000,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session(ledger, clock) -> AccountSession:
    return AccountSession(ledger, CARD, clock=clock)


@pytest.fixture
def open_session(session) -> AccountSession:
    """Unlocked session with checking selected"""
    session.unlock(PIN)
    session.select_type(AccountType.CHECKING)
    return session


@pytest.fixture
def terminal(ledger, clock) -> Terminal:
    return Terminal(ledger, clock=clock)


def drive_to(terminal, state, account_type=AccountType.CHECKING):
    """Walk a fresh terminal through the happy path up to ``state``"""
    steps = [
        (ScreenState.ENTER_PIN, lambda: terminal.present_card(CARD)),
        (ScreenState.SELECT_ACCOUNT, lambda: terminal.enter_pin(PIN)),
        (ScreenState.ACCOUNT_MANAGEMENT, lambda: terminal.select_account_type(account_type)),
    ]
    for reached, step in steps:
        step()
        terminal.service()
        assert terminal.current_state() == reached
        if reached == state:
            return terminal
    raise AssertionError(f"cannot drive to {state}")


@pytest.fixture
def client(ledger):
    """Flask test client over the fixture ledger, no background ticker"""
    app = create_app({"TESTING": True, "START_TICKER": False}, ledger=ledger)
    return app.test_client()
