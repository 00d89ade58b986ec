import logging
import threading
from functools import wraps
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from atm_errors import (
    ATMError,
    AuthError,
    InsufficientFundsError,
    LimitExceededError,
)
from atm_session import SESSION_TIMEOUT, AccountSession
from atm_states import AccountType, ActionKind, ScreenState, is_valid_transition
from ledger import LedgerService
from security_log import (
    INSUFFICIENT_FUNDS,
    INVALID_STATE,
    LIMIT_EXCEEDED,
    WRONG_PIN,
    SecurityLog,
)

logger = logging.getLogger(__name__)

_SECURITY_KINDS = {
    AuthError: WRONG_PIN,
    LimitExceededError: LIMIT_EXCEEDED,
    InsufficientFundsError: INSUFFICIENT_FUNDS,
}


@dataclass(frozen=True)
class ManagementRequest:
    kind: ActionKind
    amount: int = 0


def exclusive(method):
    """Run a terminal method under the terminal lock"""
    @wraps(method)
    def locked(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return locked


class Terminal:
    """Screen-state machine for a single ATM.

    Event handlers never change the screen state themselves. They push the
    state they want onto ``_pending`` and ``service()`` applies the queue
    later, newest request first. Callers have to run ``service()`` (or a
    ``ServiceTicker``) and read ``current_state()`` to see the effect.

    Failures from the account session are reported and turned into a
    request for IDLE; no handler raises ``ATMError`` to its caller.

    Handlers, ``service()`` and ``expire_stale_session()`` hold one terminal
    lock, so a drain on the ticker thread never swaps the session out from
    under a handler that is still using it.
    """

    def __init__(self, ledger: LedgerService, security_log: Optional[SecurityLog] = None,
                 session_timeout: float = SESSION_TIMEOUT,
                 clock: Callable[[], float] = time.monotonic):
        self._ledger = ledger
        self.security_log = security_log or SecurityLog()
        self.session_timeout = session_timeout
        self._clock = clock
        self._state = ScreenState.IDLE
        self._session: Optional[AccountSession] = None
        self._pending = deque()
        self._pending_lock = threading.Lock()
        self._lock = threading.RLock()
        self.last_notice: Optional[str] = None

    # ---------------- OBSERVERS ----------------
    def current_state(self) -> ScreenState:
        return self._state

    @property
    def session(self) -> Optional[AccountSession]:
        return self._session

    def pending_transitions(self):
        with self._pending_lock:
            return list(self._pending)

    # ---------------- TRANSITIONS ----------------
    def request_transition(self, target: ScreenState):
        with self._pending_lock:
            self._pending.appendleft(target)

    @exclusive
    def service(self):
        """Apply every transition queued so far, most recent first."""
        with self._pending_lock:
            requests = list(self._pending)
            self._pending.clear()

        for target in requests:
            self._apply(target)

    def _apply(self, target: ScreenState):
        current = self._state
        if not is_valid_transition(current, target):
            logger.warning("Dropped invalid transition",
                           extra={"from_state": current.name, "to_state": target.name})
            return

        if target == ScreenState.IDLE:
            self._session = None
        elif not self._guard(target):
            logger.warning("Dropped transition, session not ready",
                           extra={"from_state": current.name, "to_state": target.name})
            return

        self._state = target
        logger.info("State transition",
                    extra={"from_state": current.name, "to_state": target.name})

    def _guard(self, target):
        session = self._session
        if session is None:
            return False
        if target == ScreenState.SELECT_ACCOUNT:
            return not session.locked
        if target == ScreenState.ACCOUNT_MANAGEMENT:
            return session.selected_type is not None
        return True

    @exclusive
    def expire_stale_session(self) -> bool:
        session = self._session
        if session is None or session.idle_for() <= self.session_timeout:
            return False
        self._report("Session expired due to inactivity")
        self.request_transition(ScreenState.IDLE)
        return True

    # ---------------- REPORTING ----------------
    def _report(self, message):
        self.last_notice = message
        logger.warning(message, extra={"state": self._state.name})

    def _reject(self, action):
        session = self._session
        card_id = session.card_id if session else None
        self.security_log.record(card_id, INVALID_STATE,
                                 f"{action} in state {self._state.name}")
        self._report(f"{action} not allowed in state {self._state.name}")
        self.request_transition(ScreenState.IDLE)

    def _fail(self, session, exc: ATMError):
        kind = _SECURITY_KINDS.get(type(exc))
        if kind:
            self.security_log.record(session.card_id, kind, str(exc))
        self._report(str(exc))
        self.request_transition(ScreenState.IDLE)

    # ---------------- EVENTS ----------------
    @exclusive
    def present_card(self, card_id: str) -> bool:
        self.last_notice = None
        if self._state != ScreenState.IDLE:
            self._reject("Card presented")
            return False

        try:
            self._session = AccountSession(self._ledger, card_id, clock=self._clock)
        except ATMError as e:
            self._report(str(e))
            return False

        self.request_transition(ScreenState.ENTER_PIN)
        return True

    @exclusive
    def enter_pin(self, pin: str) -> bool:
        self.last_notice = None
        session = self._session
        if self._state != ScreenState.ENTER_PIN or session is None:
            self._reject("PIN entered")
            return False

        try:
            session.unlock(pin)
        except ATMError as e:
            self._fail(session, e)
            return False

        self.request_transition(ScreenState.SELECT_ACCOUNT)
        return True

    @exclusive
    def select_account_type(self, account_type: AccountType) -> bool:
        self.last_notice = None
        session = self._session
        if self._state != ScreenState.SELECT_ACCOUNT or session is None:
            self._reject("Account selected")
            return False

        try:
            session.select_type(account_type)
        except ATMError as e:
            self._fail(session, e)
            return False

        self.request_transition(ScreenState.ACCOUNT_MANAGEMENT)
        return True

    @exclusive
    def submit_management_action(self, request: ManagementRequest) -> Optional[int]:
        """Run one account action. Returns the balance for BALANCE requests."""
        self.last_notice = None
        session = self._session
        if self._state != ScreenState.ACCOUNT_MANAGEMENT or session is None:
            self._reject(f"{request.kind.name.capitalize()} requested")
            return None

        if request.kind == ActionKind.DONE:
            self.request_transition(ScreenState.IDLE)
            return None

        try:
            if request.kind == ActionKind.BALANCE:
                balance = session.get_balance()
                self.last_notice = f"BALANCE: [${balance}]"
                return balance
            if request.kind == ActionKind.DEPOSIT:
                session.deposit(request.amount)
            elif request.kind == ActionKind.WITHDRAW:
                session.withdraw(request.amount)
        except ATMError as e:
            # TODO: temporary lockout once a policy reads the security log
            self._fail(session, e)
        return None
