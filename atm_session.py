import logging
import time
from typing import Callable, Optional

from atm_errors import (
    AuthError,
    CashUnavailableError,
    InsufficientFundsError,
    InvalidAmountError,
    LimitExceededError,
    StateError,
)
from atm_states import AccountType
from ledger import LedgerService

logger = logging.getLogger(__name__)

SESSION_TIMEOUT = 30  # seconds


class AccountSession:
    """Access context for one card during one visit to the terminal.

    The PIN and a balance snapshot are fetched from the ledger once, when
    the card is presented. Nothing on the account can be read or changed
    until the session is unlocked and an account type has been picked.
    """

    def __init__(self, ledger: LedgerService, card_id: str,
                 clock: Callable[[], float] = time.monotonic):
        self.card_id = card_id
        self._ledger = ledger
        self._clock = clock
        self.pin = ledger.resolve_pin(card_id)
        self.balances = ledger.fetch_balances(card_id)
        self.locked = True
        self.selected_type: Optional[AccountType] = None
        self.last_activity = clock()

    def touch(self):
        self.last_activity = self._clock()

    def idle_for(self) -> float:
        return self._clock() - self.last_activity

    def unlock(self, pin: str):
        self.touch()
        if pin != self.pin:
            raise AuthError()
        self.locked = False

    def select_type(self, account_type: AccountType):
        self.touch()
        if self.locked or self.selected_type is not None:
            raise StateError("Account is locked / type already selected")
        self.selected_type = account_type

    def require_access(self):
        if self.locked or self.selected_type is None:
            raise StateError()

    def get_balance(self) -> int:
        self.require_access()
        self.touch()
        return self.balances.get(self.selected_type)

    def deposit(self, amount: int):
        self.require_access()
        self.touch()
        if amount <= 0:
            raise InvalidAmountError()
        self.balances.adjust(self.selected_type, amount)
        self._ledger.record_adjustment(self.card_id, amount, self.selected_type)

    def withdraw(self, amount: int):
        self.require_access()
        self.touch()
        if amount <= 0:
            raise InvalidAmountError()

        # Order matters: reserve, then limit, then balance.
        if amount > self._ledger.available_cash():
            raise CashUnavailableError()
        if amount > self.balances.limit(self.selected_type):
            # lockout / alert hook
            raise LimitExceededError()
        if amount > self.balances.get(self.selected_type):
            # lockout / alert hook
            raise InsufficientFundsError()

        self.balances.adjust(self.selected_type, -amount)
        self._ledger.record_adjustment(self.card_id, -amount, self.selected_type)
        try:
            self._ledger.disburse(amount)
        except CashUnavailableError:
            logger.warning("Disbursement refused after debit, reversing",
                           extra={"card_id": self.card_id, "amount": amount})
            self.balances.adjust(self.selected_type, amount)
            self._ledger.record_adjustment(self.card_id, amount, self.selected_type)
            raise
