"""Bank ledger contract and the in-memory simulator behind it.

The terminal only ever talks to a ``LedgerService``; swapping the simulator
for a networked client means implementing the same five calls. A client that
times out should raise ``LedgerUnavailableError`` so the terminal collapses
the session the same way it does for any other failure.
"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional, Tuple

from atm_errors import CashUnavailableError, NotFoundError
from atm_states import AccountType

logger = logging.getLogger(__name__)

DEFAULT_CHECKING_LIMIT = 5000
DEFAULT_SAVINGS_LIMIT = 1000
DEFAULT_CASH_RESERVE = 100000
MAX_ADJUSTMENTS = 1000

DEMO_ACCOUNTS = {
    "1234123412341234": {"pin": "1234", "checking": 1000, "savings": 10000},
    "2345234523452345": {"pin": "2345", "checking": 9999, "savings": 99999},
}


@dataclass
class Balances:
    checking: int
    savings: int
    checking_limit: int = DEFAULT_CHECKING_LIMIT
    savings_limit: int = DEFAULT_SAVINGS_LIMIT

    def get(self, account_type: AccountType) -> int:
        if account_type == AccountType.CHECKING:
            return self.checking
        return self.savings

    def limit(self, account_type: AccountType) -> int:
        if account_type == AccountType.CHECKING:
            return self.checking_limit
        return self.savings_limit

    def adjust(self, account_type: AccountType, delta: int):
        if account_type == AccountType.CHECKING:
            self.checking += delta
        else:
            self.savings += delta


class LedgerService(ABC):
    """What the terminal needs from the bank"""

    @abstractmethod
    def resolve_pin(self, card_id: str) -> str:
        ...

    @abstractmethod
    def fetch_balances(self, card_id: str) -> Balances:
        ...

    @abstractmethod
    def record_adjustment(self, card_id: str, delta: int,
                          account_type: Optional[AccountType] = None) -> None:
        ...

    @abstractmethod
    def available_cash(self) -> int:
        ...

    @abstractmethod
    def disburse(self, amount: int) -> None:
        ...


class InMemoryLedger(LedgerService):
    """Simulated bank backend.

    ``accounts`` maps a card id to a dict with ``pin``, ``checking`` and
    ``savings`` keys and optional ``checking_limit`` / ``savings_limit``.
    ``adjustments`` keeps only the most recent ``max_adjustments`` entries.
    """

    def __init__(self, accounts: Optional[Dict[str, dict]] = None,
                 cash_reserve: int = DEFAULT_CASH_RESERVE,
                 max_adjustments: int = MAX_ADJUSTMENTS):
        if cash_reserve < 0:
            raise ValueError("cash_reserve must not be negative")
        source = DEMO_ACCOUNTS if accounts is None else accounts
        self._pins = {}
        self._balances = {}
        for card_id, record in source.items():
            self._pins[card_id] = str(record["pin"])
            self._balances[card_id] = Balances(
                checking=record["checking"],
                savings=record["savings"],
                checking_limit=record.get("checking_limit", DEFAULT_CHECKING_LIMIT),
                savings_limit=record.get("savings_limit", DEFAULT_SAVINGS_LIMIT),
            )
        self._cash = cash_reserve
        self._lock = threading.Lock()
        self.adjustments: Deque[Tuple[str, Optional[AccountType], int]] = deque(maxlen=max_adjustments)

    def resolve_pin(self, card_id: str) -> str:
        if card_id not in self._pins:
            raise NotFoundError()
        return self._pins[card_id]

    def fetch_balances(self, card_id: str) -> Balances:
        if card_id not in self._balances:
            raise NotFoundError()
        return copy.copy(self._balances[card_id])

    def record_adjustment(self, card_id, delta, account_type=None):
        with self._lock:
            self.adjustments.append((card_id, account_type, delta))
            if account_type is not None and card_id in self._balances:
                self._balances[card_id].adjust(account_type, delta)
        logger.info("Ledger adjustment", extra={"card_id": card_id, "delta": delta})

    def available_cash(self) -> int:
        with self._lock:
            return self._cash

    def disburse(self, amount: int):
        with self._lock:
            if amount > self._cash:
                raise CashUnavailableError()
            self._cash -= amount
        logger.info("Cash disbursed", extra={"amount": amount})
