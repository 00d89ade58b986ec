"""Errors raised by the account session and the ledger"""


class ATMError(Exception):
    """Base class for every recoverable terminal failure"""

    message = "Transaction failed"

    def __init__(self, message=None):
        super().__init__(message or self.message)


class NotFoundError(ATMError):
    """Card or account unknown to the ledger"""

    message = "Account not found"


class AuthError(ATMError):
    """Wrong PIN"""

    message = "Wrong PIN"


class StateError(ATMError):
    """Operation attempted outside its preconditions"""

    message = "Account is locked / type not selected"


class InvalidAmountError(ATMError):
    message = "Amount must be > 0"


class LimitExceededError(ATMError):
    message = "E12344: Withdraw amount too great, change your settings online"


class InsufficientFundsError(ATMError):
    message = "E12343: Insufficient balance!"


class CashUnavailableError(ATMError):
    """Terminal cannot dispense; shown to the user without the cause"""

    message = "E12345: Something went wrong!"


class LedgerUnavailableError(ATMError):
    """Ledger call failed or timed out"""

    message = "Service temporarily unavailable"
