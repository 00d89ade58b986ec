from enum import Enum, auto


class ScreenState(Enum):
    IDLE = auto()
    ENTER_PIN = auto()
    SELECT_ACCOUNT = auto()
    ACCOUNT_MANAGEMENT = auto()


class AccountType(Enum):
    CHECKING = auto()
    SAVINGS = auto()


class ActionKind(Enum):
    WITHDRAW = auto()
    DEPOSIT = auto()
    BALANCE = auto()
    DONE = auto()


# current state -> states it may move to
ALLOWED_TRANSITIONS = {
    ScreenState.IDLE: frozenset({ScreenState.ENTER_PIN}),
    ScreenState.ENTER_PIN: frozenset({ScreenState.SELECT_ACCOUNT, ScreenState.IDLE}),
    ScreenState.SELECT_ACCOUNT: frozenset({ScreenState.ACCOUNT_MANAGEMENT, ScreenState.IDLE}),
    ScreenState.ACCOUNT_MANAGEMENT: frozenset({ScreenState.IDLE}),
}

SESSION_STATES = frozenset({
    ScreenState.ENTER_PIN,
    ScreenState.SELECT_ACCOUNT,
    ScreenState.ACCOUNT_MANAGEMENT,
})


def is_valid_transition(current: ScreenState, target: ScreenState) -> bool:
    return target in ALLOWED_TRANSITIONS[current]
