import time

from atm_logic import ManagementRequest, Terminal
from atm_states import AccountType, ActionKind, ScreenState
from ledger import InMemoryLedger
from logging_setup import setup_logging
from ticker import SERVICE_HZ, ServiceTicker

# enough time for the ticker to drain at least once
SETTLE_SECONDS = 2.0 / SERVICE_HZ

ACCOUNT_CHOICES = {"1": AccountType.CHECKING, "2": AccountType.SAVINGS}
ACTION_CHOICES = {
    "1": ActionKind.WITHDRAW,
    "2": ActionKind.DEPOSIT,
    "3": ActionKind.BALANCE,
    "4": ActionKind.DONE,
}


def settle(terminal: Terminal) -> ScreenState:
    time.sleep(SETTLE_SECONDS)
    state = terminal.current_state()
    if terminal.last_notice:
        print(terminal.last_notice)
    print(f"State: {state.name}\n")
    return state


def read_amount():
    raw = input("Amount: ").strip()
    try:
        return int(raw)
    except ValueError:
        print("Amount must be a whole number.")
        return None


def atm_ui(terminal: Terminal):
    print("=== Welcome ===")
    while True:
        state = terminal.current_state()

        if state == ScreenState.IDLE:
            card_id = input("Insert card (enter Card ID, blank to quit): ").strip()
            if not card_id:
                print("Goodbye!")
                return
            terminal.present_card(card_id)

        elif state == ScreenState.ENTER_PIN:
            terminal.enter_pin(input("Enter PIN: ").strip())

        elif state == ScreenState.SELECT_ACCOUNT:
            choice = input("Account: 1) Checking 2) Savings: ").strip()
            if choice not in ACCOUNT_CHOICES:
                print("Invalid choice. Try again.\n")
                continue
            terminal.select_account_type(ACCOUNT_CHOICES[choice])

        elif state == ScreenState.ACCOUNT_MANAGEMENT:
            choice = input("1) Withdraw 2) Deposit 3) Balance 4) Done: ").strip()
            kind = ACTION_CHOICES.get(choice)
            if kind is None:
                print("Invalid choice. Try again.\n")
                continue
            amount = 0
            if kind in (ActionKind.WITHDRAW, ActionKind.DEPOSIT):
                amount = read_amount()
                if amount is None:
                    continue
            terminal.submit_management_action(ManagementRequest(kind, amount))

        settle(terminal)


def main():
    setup_logging("WARNING")
    terminal = Terminal(InMemoryLedger())
    ticker = ServiceTicker(terminal)
    ticker.start()
    try:
        atm_ui(terminal)
    except (KeyboardInterrupt, EOFError):
        print()
    finally:
        ticker.stop()


if __name__ == "__main__":
    main()
