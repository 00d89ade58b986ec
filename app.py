import re

from flask import Flask, current_app, jsonify, request
from werkzeug.exceptions import BadRequest, HTTPException

from atm_logic import ManagementRequest, Terminal
from atm_session import SESSION_TIMEOUT
from atm_states import AccountType, ActionKind
from ledger import InMemoryLedger
from logging_setup import setup_logging
from ticker import SERVICE_HZ, ServiceTicker

DEFAULT_CONFIG = {
    "SESSION_TIMEOUT": SESSION_TIMEOUT,
    "SERVICE_HZ": SERVICE_HZ,
    "START_TICKER": False,
    "LOG_LEVEL": "INFO",
}


def create_app(config=None, ledger=None):
    app = Flask(__name__)
    app.config.from_mapping(DEFAULT_CONFIG)
    app.config.from_prefixed_env("ATM")
    if config:
        app.config.from_mapping(config)

    terminal = Terminal(ledger or InMemoryLedger(),
                        session_timeout=app.config["SESSION_TIMEOUT"])
    app.extensions["atm_terminal"] = terminal
    if app.config["START_TICKER"]:
        ticker = ServiceTicker(terminal, hz=app.config["SERVICE_HZ"])
        ticker.start()
        app.extensions["atm_ticker"] = ticker

    _register_routes(app)
    return app


def get_terminal() -> Terminal:
    return current_app.extensions["atm_terminal"]


# ---------------- HELPERS ----------------
def require_field(name):
    data = request.get_json(silent=True) or {}
    value = data.get(name)
    if value is None or value == "":
        raise BadRequest(f"{name} required")
    return value


def parse_enum(enum_cls, raw):
    try:
        return enum_cls[str(raw).upper()]
    except KeyError:
        raise BadRequest(f"Unknown value: {raw}")


def parse_amount(raw):
    # bool is an int subclass; floats are never truncated
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and re.fullmatch(r"-?[0-9]+", raw.strip()):
        return int(raw)
    raise BadRequest("Amount must be an integer")


def state_response(accepted=True, **extra):
    terminal = get_terminal()
    body = {
        "accepted": accepted,
        "state": terminal.current_state().name,
        "notice": terminal.last_notice,
    }
    body.update(extra)
    return jsonify(body)


# ---------------- ROUTES ----------------
def _register_routes(app):

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({"status": "error", "message": e.description}), e.code

    @app.route("/state")
    def state():
        return state_response()

    @app.route("/card", methods=["POST"])
    def card():
        card_id = str(require_field("card_id"))
        return state_response(get_terminal().present_card(card_id))

    @app.route("/pin", methods=["POST"])
    def pin():
        value = str(require_field("pin"))
        return state_response(get_terminal().enter_pin(value))

    @app.route("/account", methods=["POST"])
    def account():
        account_type = parse_enum(AccountType, require_field("type"))
        return state_response(get_terminal().select_account_type(account_type))

    @app.route("/action", methods=["POST"])
    def action():
        kind = parse_enum(ActionKind, require_field("action"))
        data = request.get_json(silent=True) or {}
        amount = 0
        if kind in (ActionKind.WITHDRAW, ActionKind.DEPOSIT):
            amount = parse_amount(data.get("amount"))
        terminal = get_terminal()
        balance = terminal.submit_management_action(ManagementRequest(kind, amount))
        if kind == ActionKind.BALANCE and balance is not None:
            return state_response(balance=balance)
        return state_response(terminal.last_notice is None)

    @app.route("/service", methods=["POST"])
    def service():
        get_terminal().service()
        return state_response()


if __name__ == "__main__":
    app = create_app({"START_TICKER": True})
    setup_logging(app.config["LOG_LEVEL"])
    app.run(debug=False)
