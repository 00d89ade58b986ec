import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)

WRONG_PIN = "Wrong PIN entered"
LIMIT_EXCEEDED = "Withdrawal over account limit"
INSUFFICIENT_FUNDS = "Withdrawal over available balance"
INVALID_STATE = "Action attempted in invalid state"

MAX_EVENTS = 1000


@dataclass(frozen=True)
class SecurityEvent:
    card_id: Optional[str]
    kind: str
    detail: str = ""
    timestamp: float = field(default_factory=time.time)


class SecurityLog:
    """Records security-relevant terminal events.

    Nothing here locks a card out; lockout and alerting policies would
    read from this log. Only the newest ``max_events`` are kept.
    """

    def __init__(self, max_events: int = MAX_EVENTS):
        self._events = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def record(self, card_id, kind, detail=""):
        event = SecurityEvent(card_id=card_id, kind=kind, detail=detail)
        with self._lock:
            self._events.append(event)
        logger.warning(kind, extra={"card_id": card_id, "detail": detail})
        return event

    def events(self, card_id=None) -> List[SecurityEvent]:
        with self._lock:
            if card_id is None:
                return list(self._events)
            return [e for e in self._events if e.card_id == card_id]

    def count(self, card_id, kind=None) -> int:
        return len([e for e in self.events(card_id) if kind is None or e.kind == kind])
