import logging
import threading
from typing import Optional

from atm_logic import Terminal

logger = logging.getLogger(__name__)

SERVICE_HZ = 5


class ServiceTicker:
    """Background thread that drains a terminal's transition queue.

    Each tick expires an inactive session and then calls ``service()``.
    """

    def __init__(self, terminal: Terminal, hz: float = SERVICE_HZ):
        if hz <= 0:
            raise ValueError("hz must be positive")
        self._terminal = terminal
        self._interval = 1.0 / hz
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self):
        self._terminal.expire_stale_session()
        self._terminal.service()

    def start(self):
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="atm-service", daemon=True)
        self._thread.start()
        logger.info("Service ticker started", extra={"interval": self._interval})

    def stop(self, timeout: float = 5.0):
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("Service ticker stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_loop(self):
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("Service tick failed")
            self._stop_event.wait(timeout=self._interval)
