"""Broadcasting notifier for the web host"""

from collections import deque
from collections.abc import Callable
from typing import Any

from ..telemetry import get_logger

logger = get_logger(__name__)

NotificationListener = Callable[[str, str], Any]


class WebNotifier:
    """Logs every notification, keeps the recent ones and forwards them to listeners.

    Listeners are called with (level, message); the web server registers one
    that broadcasts to connected clients.
    """

    def __init__(self, max_recent: int = 50):
        self.recent: deque[tuple[str, str]] = deque(maxlen=max_recent)
        self._listeners: list[NotificationListener] = []

    def add_listener(self, listener: NotificationListener) -> None:
        self._listeners.append(listener)

    def info(self, message: str) -> None:
        logger.info(f"[Notify] {message}")
        self._emit("info", message)

    def warning(self, message: str) -> None:
        logger.warning(f"[Notify] {message}")
        self._emit("warning", message)

    def error(self, message: str) -> None:
        logger.error(f"[Notify] {message}")
        self._emit("error", message)

    def _emit(self, level: str, message: str) -> None:
        self.recent.append((level, message))
        for listener in list(self._listeners):
            try:
                listener(level, message)
            except Exception as e:
                logger.error(f"[Notify] Listener failed: {e}")
