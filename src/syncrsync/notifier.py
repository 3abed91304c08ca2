"""Notifier - user-visible messages

The host implements the actual display (web broadcast, editor toast);
``LogNotifier`` is the headless default and ``RecordingNotifier`` keeps
messages for inspection.
"""

from dataclasses import dataclass, field
from typing import Protocol

from .telemetry import get_logger

logger = get_logger(__name__)


class Notifier(Protocol):
    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LogNotifier:
    """Routes notifications to the logger."""

    def info(self, message: str) -> None:
        logger.info(f"[Notify] {message}")

    def warning(self, message: str) -> None:
        logger.warning(f"[Notify] {message}")

    def error(self, message: str) -> None:
        logger.error(f"[Notify] {message}")


@dataclass
class RecordingNotifier:
    """Keeps (level, message) pairs; used by the web host for replay and by tests."""

    messages: list[tuple[str, str]] = field(default_factory=list)

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def of_level(self, level: str) -> list[str]:
        return [message for lvl, message in self.messages if lvl == level]
