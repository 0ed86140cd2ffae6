"""User-facing notices about scan outcomes."""

from typing import List, Protocol

from src.shared.observability import get_logger

logger = get_logger(__name__)


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class LogNotifier:
    """Emits notices as structured log records."""

    def notify(self, message: str) -> None:
        logger.info("Notice", message=message)


class RecordingNotifier:
    """Keeps notices in memory."""

    def __init__(self):
        self.messages: List[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)
