"""
Base class for notification channels.

A notifier sends plain text somewhere a human will read it. Sending
may fail; callers decide whether that matters.
"""

from abc import ABC, abstractmethod

import structlog

logger = structlog.get_logger(__name__)


class Notifier(ABC):
    """Abstract text-message sender."""

    def __init__(self):
        self.logger = logger.bind(notifier=self.__class__.__name__)

    @property
    def enabled(self) -> bool:
        return True

    @abstractmethod
    async def send(self, text: str) -> None:
        """
        Send a message.

        Args:
            text: Message body

        Raises:
            NotificationError: If the channel rejects the message
        """


class NullNotifier(Notifier):
    """Notifier used when no channel is configured. Drops every message."""

    @property
    def enabled(self) -> bool:
        return False

    async def send(self, text: str) -> None:
        self.logger.warning("notifier_not_configured", length=len(text))

