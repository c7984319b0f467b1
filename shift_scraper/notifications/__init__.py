"""
Notification channels and the change reporter.

Provides:
- Notifier base class, NullNotifier
- TelegramNotifier (Bot API over httpx)
- ChangeReporter (digest of newly persisted records)
"""

from .base import Notifier, NullNotifier
from .telegram import TelegramNotifier
from .reporter import ChangeReporter, format_digest, order_records

__all__ = [
    "Notifier",
    "NullNotifier",
    "TelegramNotifier",
    "ChangeReporter",
    "format_digest",
    "order_records",
    "create_notifier",
]


def create_notifier(settings) -> Notifier:
    """Telegram when both token and chat id are set, otherwise a NullNotifier."""
    if settings.telegram_bot_token and settings.telegram_chat_id:
        return TelegramNotifier(
            token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
        )
    return NullNotifier()
