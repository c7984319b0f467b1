"""
Telegram bot notifier.

Sends messages through the Bot API ``sendMessage`` method. Messages
longer than Telegram's limit are split on line boundaries.
"""

from typing import Optional

import httpx

from shift_scraper.core.errors import NotificationError
from shift_scraper.core.http_client import HttpClient

from .base import Notifier

TELEGRAM_API_URL = "https://api.telegram.org"
MAX_MESSAGE_LENGTH = 4096


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """
    Split text into chunks no longer than ``limit``.

    Splits between lines where possible; a single overlong line is cut.
    """
    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    current: Optional[str] = None
    for line in text.split("\n"):
        cut = False
        while len(line) > limit:
            if current is not None:
                chunks.append(current)
                current = None
            chunks.append(line[:limit])
            line = line[limit:]
            cut = True
        if cut and not line:
            continue

        # Blank lines inside a chunk are kept.
        candidate = line if current is None else f"{current}\n{line}"
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate

    if current is not None:
        chunks.append(current)
    # Telegram rejects empty messages.
    return [chunk for chunk in chunks if chunk.strip()]


class TelegramNotifier(Notifier):
    """
    Notifier posting to a Telegram chat.

    Usage:
        notifier = TelegramNotifier(token="123:abc", chat_id="-1001")
        await notifier.send("2 new shifts")
    """

    def __init__(
        self,
        token: str,
        chat_id: str,
        http_client: Optional[HttpClient] = None,
        api_url: str = TELEGRAM_API_URL,
    ):
        """
        Initialize notifier.

        Args:
            token: Bot token
            chat_id: Target chat id
            http_client: Shared client (a private one is opened per send otherwise)
            api_url: Bot API base URL
        """
        super().__init__()
        self.token = token
        self.chat_id = chat_id
        self.http_client = http_client
        self.api_url = api_url.rstrip("/")

    @property
    def endpoint(self) -> str:
        return f"{self.api_url}/bot{self.token}/sendMessage"

    async def send(self, text: str) -> None:
        if self.http_client is not None:
            await self._send_chunks(self.http_client, text)
        else:
            async with HttpClient(min_interval=0.0) as client:
                await self._send_chunks(client, text)

    async def _send_chunks(self, client: HttpClient, text: str) -> None:
        chunks = split_message(text)
        for chunk in chunks:
            try:
                response = await client.post_json(
                    self.endpoint,
                    {"chat_id": self.chat_id, "text": chunk},
                )
            except httpx.HTTPStatusError as e:
                raise NotificationError(
                    f"Telegram rejected message: {e.response.status_code} {e.response.text[:200]}"
                ) from e
            except httpx.HTTPError as e:
                raise NotificationError(f"Telegram request failed: {e}") from e

            body = response.json() if response.content else {}
            if not body.get("ok", False):
                raise NotificationError(f"Telegram rejected message: {body.get('description')}")

        self.logger.info("telegram_notification_sent", chunks=len(chunks))
