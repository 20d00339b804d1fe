"""Telegram Bot API notification sink."""
from __future__ import annotations

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

API_BASE = "https://api.telegram.org"
SEND_TIMEOUT_SECONDS: float = 30.0


class TelegramNotifier:
    """Sends messages through a Telegram bot.

    Build one per run and pass it to whoever needs it. send() never raises:
    delivery problems are logged and reported as False so a flaky channel
    cannot fail the run.
    """

    def __init__(
        self,
        token: str,
        client: Optional[httpx.AsyncClient] = None,
        parse_mode: Optional[str] = "Markdown",
    ) -> None:
        if not token:
            raise ValueError("Telegram bot token is required")
        self._token = token
        self._client = client
        self._parse_mode = parse_mode

    @property
    def _url(self) -> str:
        return f"{API_BASE}/bot{self._token}/sendMessage"

    async def send(self, destination: str, message: str) -> bool:
        """Send ``message`` to chat ``destination``.

        Returns:
            True if Telegram accepted the message, False otherwise.
        """
        payload: dict[str, object] = {"chat_id": destination, "text": message}
        if self._parse_mode:
            payload["parse_mode"] = self._parse_mode

        try:
            if self._client is not None:
                response = await self._client.post(self._url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=SEND_TIMEOUT_SECONDS) as client:
                    response = await client.post(self._url, json=payload)
        except httpx.TimeoutException:
            logger.error("Telegram API timed out, notification not sent")
            return False
        except httpx.HTTPError as e:
            logger.error(f"Failed to send Telegram message: {type(e).__name__}")
            return False

        if response.status_code != 200 or not self._ok(response):
            logger.error(
                f"Telegram API error {response.status_code}: {self._description(response)}"
            )
            return False

        logger.info("Telegram notification sent successfully")
        return True

    @staticmethod
    def _ok(response: httpx.Response) -> bool:
        try:
            return bool(response.json().get("ok", True))
        except ValueError:
            return True

    @staticmethod
    def _description(response: httpx.Response) -> str:
        try:
            return str(response.json().get("description", response.text))
        except ValueError:
            return response.text
