"""Telegram Bot API notifier adapter."""

from __future__ import annotations

import logging

import httpx

from tour_forms.adapters.notify.base import AbstractNotifier, NotifierResponse

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS_MESSAGE = "Telegram credentials not configured."


class TelegramNotifier(AbstractNotifier):
    """Deliver messages with a single ``sendMessage`` call.

    No retries: a failed delivery is reported once and dropped.
    """

    def __init__(
        self,
        bot_token: str | None,
        chat_id: str | None,
        *,
        api_base_url: str = "https://api.telegram.org",
        parse_mode: str | None = "Markdown",
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the notifier.

        Args:
            bot_token: Bot token; when missing, send() reports a soft failure.
            chat_id: Destination chat id; when missing, send() reports a soft failure.
            api_base_url: Telegram Bot API base URL.
            parse_mode: Telegram parse mode for message text.
            timeout_seconds: Timeout for the HTTP call.
            client: Optional preconfigured client (tests inject a MockTransport).
        """
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._api_base_url = api_base_url.rstrip("/")
        self._parse_mode = parse_mode
        self._timeout = timeout_seconds
        self._client = client

    @property
    def destination(self) -> str | None:
        return self._chat_id

    @property
    def configured(self) -> bool:
        return bool(self._bot_token and self._chat_id)

    async def _post(self, url: str, payload: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(url, json=payload)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.post(url, json=payload)

    async def send(self, text: str) -> NotifierResponse:
        if not self.configured:
            logger.error(
                "notification.not_configured",
                extra={
                    "bot_token_present": bool(self._bot_token),
                    "chat_id_present": bool(self._chat_id),
                },
            )
            return NotifierResponse(ok=False, description=MISSING_CREDENTIALS_MESSAGE)

        url = f"{self._api_base_url}/bot{self._bot_token}/sendMessage"
        payload: dict = {"chat_id": self._chat_id, "text": text}
        if self._parse_mode:
            payload["parse_mode"] = self._parse_mode

        try:
            response = await self._post(url, payload)
            body = response.json()
        except httpx.HTTPError as exc:
            return NotifierResponse(ok=False, description=f"Telegram transport error: {type(exc).__name__}")
        except ValueError:
            return NotifierResponse(
                ok=False,
                description=f"Telegram returned a non-JSON response (HTTP {response.status_code})",
            )

        if not isinstance(body, dict) or not body.get("ok"):
            description = body.get("description") if isinstance(body, dict) else None
            return NotifierResponse(
                ok=False,
                description=f"Telegram API error: {description or 'unknown error'}",
            )

        return NotifierResponse(ok=True, description="Telegram notification sent successfully")
