import json
import logging
from typing import Any

import httpx

from ..errors import AlertDeliveryFailed

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Sends alert messages to a Telegram chat through the Bot API.

    With no credentials the notifier is disabled and every send is a no-op.
    """

    API_BASE_URL: str = "https://api.telegram.org"

    def __init__(self, api_key: str = "", chat_id: str = "", timeout: float = 10.0) -> None:
        """Initialize the notifier.

        Args:
            api_key: Telegram bot token
            chat_id: Target chat identifier
            timeout: HTTP timeout in seconds
        """
        self.api_key: str = api_key
        self.chat_id: str = chat_id
        self.timeout: float = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.chat_id)

    async def _bot_post(self, method: str, payload: Any) -> Any:
        """Post request to the Bot API.

        Args:
            method: Bot API method name
            payload: JSON payload to send

        Returns:
            JSON response from the Bot API

        Raises:
            httpx.HTTPError: If the request fails
        """
        async with httpx.AsyncClient() as client:
            full_url: str = f"{self.API_BASE_URL}/bot{self.api_key}/{method}"
            logger.debug(f"Posting to Telegram {method}: {json.dumps(payload)}")
            response: httpx.Response = await client.post(
                full_url, json=payload, timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()

    async def send_message(self, text: str) -> bool:
        """
        Send a text message to the configured chat.

        Args:
            text: Message body

        Returns:
            True if the message was delivered, False if alerting is disabled

        Raises:
            AlertDeliveryFailed: If Telegram rejects the message or is unreachable
        """
        if not self.enabled:
            logger.debug(f"Telegram alerting disabled, dropping message: {text}")
            return False

        payload: dict[str, str] = {"chat_id": self.chat_id, "text": text}
        try:
            response: dict[str, Any] = await self._bot_post("sendMessage", payload)
        except httpx.HTTPStatusError as e:
            # The error text embeds the request URL, which carries the bot token
            raise AlertDeliveryFailed(
                f"Telegram returned HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            # InvalidURL is not an HTTPError; a malformed token raises it
            raise AlertDeliveryFailed(f"Telegram delivery failed: {e}") from e

        match response:
            case {"ok": True}:
                logger.info("Alert delivered to Telegram")
                return True
            case {"description": description}:
                raise AlertDeliveryFailed(f"Telegram rejected message: {description}")
            case _:
                raise AlertDeliveryFailed(f"Unknown Telegram response format: {response}")
