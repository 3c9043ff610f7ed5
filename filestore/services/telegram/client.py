"""
Telegram client wrapper using httpx sync client.
Provides sync interface for Celery workers and the admin API (no event loop issues).
"""
import time
import logging

import httpx

from filestore.core.config import settings
from filestore.utils.metrics import (
    telegram_requests_total,
    telegram_request_duration_seconds,
)


logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


class TelegramAPIError(Exception):
    def __init__(self, method: str, error_code: int, description: str):
        super().__init__(f"{method} -> {error_code}: {description}")
        self.method = method
        self.error_code = error_code
        self.description = description


class TelegramClient:
    """
    Sync Telegram client for Celery workers.
    Uses httpx sync client - no event loop issues.
    """

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        self._token = settings.telegram_bot_token
        self._base_url = f"{TELEGRAM_API_BASE}/bot{self._token}"
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Lazy initialization of httpx client."""
        if self._client is None:
            self._client = httpx.Client(timeout=settings.telegram_request_timeout, transport=self._transport)
        return self._client

    def _record_request(self, method: str, status: str, duration: float) -> None:
        telegram_requests_total.labels(method=method, status=status).inc()
        telegram_request_duration_seconds.labels(method=method).observe(duration)

    def _api_call(self, method: str, data: dict | None = None) -> dict:
        """Make API call to Telegram."""
        url = f"{self._base_url}/{method}"
        start = time.time()
        try:
            resp = self.client.post(url, json=data)
            result = resp.json()
        except (httpx.HTTPError, ValueError):
            self._record_request(method, "error", time.time() - start)
            raise
        if not result.get("ok"):
            self._record_request(method, "error", time.time() - start)
            error_desc = result.get("description", "Unknown error")
            error_code = result.get("error_code", 0)
            logger.warning(f"Telegram API error: {method} -> {error_code}: {error_desc}")
            raise TelegramAPIError(method, error_code, error_desc)
        self._record_request(method, "success", time.time() - start)
        return result

    def send_message(
        self,
        chat_id: str,
        text: str,
        reply_markup: dict | None = None,
        parse_mode: str | None = None,
    ) -> dict:
        """Send text message to chat."""
        try:
            data = {"chat_id": chat_id, "text": text}
            if reply_markup:
                data["reply_markup"] = reply_markup
            if parse_mode:
                data["parse_mode"] = parse_mode
            return self._api_call("sendMessage", data)
        except Exception as e:
            logger.error("Failed to send message", extra={"error": str(e), "chat_id": chat_id})
            raise

    def delete_message(self, chat_id: str, message_id: int) -> bool:
        """Delete message. Returns False instead of raising: message may already be gone."""
        try:
            self._api_call("deleteMessage", {"chat_id": chat_id, "message_id": int(message_id)})
            return True
        except Exception as e:
            logger.warning(
                "Failed to delete message",
                extra={"error": str(e), "chat_id": chat_id, "message_id": message_id},
            )
            return False

    def get_chat(self, chat: str) -> dict:
        """Resolve @handle or id to the chat object ({id, title, username, ...})."""
        return self._api_call("getChat", {"chat_id": chat})["result"]

    def close(self) -> None:
        """Close httpx client."""
        if self._client is not None:
            try:
                self._client.close()
            except Exception as e:
                logger.warning("Failed to close client", extra={"error": str(e)})
            finally:
                self._client = None
