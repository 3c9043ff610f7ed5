"""
AdLinkFly-compatible link shortener client (GET {domain}/api?api=<key>&url=<url>).
Sync httpx client: the bot calls it via asyncio.to_thread, workers call it directly.
"""
import logging
import time

import httpx
import pybreaker

from filestore.core.config import settings
from filestore.core.exceptions import ShortenerError
from filestore.utils.metrics import (
    shortener_request_duration_seconds,
    shortener_requests_total,
)

logger = logging.getLogger(__name__)


class ShortenerClient:
    """
    Wraps a long URL through the shortener. Every failure mode (not configured,
    timeout, HTTP error, malformed body, reported error) raises ShortenerError.
    """

    def __init__(
        self,
        timeout: float | None = None,
        breaker: pybreaker.CircuitBreaker | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._timeout = timeout if timeout is not None else settings.shortener_timeout
        self._breaker = breaker
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Lazy initialization of httpx client."""
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout, transport=self._transport)
        return self._client

    def shorten(self, long_url: str, *, domain: str, api_key: str) -> str:
        if not domain or not api_key:
            raise ShortenerError("shortener is not configured", {"domain": domain or None})
        if self._breaker is None:
            return self._request(long_url, domain, api_key)
        try:
            return self._breaker.call(self._request, long_url, domain, api_key)
        except pybreaker.CircuitBreakerError as e:
            raise ShortenerError("shortener circuit is open", {"domain": domain}) from e

    def _request(self, long_url: str, domain: str, api_key: str) -> str:
        url = f"{domain.rstrip('/')}/api"
        start = time.time()
        try:
            resp = self.client.get(url, params={"api": api_key, "url": long_url})
            resp.raise_for_status()
            data = resp.json()
        except httpx.TimeoutException as e:
            shortener_requests_total.labels(status="error").inc()
            raise ShortenerError("shortener timed out", {"domain": domain}) from e
        except httpx.HTTPError as e:
            shortener_requests_total.labels(status="error").inc()
            raise ShortenerError(f"shortener request failed: {e}", {"domain": domain}) from e
        except ValueError as e:
            shortener_requests_total.labels(status="error").inc()
            raise ShortenerError("shortener returned non-JSON body", {"domain": domain}) from e
        finally:
            shortener_request_duration_seconds.observe(time.time() - start)

        if not isinstance(data, dict):
            shortener_requests_total.labels(status="error").inc()
            raise ShortenerError("shortener returned malformed body", {"domain": domain})
        if data.get("status") == "error":
            shortener_requests_total.labels(status="error").inc()
            message = data.get("message")
            if isinstance(message, list):
                message = "; ".join(str(m) for m in message)
            raise ShortenerError(f"shortener error: {message}", {"domain": domain})
        short_url = data.get("shortenedUrl")
        if not isinstance(short_url, str) or not short_url.startswith("http"):
            shortener_requests_total.labels(status="error").inc()
            raise ShortenerError("shortener response has no shortenedUrl", {"domain": domain})

        shortener_requests_total.labels(status="success").inc()
        return short_url

    def close(self) -> None:
        """Close httpx client."""
        if self._client is not None:
            try:
                self._client.close()
            except Exception as e:
                logger.warning("Failed to close shortener client", extra={"error": str(e)})
            finally:
                self._client = None
