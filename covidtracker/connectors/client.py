"""COVID Tracker — Source HTTP Client.

Async client shared by every source connector. Handles retries on rate
limiting, server errors and connection failures, and decodes JSON or text.
"""

import asyncio
from typing import Any, Dict, Optional

import httpx

from covidtracker.config import settings
from covidtracker.core.logging import get_logger

logger = get_logger("connectors.client")

MAX_RETRIES = 3
RETRY_BASE_DELAY = 2  # seconds


class SourceAPIError(Exception):
    """Raised when a source cannot be fetched or decoded."""

    def __init__(self, message: str, status_code: int = 0, url: str = ""):
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class SourceClient:
    """Async HTTP client for the upstream data sources."""

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_base_delay: float = RETRY_BASE_DELAY,
    ):
        self.timeout = timeout or settings.http_timeout
        self.retry_base_delay = retry_base_delay
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ── Core Request Method ──

    async def _request(
        self,
        method: str,
        url: str,
        params: Dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Make a request with retry + rate-limit handling."""
        client = await self._get_client()

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                resp = await client.request(method, url, params=params)

                # Rate limited
                if resp.status_code == 429 and attempt < MAX_RETRIES:
                    wait = self.retry_base_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"Rate limited (429). Retrying in {wait}s (attempt {attempt}/{MAX_RETRIES})"
                    )
                    await asyncio.sleep(wait)
                    continue

                resp.raise_for_status()
                return resp

            except httpx.HTTPStatusError as e:
                if attempt < MAX_RETRIES and e.response.status_code >= 500:
                    wait = self.retry_base_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"Server error {e.response.status_code}. Retrying in {wait}s"
                    )
                    await asyncio.sleep(wait)
                    continue

                raise SourceAPIError(
                    f"{url} returned HTTP {e.response.status_code}",
                    e.response.status_code,
                    url,
                ) from e

            except httpx.RequestError as e:
                if attempt < MAX_RETRIES:
                    wait = self.retry_base_delay * (2 ** (attempt - 1))
                    logger.warning(f"Request error: {e}. Retrying in {wait}s")
                    await asyncio.sleep(wait)
                    continue
                raise SourceAPIError(
                    f"Connection failed after {MAX_RETRIES} retries: {e}", url=url
                ) from e

        raise SourceAPIError("Max retries exhausted", url=url)

    # ── Decoders ──

    async def get_json(self, url: str, params: Dict[str, Any] | None = None) -> Any:
        """GET a JSON document."""
        resp = await self._request("GET", url, params)
        try:
            return resp.json()
        except ValueError as e:
            raise SourceAPIError(f"Invalid JSON payload from {url}", url=url) from e

    async def get_text(self, url: str, params: Dict[str, Any] | None = None) -> str:
        """GET a raw text document."""
        resp = await self._request("GET", url, params)
        return resp.text
