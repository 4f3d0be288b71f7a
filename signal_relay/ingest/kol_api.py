"""KOL frontend-messages API client."""

from typing import Any, Dict, List, Optional

import httpx

from signal_relay.core.errors import SourceError, retry_async
from signal_relay.core.logging import system_logger
from signal_relay.settings import Settings, DEFAULT_API_HEADERS
from signal_relay.signals.models import RawMessage


class KolMessageSource:
    """
    Fetches raw message batches over HTTP.

    Pass ``client`` to share a connection pool (or a mock transport in tests);
    otherwise a short-lived AsyncClient is opened per fetch.
    """

    def __init__(self, url: str, *, api_type: str = "all", limit: int = 100,
                 headers: Optional[Dict[str, str]] = None, timeout: float = 10.0,
                 retry_times: int = 3, retry_delay: float = 1.0,
                 client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self.params = {"type": api_type, "limit": limit}
        self.headers = dict(headers or DEFAULT_API_HEADERS)
        self.timeout = timeout
        self.retry_times = retry_times
        self.retry_delay = retry_delay
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> "KolMessageSource":
        return cls(
            settings.kol_api_url,
            api_type=settings.kol_api_type,
            limit=settings.kol_api_limit,
            timeout=settings.kol_api_timeout,
            retry_times=settings.kol_api_retry_times,
            retry_delay=settings.kol_api_retry_delay,
            client=client,
        )

    async def _get(self, client: httpx.AsyncClient) -> Dict[str, Any]:
        response = await client.get(self.url, params=self.params, headers=self.headers, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"unexpected response body type {type(data).__name__}")
        return data

    @retry_async("kol_api.fetch", exceptions=(httpx.HTTPError, ValueError))
    async def fetch(self) -> Dict[str, Any]:
        """One GET of the messages endpoint; returns the decoded JSON body."""
        if self._client is not None:
            return await self._get(self._client)
        async with httpx.AsyncClient() as client:
            return await self._get(client)

    async def fetch_with_retry(self) -> Dict[str, Any]:
        try:
            return await self.fetch(_attempts=self.retry_times, _delay=self.retry_delay)
        except (httpx.HTTPError, ValueError) as e:
            raise SourceError(f"KOL API request failed after {self.retry_times} attempts: {e}") from e

    async def fetch_messages(self) -> List[RawMessage]:
        """Fetch and decode a batch; malformed records are skipped with a warning."""
        data = await self.fetch_with_retry()
        records = data.get("messages") or []
        if not isinstance(records, list):
            raise SourceError("KOL API response 'messages' is not a list")

        messages: List[RawMessage] = []
        for record in records:
            try:
                messages.append(RawMessage.from_payload(record))
            except ValueError as e:
                system_logger.warning("Skipping malformed message record", {"error": str(e)})

        system_logger.info("Fetched KOL messages", {"received": len(records), "usable": len(messages)})
        return messages
