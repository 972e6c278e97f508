"""
Dune Analytics client for the zap-out leaderboard query.

Reads the latest stored result of a fixed query (no execution is triggered)
and normalizes its rows into ``LeaderboardEntry`` records.  Ranks follow the
row order Dune returns; they are never recomputed from volume.
"""

from typing import Optional

import httpx

from config import settings
from models import LeaderboardEntry
from services.errors import ConfigurationError, ProviderError
from utils.logger import dune_logger as logger
from utils.retry import RetryConfig, get_with_retry


def normalize_rows(rows: list) -> list[LeaderboardEntry]:
    """Convert raw result rows into ranked entries.

    Rows repeating a wallet already seen are dropped so every wallet appears
    once; ranks are assigned afterwards as 1-based positions.
    """
    entries: list[LeaderboardEntry] = []
    seen: set[str] = set()
    duplicates = 0

    for row in rows:
        if not isinstance(row, dict):
            continue
        entry = LeaderboardEntry.from_dune_row(row, rank=len(entries) + 1)
        if entry.wallet in seen:
            duplicates += 1
            continue
        seen.add(entry.wallet)
        entries.append(entry)

    if duplicates:
        logger.warning("Dropped duplicate wallet rows", duplicates=duplicates)
    return entries


class DuneClient:
    """Client for the Dune query results API"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        query_id: Optional[int] = None,
        timeout: Optional[float] = None,
        retry: Optional[RetryConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self.base_url = (base_url or settings.DUNE_API_URL).rstrip("/")
        self.query_id = query_id if query_id is not None else settings.DUNE_QUERY_ID
        self.timeout = timeout if timeout is not None else settings.DUNE_TIMEOUT_SECONDS
        self.retry = retry or RetryConfig(max_attempts=settings.DUNE_MAX_ATTEMPTS)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def api_key(self) -> str:
        # An explicitly passed key overrides the configured one.
        if self._api_key is not None:
            return self._api_key
        return settings.DUNE_API_KEY

    @property
    def results_url(self) -> str:
        return f"{self.base_url}/query/{self.query_id}/results"

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def get_latest_rows(self) -> list:
        """Fetch the rows of the latest stored result for the query."""
        api_key = self.api_key
        if not api_key:
            logger.error("DUNE_API_KEY not configured")
            raise ConfigurationError("DUNE_API_KEY environment variable is not set")

        client = await self._get_client()
        logger.info("Fetching latest query result", query_id=self.query_id)
        try:
            response = await get_with_retry(
                client,
                self.results_url,
                config=self.retry,
                headers={"X-DUNE-API-KEY": api_key},
            )
            payload = response.json()
        except httpx.HTTPError as e:
            raise ProviderError(f"Dune request failed: {e}") from e
        except ValueError as e:
            raise ProviderError("Dune returned a non-JSON body") from e

        result = payload.get("result") if isinstance(payload, dict) else None
        rows = result.get("rows") if isinstance(result, dict) else None
        if not isinstance(rows, list):
            logger.error(
                "No rows returned from query",
                query_id=self.query_id,
                state=payload.get("state") if isinstance(payload, dict) else None,
            )
            raise ProviderError("No data returned from Dune query")

        logger.info("Received query rows", query_id=self.query_id, rows=len(rows))
        return rows

    async def fetch_leaderboard(self) -> list[LeaderboardEntry]:
        rows = await self.get_latest_rows()
        return normalize_rows(rows)


dune_client = DuneClient()
