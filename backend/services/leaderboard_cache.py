"""
In-memory leaderboard snapshot cache.

Holds at most one snapshot.  ``get`` serves it while it is younger than the
TTL and refreshes otherwise; a failed refresh falls back to the previous
snapshot whatever its age.  Refreshes are single-flight: concurrent callers
that find the snapshot stale queue on one lock, and whoever gets the lock
after a successful refresh reuses that result instead of calling the
provider again.
"""

import asyncio
import time
from typing import Callable, Optional, Protocol

from config import settings
from models import LeaderboardEntry
from services.dune import dune_client
from services.errors import NotFoundError, ProviderError
from utils.logger import cache_logger as logger
from utils.utcnow import utcnow


class LeaderboardFetcher(Protocol):
    async def fetch_leaderboard(self) -> list[LeaderboardEntry]: ...


class LeaderboardCache:
    def __init__(
        self,
        fetcher: LeaderboardFetcher,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetcher = fetcher
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Optional[list[LeaderboardEntry]] = None
        self._fetched_at: float = 0.0
        self._refreshed_wall: Optional[str] = None
        self._last_error: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def has_snapshot(self) -> bool:
        return self._entries is not None

    def age_seconds(self) -> Optional[float]:
        if self._entries is None:
            return None
        return max(0.0, self._clock() - self._fetched_at)

    def is_fresh(self) -> bool:
        age = self.age_seconds()
        return age is not None and age < self.ttl_seconds

    async def get(self) -> list[LeaderboardEntry]:
        """Current snapshot, refreshing it first when missing or expired."""
        if self.is_fresh():
            logger.debug("Returning cached leaderboard", entries=len(self._entries))
            return self._entries
        return await self.refresh()

    async def refresh(self, force: bool = False) -> list[LeaderboardEntry]:
        """Fetch a new snapshot, falling back to the old one on provider errors.

        Without ``force`` a snapshot that became fresh while waiting for the
        lock is returned as-is.
        """
        async with self._lock:
            if not force and self.is_fresh():
                return self._entries

            try:
                entries = await self._fetcher.fetch_leaderboard()
            except ProviderError as e:
                self._last_error = str(e)
                if self._entries is not None:
                    logger.warning(
                        "Leaderboard refresh failed, serving stale snapshot",
                        error=str(e),
                        age_seconds=round(self.age_seconds() or 0.0, 1),
                    )
                    return self._entries
                logger.error("Leaderboard refresh failed with no snapshot", error=str(e))
                raise

            self._entries = entries
            self._fetched_at = self._clock()
            self._refreshed_wall = utcnow().isoformat() + "Z"
            self._last_error = None
            logger.info("Leaderboard snapshot cached", entries=len(entries))
            return entries

    async def find(self, wallet: str) -> tuple[LeaderboardEntry, int]:
        """Entry for ``wallet`` plus the snapshot size it was ranked in."""
        entries = await self.get()
        for entry in entries:
            if entry.wallet == wallet:
                return entry, len(entries)
        raise NotFoundError(f"LP not found: {wallet}")

    def status(self) -> dict:
        age = self.age_seconds()
        return {
            "hasSnapshot": self.has_snapshot,
            "entries": len(self._entries) if self._entries is not None else 0,
            "ageSeconds": round(age, 1) if age is not None else None,
            "fresh": self.is_fresh(),
            "ttlSeconds": self.ttl_seconds,
            "lastRefreshAt": self._refreshed_wall,
            "lastError": self._last_error,
        }


leaderboard_cache = LeaderboardCache(
    dune_client, ttl_seconds=settings.LEADERBOARD_CACHE_TTL_SECONDS
)
