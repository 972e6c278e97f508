"""Shared fixtures for leaderboard tests."""

import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

import pytest

from models import LeaderboardEntry


# ---------------------------------------------------------------------------
# Raw API response fixtures (mimicking Dune query result payloads)
# ---------------------------------------------------------------------------


@pytest.fixture
def raw_dune_rows():
    """Rows as the zap-out query returns them, with mixed column names."""
    return [
        {"trader_id": "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU", "trade_count": 42, "total_volume_usd": 125000.5},
        {"wallet": "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM", "active_positions": 3, "volume_7d": 98000},
        {"user_address": "DRpbCBMxVnDK7maPM5tGv6MvB3v1sRMC86PZ8okm21hy", "trade_count": "17", "total_volume_usd": "4500.25"},
        {"address": "HN7cABqLq46Es1jh92dQQisAq662SmxELLLsHHe4YWrH", "trade_count": None, "total_volume_usd": None},
    ]


@pytest.fixture
def dune_payload(raw_dune_rows):
    return {
        "execution_id": "01HKZJ2683PHF9Q9PHHQ8FW4Q1",
        "query_id": 6262729,
        "state": "QUERY_STATE_COMPLETED",
        "result": {"rows": raw_dune_rows, "metadata": {"row_count": len(raw_dune_rows)}},
    }


# ---------------------------------------------------------------------------
# Parsed model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_entries():
    return [
        LeaderboardEntry(rank=1, wallet="Aa1", active_positions=12, volume_7d=100.0, fees_lifetime=0),
        LeaderboardEntry(rank=2, wallet="Bb2", active_positions=5, volume_7d=300.0, fees_lifetime=0),
        LeaderboardEntry(rank=3, wallet="Cc3", active_positions=0, volume_7d=50.75, fees_lifetime=0),
    ]


class FakeFetcher:
    """Fetcher double that replays queued results or exceptions."""

    def __init__(self, *results):
        self._results = list(results)
        self.calls = 0

    async def fetch_leaderboard(self):
        self.calls += 1
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, Exception):
            raise result
        return result


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fetcher_factory():
    return FakeFetcher
