import sys
from pathlib import Path

import httpx
import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from models import LeaderboardEntry  # noqa: E402
from services.dune import DuneClient, normalize_rows  # noqa: E402
from services.errors import ConfigurationError, ProviderError  # noqa: E402
from utils.retry import RetryConfig  # noqa: E402

RESULTS_URL = "https://dune.test/api/v1/query/6262729/results"


def _client(handler, api_key: str = "test-key", attempts: int = 1) -> DuneClient:
    return DuneClient(
        api_key=api_key,
        base_url="https://dune.test/api/v1/",
        query_id=6262729,
        retry=RetryConfig(max_attempts=attempts, base_delay=0.0, jitter=False),
        transport=httpx.MockTransport(handler),
    )


# ---------------------------------------------------------------------------
# Row normalization
# ---------------------------------------------------------------------------


def test_normalize_rows_maps_alternate_column_names(raw_dune_rows):
    entries = normalize_rows(raw_dune_rows)

    assert [e.rank for e in entries] == [1, 2, 3, 4]
    assert entries[0].wallet == "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
    assert entries[0].active_positions == 42
    assert entries[0].volume_7d == 125000.5
    assert entries[0].fees_lifetime == 375

    assert entries[1].wallet == "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
    assert entries[1].active_positions == 3
    assert entries[1].volume_7d == 98000
    assert entries[1].fees_lifetime == 0  # no total_volume_usd column

    # Numeric strings are coerced
    assert entries[2].active_positions == 17
    assert entries[2].volume_7d == 4500.25
    assert entries[2].fees_lifetime == 13

    # Missing numbers default to zero
    assert entries[3].wallet == "HN7cABqLq46Es1jh92dQQisAq662SmxELLLsHHe4YWrH"
    assert entries[3].active_positions == 0
    assert entries[3].volume_7d == 0
    assert entries[3].fees_lifetime == 0


def test_first_candidate_with_a_value_wins():
    row = {
        "trader_id": "",
        "wallet": "WalletB",
        "user_address": "WalletC",
        "trade_count": 0,
        "active_positions": 5,
        "total_volume_usd": None,
        "volume_7d": "1200",
    }
    entry = LeaderboardEntry.from_dune_row(row, rank=7)

    assert entry.rank == 7
    assert entry.wallet == "WalletB"
    assert entry.active_positions == 5
    assert entry.volume_7d == 1200.0
    assert entry.fees_lifetime == 0


def test_higher_priority_column_shadows_lower_ones():
    entry = LeaderboardEntry.from_dune_row(
        {"trader_id": "First", "address": "Last", "trade_count": 2, "active_positions": 9},
        rank=1,
    )
    assert entry.wallet == "First"
    assert entry.active_positions == 2


def test_missing_wallet_defaults_to_empty_string():
    entry = LeaderboardEntry.from_dune_row({"total_volume_usd": 10}, rank=1)
    assert entry.wallet == ""
    assert entry.volume_7d == 10


def test_fee_estimate_uses_lifetime_volume_column_only():
    only_7d = normalize_rows([{"wallet": "W", "volume_7d": 1000}])[0]
    assert only_7d.volume_7d == 1000
    assert only_7d.fees_lifetime == 0

    both = LeaderboardEntry.from_dune_row(
        {"wallet": "W", "total_volume_usd": 2000, "volume_7d": 1000}, rank=1
    )
    assert both.volume_7d == 2000
    assert both.fees_lifetime == 6


def test_explicit_api_key_overrides_settings(monkeypatch):
    import services.dune as dune

    monkeypatch.setattr(dune.settings, "DUNE_API_KEY", "from-settings")

    assert DuneClient(api_key="explicit").api_key == "explicit"
    assert DuneClient().api_key == "from-settings"


def test_rank_follows_row_order_not_volume():
    rows = [
        {"trader_id": "small", "total_volume_usd": 10},
        {"trader_id": "big", "total_volume_usd": 10_000},
    ]
    entries = normalize_rows(rows)
    assert [(e.wallet, e.rank) for e in entries] == [("small", 1), ("big", 2)]


def test_duplicate_wallets_keep_first_row():
    rows = [
        {"trader_id": "dup", "total_volume_usd": 50},
        {"trader_id": "other", "total_volume_usd": 40},
        {"trader_id": "dup", "total_volume_usd": 999},
        {"trader_id": "last", "total_volume_usd": 30},
    ]
    entries = normalize_rows(rows)

    assert [e.wallet for e in entries] == ["dup", "other", "last"]
    assert [e.rank for e in entries] == [1, 2, 3]
    assert entries[0].volume_7d == 50


def test_entry_serializes_with_wire_names():
    entry = LeaderboardEntry.from_dune_row(
        {"trader_id": "W", "trade_count": 4, "total_volume_usd": 1000}, rank=1
    )
    assert entry.to_dict() == {
        "rank": 1,
        "wallet": "W",
        "activePositions": 4,
        "volume7D": 1000.0,
        "feesLifetime": 3,
    }


# ---------------------------------------------------------------------------
# HTTP behaviour
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_leaderboard_reads_latest_result(dune_payload):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("X-DUNE-API-KEY")
        return httpx.Response(200, json=dune_payload)

    client = _client(handler)
    entries = await client.fetch_leaderboard()
    await client.close()

    assert seen == {"url": RESULTS_URL, "key": "test-key"}
    assert len(entries) == 4
    assert entries[0].rank == 1


@pytest.mark.asyncio
async def test_missing_api_key_raises_configuration_error():
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover
        raise AssertionError("no request expected without an API key")

    client = _client(handler, api_key="")
    with pytest.raises(ConfigurationError):
        await client.fetch_leaderboard()


def test_configuration_error_is_a_provider_error():
    assert issubclass(ConfigurationError, ProviderError)


@pytest.mark.asyncio
async def test_result_without_rows_raises_provider_error():
    client = _client(lambda request: httpx.Response(200, json={"state": "QUERY_STATE_PENDING"}))
    with pytest.raises(ProviderError, match="No data returned"):
        await client.fetch_leaderboard()


@pytest.mark.asyncio
async def test_empty_rows_is_an_empty_leaderboard():
    client = _client(lambda request: httpx.Response(200, json={"result": {"rows": []}}))
    assert await client.fetch_leaderboard() == []


@pytest.mark.asyncio
async def test_http_error_raises_provider_error():
    client = _client(lambda request: httpx.Response(401, json={"error": "invalid API Key"}))
    with pytest.raises(ProviderError):
        await client.fetch_leaderboard()


@pytest.mark.asyncio
async def test_transport_error_raises_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    with pytest.raises(ProviderError):
        await client.fetch_leaderboard()


@pytest.mark.asyncio
async def test_non_json_body_raises_provider_error():
    client = _client(lambda request: httpx.Response(200, text="<html>gateway</html>"))
    with pytest.raises(ProviderError):
        await client.fetch_leaderboard()


@pytest.mark.asyncio
async def test_transient_status_is_retried(dune_payload):
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, json=dune_payload)

    client = _client(handler, attempts=3)
    entries = await client.fetch_leaderboard()

    assert calls["n"] == 2
    assert len(entries) == 4
