import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Estimated protocol fee taken on zap-out volume.
FEE_RATE = 0.003

# Upstream column names per logical field, in priority order.  The first
# candidate holding a non-empty value wins.
WALLET_COLUMNS: tuple[str, ...] = ("trader_id", "wallet", "user_address", "address")
ACTIVE_POSITIONS_COLUMNS: tuple[str, ...] = ("trade_count", "active_positions")
VOLUME_COLUMNS: tuple[str, ...] = ("total_volume_usd", "volume_7d")
# Fees are estimated from the lifetime volume column only.
FEE_VOLUME_COLUMNS: tuple[str, ...] = ("total_volume_usd",)


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0 or value != value
    return False


def _coerce_number(value: object) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", ""))
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def first_text(row: dict, columns: tuple[str, ...], default: str = "") -> str:
    """Value of the first candidate column holding a non-empty string."""
    for column in columns:
        value = row.get(column)
        if _is_empty(value):
            continue
        return str(value).strip()
    return default


def first_number(row: dict, columns: tuple[str, ...], default: float = 0.0) -> float:
    """Value of the first candidate column holding a non-zero number."""
    for column in columns:
        value = row.get(column)
        if _is_empty(value):
            continue
        number = _coerce_number(value)
        if number is None or number == 0:
            continue
        return number
    return default


class _CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class LeaderboardEntry(_CamelModel):
    """One ranked wallet from the analytics query"""

    rank: int
    wallet: str
    active_positions: int = Field(0, alias="activePositions")
    volume_7d: float = Field(0.0, alias="volume7D")
    fees_lifetime: int = Field(0, alias="feesLifetime")

    @classmethod
    def from_dune_row(cls, row: dict, rank: int) -> "LeaderboardEntry":
        return cls(
            rank=rank,
            wallet=first_text(row, WALLET_COLUMNS),
            active_positions=int(first_number(row, ACTIVE_POSITIONS_COLUMNS)),
            volume_7d=first_number(row, VOLUME_COLUMNS),
            fees_lifetime=math.floor(first_number(row, FEE_VOLUME_COLUMNS) * FEE_RATE),
        )


class ProtocolStats(_CamelModel):
    # totalTVL carries the summed trade count; the name is kept for the
    # dashboard's wire format.
    total_tvl: int = Field(0, alias="totalTVL")
    volume_24h: int = Field(0, alias="volume24H")
    total_unique_lps: int = Field(0, alias="totalUniqueLPs")


class Position(_CamelModel):
    id: str
    pool_name: str = Field(alias="poolName")
    token_pair: str = Field(alias="tokenPair")
    liquidity: float
    fees_24h: float = Field(alias="fees24H")
    fees_7d: float = Field(alias="fees7D")
    apr: float
    in_range: bool = Field(alias="inRange")


class VolumeDataPoint(_CamelModel):
    date: str  # YYYY-MM-DD
    volume: float


class FeeDataPoint(_CamelModel):
    date: str  # YYYY-MM-DD
    fees: float
    cumulative: float


class LPProfile(_CamelModel):
    """Per-wallet drill-down; synthesized from a LeaderboardEntry"""

    wallet: str
    rank: int
    total_liquidity: float = Field(alias="totalLiquidity")
    active_positions: int = Field(alias="activePositions")
    volume_7d: float = Field(alias="volume7D")
    volume_30d: float = Field(alias="volume30D")
    fees_lifetime: float = Field(alias="feesLifetime")
    fees_24h: float = Field(alias="fees24H")
    fees_7d: float = Field(alias="fees7D")
    avg_apr: float = Field(alias="avgApr")
    positions: list[Position] = []
    volume_history: list[VolumeDataPoint] = Field(default_factory=list, alias="volumeHistory")
    fee_history: list[FeeDataPoint] = Field(default_factory=list, alias="feeHistory")
