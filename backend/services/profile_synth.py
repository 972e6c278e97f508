"""
Synthetic per-wallet LP profiles.

The leaderboard query only carries wallet, trade count and volume, so the
profile drill-down (positions, 30-day volume, fee accrual) is generated on
each request.  Magnitudes scale with rank: the top of the board gets a
multiplier near 2, the bottom is floored at 0.1.  All randomness comes from
the injected ``random.Random`` so a seeded instance reproduces a profile
exactly.
"""

import math
import random
from datetime import date
from typing import Callable, Optional

from models import (
    FeeDataPoint,
    LeaderboardEntry,
    LPProfile,
    Position,
    VolumeDataPoint,
)
from utils.logger import profile_logger as logger
from utils.utcnow import trailing_days, utctoday

POOL_NAMES: tuple[str, ...] = (
    "SOL-USDC", "SOL-USDT", "mSOL-SOL", "stSOL-SOL", "RAY-SOL",
    "JTO-SOL", "BONK-SOL", "WIF-SOL", "JUP-SOL", "PYTH-SOL",
    "ORCA-SOL", "MNGO-SOL", "SRM-SOL", "STEP-SOL", "COPE-SOL",
    "ETH-SOL", "BTC-SOL", "AVAX-SOL", "MATIC-SOL", "LINK-SOL",
)

HISTORY_DAYS = 30
VOLUME_30D_FACTOR = 4.2
FEE_HISTORY_OPENING_SHARE = 0.3  # share of lifetime fees accrued before the window
IN_RANGE_THRESHOLD = 0.2  # ~80% of positions report in range
MIN_MULTIPLIER = 0.1


def rank_multiplier(rank: int, total_entries: int) -> float:
    if total_entries <= 0:
        return MIN_MULTIPLIER
    return max(MIN_MULTIPLIER, (total_entries - rank + 1) / (total_entries / 2))


class ProfileSynthesizer:
    def __init__(
        self,
        rng: Optional[random.Random] = None,
        today: Callable[[], date] = utctoday,
    ):
        self._rng = rng or random.Random()
        self._today = today

    def _variance(self) -> float:
        # 50%..150% of the base value
        return 0.5 + self._rng.random()

    def positions(self, count: int, multiplier: float) -> list[Position]:
        rng = self._rng
        out: list[Position] = []
        for i in range(count):
            pool_name = POOL_NAMES[i % len(POOL_NAMES)]
            token_a, token_b = pool_name.split("-")
            liquidity = math.floor((rng.random() * 50000 + 10000) * multiplier)
            fees_24h = math.floor(rng.random() * 100 + 10) * multiplier
            fees_7d = math.floor(rng.random() * 700 + 70) * multiplier
            apr = math.floor(rng.random() * 80 + 20) + rng.random()
            out.append(
                Position(
                    id=f"pos-{i + 1}",
                    pool_name=pool_name,
                    token_pair=f"{token_a}/{token_b}",
                    liquidity=liquidity,
                    fees_24h=fees_24h,
                    fees_7d=fees_7d,
                    apr=apr,
                    in_range=rng.random() > IN_RANGE_THRESHOLD,
                )
            )
        return out

    def volume_history(self, volume_7d: float) -> list[VolumeDataPoint]:
        daily_base = volume_7d / 7
        return [
            VolumeDataPoint(
                date=day.isoformat(),
                volume=math.floor(daily_base * self._variance()),
            )
            for day in trailing_days(HISTORY_DAYS, self._today())
        ]

    def fee_history(self, fees_lifetime: float) -> list[FeeDataPoint]:
        cumulative = fees_lifetime * FEE_HISTORY_OPENING_SHARE
        daily_base = fees_lifetime * (1 - FEE_HISTORY_OPENING_SHARE) / HISTORY_DAYS
        history: list[FeeDataPoint] = []
        for day in trailing_days(HISTORY_DAYS, self._today()):
            fees = math.floor(daily_base * self._variance())
            cumulative += fees
            history.append(
                FeeDataPoint(date=day.isoformat(), fees=fees, cumulative=math.floor(cumulative))
            )
        return history

    def build(self, entry: LeaderboardEntry, total_entries: int) -> LPProfile:
        multiplier = rank_multiplier(entry.rank, total_entries)
        count = entry.active_positions
        if count <= 0:
            count = self._rng.randint(1, 10)
        positions = self.positions(count, multiplier)

        logger.debug(
            "Synthesizing LP profile",
            wallet=entry.wallet,
            rank=entry.rank,
            positions=count,
            multiplier=round(multiplier, 3),
        )

        return LPProfile(
            wallet=entry.wallet,
            rank=entry.rank,
            total_liquidity=sum(p.liquidity for p in positions),
            active_positions=count,
            volume_7d=entry.volume_7d,
            volume_30d=entry.volume_7d * VOLUME_30D_FACTOR,
            fees_lifetime=entry.fees_lifetime,
            fees_24h=sum(p.fees_24h for p in positions),
            fees_7d=sum(p.fees_7d for p in positions),
            avg_apr=sum(p.apr for p in positions) / len(positions),
            positions=positions,
            volume_history=self.volume_history(entry.volume_7d),
            fee_history=self.fee_history(entry.fees_lifetime),
        )


profile_synthesizer = ProfileSynthesizer()
