import math
from typing import Iterable

from models import LeaderboardEntry, ProtocolStats


def calculate_protocol_stats(entries: Iterable[LeaderboardEntry]) -> ProtocolStats:
    """Protocol-wide totals over one leaderboard snapshot."""
    total_trades = 0
    total_volume = 0.0
    count = 0
    for entry in entries:
        total_trades += entry.active_positions
        total_volume += entry.volume_7d
        count += 1

    return ProtocolStats(
        total_tvl=total_trades,
        volume_24h=math.floor(total_volume),
        total_unique_lps=count,
    )
