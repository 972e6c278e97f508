from .leaderboard import (
    LeaderboardEntry,
    ProtocolStats,
    Position,
    VolumeDataPoint,
    FeeDataPoint,
    LPProfile,
)

__all__ = [
    "LeaderboardEntry",
    "ProtocolStats",
    "Position",
    "VolumeDataPoint",
    "FeeDataPoint",
    "LPProfile",
]
