class LeaderboardError(Exception):
    """Base class for failures the API turns into an error response."""


class ProviderError(LeaderboardError):
    """The analytics provider failed or returned nothing usable."""


class ConfigurationError(ProviderError):
    """A required provider credential is missing."""


class NotFoundError(LeaderboardError):
    """The requested wallet is not in the current leaderboard snapshot."""
