from .logger import setup_logging, get_logger, api_logger, dune_logger, cache_logger
from .retry import RetryConfig, get_with_retry
from .utcnow import utcnow, utctoday, trailing_days

__all__ = [
    # Logger
    "setup_logging",
    "get_logger",
    "api_logger",
    "dune_logger",
    "cache_logger",

    # Retry
    "RetryConfig",
    "get_with_retry",

    # Time
    "utcnow",
    "utctoday",
    "trailing_days",
]
