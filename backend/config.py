from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# Get the directory where this config file is located.
_BACKEND_DIR = Path(__file__).parent.resolve()
_PROJECT_ROOT = _BACKEND_DIR.parent.resolve()


class Settings(BaseSettings):
    # Dune Analytics
    DUNE_API_KEY: str = ""  # Checked per request; an empty key surfaces as a 500
    DUNE_API_URL: str = "https://api.dune.com/api/v1"
    DUNE_QUERY_ID: int = 6262729  # Meteora zap-out traders query
    DUNE_TIMEOUT_SECONDS: float = 30.0
    DUNE_MAX_ATTEMPTS: int = 3

    # Leaderboard cache
    LEADERBOARD_CACHE_TTL_SECONDS: float = 300.0  # 5 minute freshness window

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # API
    CORS_ORIGINS: list[str] = ["*"]

    @field_validator("DUNE_API_KEY", mode="before")
    @classmethod
    def _strip_api_key(cls, value: object) -> str:
        return str(value or "").strip()

    @field_validator("DUNE_API_URL", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: object) -> str:
        return str(value or "").strip().rstrip("/")

    @field_validator("DUNE_MAX_ATTEMPTS")
    @classmethod
    def _at_least_one_attempt(cls, value: int) -> int:
        return max(1, int(value))

    class Config:
        # Load project-root .env first (common workflow), then backend/.env
        # as an override if present.
        env_file = (
            str(_PROJECT_ROOT / ".env"),
            str(_BACKEND_DIR / ".env"),
        )
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
