"""Read-only leaderboard API consumed by the dashboard."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from services.errors import NotFoundError
from services.leaderboard_cache import leaderboard_cache
from services.profile_synth import profile_synthesizer
from services.stats import calculate_protocol_stats
from utils.logger import api_logger as logger

router = APIRouter(prefix="/api", tags=["Leaderboard"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/leaderboard")
async def get_leaderboard():
    """Ranked wallets in upstream order."""
    try:
        entries = await leaderboard_cache.get()
    except Exception as e:
        logger.error("Error fetching leaderboard", error=str(e), error_type=type(e).__name__)
        return _error(500, "Failed to fetch leaderboard data")
    return [entry.to_dict() for entry in entries]


@router.get("/stats")
async def get_stats():
    """Protocol totals over the current snapshot."""
    try:
        entries = await leaderboard_cache.get()
    except Exception as e:
        logger.error("Error fetching stats", error=str(e), error_type=type(e).__name__)
        return _error(500, "Failed to fetch protocol stats")
    return calculate_protocol_stats(entries).to_dict()


@router.get("/lp/{wallet}")
async def get_lp_profile(wallet: str):
    """Synthesized profile for one wallet of the current snapshot."""
    try:
        entry, total = await leaderboard_cache.find(wallet)
        profile = profile_synthesizer.build(entry, total)
    except NotFoundError:
        logger.info("LP profile requested for unknown wallet", wallet=wallet)
        return _error(404, "LP not found")
    except Exception as e:
        logger.error(
            "Error fetching LP profile",
            wallet=wallet,
            error=str(e),
            error_type=type(e).__name__,
        )
        return _error(500, "Failed to fetch LP profile")
    return profile.to_dict()
