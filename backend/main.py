import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from api import router
from services.dune import dune_client
from services.leaderboard_cache import leaderboard_cache
from utils.logger import setup_logging, get_logger
from utils.utcnow import utcnow

# Setup logging
setup_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)
logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info(
        "Starting LP leaderboard API",
        query_id=settings.DUNE_QUERY_ID,
        cache_ttl_seconds=settings.LEADERBOARD_CACHE_TTL_SECONDS,
    )
    if not settings.DUNE_API_KEY:
        # Not fatal: requests answer 500 until a key is configured.
        logger.warning("DUNE_API_KEY is not set; leaderboard requests will fail")

    yield

    logger.info("Shutting down...")
    try:
        await dune_client.close()
    except Exception as e:
        logger.warning("Failed to close Dune client", error=str(e))
    logger.info("Shutdown complete")


app = FastAPI(
    title="LP Leaderboard",
    description="Meteora zap-out leaderboard, protocol stats and LP profiles",
    version="1.0.0",
    lifespan=lifespan,
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        traceback=traceback.format_exc(),
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


# API routes
app.include_router(router)


# Health checks
@app.get("/health")
async def health_check():
    """Basic health check - for load balancers"""
    return {"status": "ok"}


@app.get("/health/detailed")
async def detailed_health_check():
    """Cache state and provider configuration, polled by the dashboard"""
    cache = leaderboard_cache.status()
    return {
        "status": "ok" if cache["hasSnapshot"] or settings.DUNE_API_KEY else "degraded",
        "timestamp": utcnow().isoformat() + "Z",
        "cache": cache,
        "config": {
            "query_id": settings.DUNE_QUERY_ID,
            "cache_ttl_seconds": settings.LEADERBOARD_CACHE_TTL_SECONDS,
            "api_key_configured": bool(settings.DUNE_API_KEY),
        },
    }


if __name__ == "__main__":
    import os
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8000)),
        # Single worker: the leaderboard cache lives in process memory.
        timeout_keep_alive=30,
    )
