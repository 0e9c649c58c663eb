import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from release_index.api.versions import router as versions_router
from release_index.core.dependencies import get_refresher, get_settings

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Release Index API",
    version="0.1.0",
    description="Merged download index of editor releases, refreshed from two upstream archives.",
)

# CORS is open to every origin; the API is read-only.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event() -> None:
    """
    Load the cache once and start the periodic upstream check.
    """
    await get_refresher().start()
    settings = get_settings()
    logger.info(f"API running at http://{settings.host}:{settings.port}")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    await get_refresher().stop()


@app.get("/health")
async def health() -> dict:
    """
    Lightweight liveness check; see /api/v1/status for cache health.
    """
    return {"status": "ok"}


app.include_router(versions_router, prefix="/api/v1", tags=["versions"])


if __name__ == "__main__":
    """
    Allow running `python -m release_index.main` to start the Uvicorn server.
    """
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "release_index.main:app",
        host=settings.host,
        port=settings.port,
    )
