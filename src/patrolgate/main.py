"""PatrolGate main application."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from patrolgate import __version__
from patrolgate.api import router
from patrolgate.api.deps import validate_auth_config
from patrolgate.config import settings
from patrolgate.db.base import close_db, init_db
from patrolgate.tasks.sweep import start_lease_sweep, stop_lease_sweep

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("patrolgate")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting PatrolGate server...")
    logger.info(f"Environment: {settings.env.value}")
    logger.info(f"Lease TTL: {settings.lease_ttl_seconds}s, prune odds 1/{settings.prune_odds}")

    # Validate authentication configuration (fail fast if insecure)
    validate_auth_config()

    await init_db()
    logger.info("Database initialized")

    if await start_lease_sweep():
        logger.info("Lease sweep task started")

    yield

    logger.info("Shutting down PatrolGate server...")
    await stop_lease_sweep()
    await close_db()
    logger.info("Shutdown complete")


app = FastAPI(
    title="PatrolGate",
    description="Lease-coordinated review queue for content changes",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allowed_methods,
    allow_headers=settings.cors_allowed_headers,
)

app.include_router(router)


def main():
    """Entry point for the application."""
    uvicorn.run(
        "patrolgate.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
