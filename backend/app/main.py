from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from app.api import health, users, packages, trips, matching
from app.config import get_settings
from app.database import init_db

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Colis Voyageurs matching ({settings.env})")

    if settings.database_url.startswith("sqlite"):
        logger.info("SQLite detected - creating tables if needed")
        init_db()

    logger.info(
        f"Matching defaults: radius={settings.match_search_radius_days}d, "
        f"cache ttl={settings.match_cache_ttl_hours}h"
    )

    yield

    logger.info("Shutting down Colis Voyageurs matching")


app = FastAPI(
    title="Colis Voyageurs",
    description="Matches packages with travelers' spare luggage capacity",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["health"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(packages.router, prefix="/api/packages", tags=["packages"])
app.include_router(trips.router, prefix="/api/trips", tags=["trips"])
app.include_router(matching.router, prefix="/api/matching", tags=["matching"])


# Health check for monitoring/Docker
@app.get("/ping")
async def ping():
    """Simple ping endpoint for health checks."""
    return {"status": "ok"}
