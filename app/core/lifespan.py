# app/core/lifespan.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from pymongo.errors import PyMongoError
from redis.exceptions import RedisError
from app.db import mongo, redis as r
from app.core.config import get_settings
from app.domain.repositories.review_repo import ReviewRepo

logger = logging.getLogger(__name__)


async def ensure_indexes() -> None:
    """Indexes the repositories rely on for correctness (unique review per user/product)."""
    try:
        await ReviewRepo(mongo.get_db()).ensure_indexes()
        logger.info("Mongo indexes ensured")
    except (AssertionError, PyMongoError) as e:
        logger.warning("Mongo index creation skipped: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    # Mongo is mandatory when a URI is configured
    if settings.MONGO_URI:
        await mongo.connect()
        await ensure_indexes()
    else:
        logger.warning("No MONGO_URI provided, skipping Mongo connection")

    # Redis is optional; connect() logs and disables caching on its own
    await r.connect(settings)

    yield

    # --- Shutdown ---
    try:
        await r.disconnect()
    except RedisError as e:
        logger.warning("Redis disconnect failed: %s", e)

    try:
        await mongo.disconnect()
        logger.info("Mongo disconnected")
    except Exception as e:
        logger.warning("Mongo disconnect failed: %s", e)
