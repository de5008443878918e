# app/api/v1/routers/admin.py
from fastapi import APIRouter, Depends
import time
import logging

from app.api.deps import mongo_db
from app.domain.services.analytics_svc import list_orders, store_analytics

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/analytics")
async def analytics(db = Depends(mongo_db)):
    """Sales, customer and demand-gap analytics in one payload."""
    logger.info("Request: analytics")
    t0 = time.perf_counter()
    result = await store_analytics(db)
    logger.info("Response: analytics elapsed_time=%.4fs", time.perf_counter() - t0)
    return result


@router.get("/orders")
async def orders(db = Depends(mongo_db)):
    """Every purchase line, newest first."""
    logger.info("Request: orders")
    t0 = time.perf_counter()
    result = await list_orders(db)
    logger.info("Response: orders count=%s elapsed_time=%.4fs", len(result), time.perf_counter() - t0)
    return result
