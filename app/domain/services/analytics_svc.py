import time
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from app.domain.services.constants import ANALYTICS_TOP_N, ANALYTICS_WINDOW_DAYS

logger = logging.getLogger(__name__)

# Purchase lines joined with their product; price-at-purchase wins over current price
_PURCHASE_LINES: List[Dict[str, Any]] = [
    {"$unwind": "$purchase_history"},
    {"$lookup": {
        "from": "products",
        "localField": "purchase_history.product_id",
        "foreignField": "product_id",
        "as": "product",
    }},
    {"$unwind": "$product"},
    {"$addFields": {
        "line_qty": {"$ifNull": ["$purchase_history.quantity", 1]},
        "line_price": {"$ifNull": ["$purchase_history.price", "$product.price"]},
    }},
]


def _window_start(now: Optional[datetime], days: int = ANALYTICS_WINDOW_DAYS) -> datetime:
    return (now or datetime.now(timezone.utc)) - timedelta(days=days)


def find_demand_gaps(preferred_hair_types: Iterable[Dict[str, Any]], supplied_hair_types: Iterable[str]) -> List[Dict[str, Any]]:
    """
    Hair types users declared that no product serves, most requested first.
    `preferred_hair_types` rows look like {"_id": "<hair type>", "count": N}.
    """
    supplied = set(supplied_hair_types)
    gaps = []
    for row in preferred_hair_types:
        hair_type = row.get("_id")
        if not hair_type or hair_type in supplied:
            continue
        gaps.append({
            "category": "Hair Care",
            "suggestion": f'Add products for "{hair_type}" hair ({row["count"]} users need this)',
            "hairType": hair_type,
            "demandScore": row["count"],
        })
    gaps.sort(key=lambda g: (-g["demandScore"], g["hairType"]))
    return gaps


async def sales_analytics(db, now: Optional[datetime] = None) -> Dict[str, Any]:
    users = db["users"]

    revenue = await users.aggregate(_PURCHASE_LINES + [
        {"$group": {
            "_id": None,
            "totalRevenue": {"$sum": {"$multiply": ["$line_qty", "$line_price"]}},
            "totalOrders": {"$sum": 1},
        }},
    ]).to_list(length=1)

    trend = await users.aggregate([
        {"$unwind": "$purchase_history"},
        {"$match": {"purchase_history.purchased_at": {"$gte": _window_start(now)}}},
        {"$group": {
            "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$purchase_history.purchased_at"}},
            "dailySales": {"$sum": 1},
        }},
        {"$sort": {"_id": 1}},
    ]).to_list(length=None)

    top_products = await users.aggregate(_PURCHASE_LINES + [
        {"$group": {
            "_id": "$product.product_id",
            "name": {"$first": "$product.name"},
            "totalSold": {"$sum": "$line_qty"},
            "revenue": {"$sum": {"$multiply": ["$line_qty", "$line_price"]}},
        }},
        {"$sort": {"totalSold": -1, "_id": 1}},
        {"$limit": ANALYTICS_TOP_N},
        {"$project": {"_id": 0, "productId": "$_id", "name": 1, "totalSold": 1, "revenue": 1}},
    ]).to_list(length=ANALYTICS_TOP_N)

    return {
        "totalRevenue": revenue[0]["totalRevenue"] if revenue else 0,
        "totalOrders": revenue[0]["totalOrders"] if revenue else 0,
        "salesTrend": [{"date": d["_id"], "dailySales": d["dailySales"]} for d in trend],
        "topProducts": top_products,
    }


async def customer_analytics(db, now: Optional[datetime] = None) -> Dict[str, Any]:
    users = db["users"]

    new_users = await users.aggregate([
        {"$match": {"created_at": {"$gte": _window_start(now)}}},
        {"$group": {
            "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$created_at"}},
            "count": {"$sum": 1},
        }},
        {"$sort": {"_id": 1}},
    ]).to_list(length=None)

    prefs = await users.aggregate([
        {"$group": {
            "_id": None,
            "hairTypes": {"$addToSet": "$preferences.hair_type"},
            "skinTypes": {"$addToSet": "$preferences.skin_type"},
        }},
    ]).to_list(length=1)

    active = await users.aggregate([
        {"$addFields": {"purchaseCount": {"$size": {"$ifNull": ["$purchase_history", []]}}}},
        {"$sort": {"purchaseCount": -1, "user_id": 1}},
        {"$limit": ANALYTICS_TOP_N},
        {"$project": {"_id": 0, "userId": "$user_id", "name": 1, "email": 1, "purchaseCount": 1}},
    ]).to_list(length=ANALYTICS_TOP_N)

    pref_row = prefs[0] if prefs else {}
    return {
        "newUsers": [{"date": d["_id"], "count": d["count"]} for d in new_users],
        "userPreferences": {
            "hairTypes": sorted(v for v in pref_row.get("hairTypes", []) if v),
            "skinTypes": sorted(v for v in pref_row.get("skinTypes", []) if v),
        },
        "activeUsers": active,
    }


async def demand_gaps(db) -> List[Dict[str, Any]]:
    preferred = await db["users"].aggregate([
        {"$match": {"preferences.hair_type": {"$nin": [None, ""]}}},
        {"$group": {"_id": "$preferences.hair_type", "count": {"$sum": 1}}},
    ]).to_list(length=None)
    supplied = await db["products"].distinct("hair_types", {"is_active": True})
    return find_demand_gaps(preferred, supplied)


async def store_analytics(db) -> Dict[str, Any]:
    t0 = time.perf_counter()
    result = {
        "sales": await sales_analytics(db),
        "customers": await customer_analytics(db),
        "productSuggestions": await demand_gaps(db),
    }
    logger.info(
        "analytics done orders=%s gaps=%s time=%.3fs",
        result["sales"]["totalOrders"], len(result["productSuggestions"]), time.perf_counter() - t0,
    )
    return result


async def list_orders(db) -> List[Dict[str, Any]]:
    t0 = time.perf_counter()
    docs = await db["users"].aggregate(_PURCHASE_LINES + [
        {"$project": {
            "_id": 0,
            "userId": "$user_id",
            "userName": "$name",
            "userEmail": "$email",
            "productId": "$product.product_id",
            "productName": "$product.name",
            "productPrice": "$line_price",
            "quantity": "$line_qty",
            "total": {"$multiply": ["$line_qty", "$line_price"]},
            "date": "$purchase_history.purchased_at",
        }},
        {"$sort": {"date": -1}},
    ]).to_list(length=None)
    logger.info("orders done items=%s time=%.3fs", len(docs), time.perf_counter() - t0)
    return docs
