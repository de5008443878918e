# app/domain/repositories/product_repo.py

from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime, timezone
import re
import uuid

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.domain.models.product import Product
from app.domain.models.review import ReviewStats
from app.domain.models.search import QueryPlan

_NO_ID = {"_id": 0}
_ACTIVE = {"is_active": True}


def _ci_contains(term: str) -> Dict[str, Any]:
    return {"$regex": re.escape(term), "$options": "i"}


class ProductRepo:
    """
    Catalog store backed by the 'products' collection.
    Documents are keyed by the opaque string `product_id`; Mongo's `_id` never leaves the repo.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "products"):
        self.col = db[collection_name]

    # ----- Reads --------------------------------------------------------------

    async def get_by_product_id(self, product_id: str) -> Optional[Product]:
        doc = await self.col.find_one({"product_id": product_id}, _NO_ID)
        return Product.model_validate(doc) if doc else None

    async def get_many_by_product_ids(self, ids: List[str], *, active_only: bool = True) -> List[Product]:
        """Batch fetch; result follows the order of `ids`, unknown ids are skipped."""
        if not ids:
            return []
        query: Dict[str, Any] = {"product_id": {"$in": list(ids)}}
        if active_only:
            query.update(_ACTIVE)
        docs = [doc async for doc in self.col.find(query, _NO_ID)]
        by_id = {d["product_id"]: Product.model_validate(d) for d in docs}
        return [by_id[i] for i in ids if i in by_id]

    async def list_active(self, limit: int = 0, skip: int = 0) -> List[Product]:
        cursor = self.col.find(_ACTIVE, _NO_ID).sort([("created_at", -1), ("product_id", 1)]).skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [Product.model_validate(d) async for d in cursor]

    async def find_by_hair_type(self, hair_type: str, limit: int) -> List[Product]:
        """Active products tagged with `hair_type`, best rated first."""
        cursor = (
            self.col.find({**_ACTIVE, "hair_types": hair_type}, _NO_ID)
            .sort([("average_rating", -1), ("product_id", 1)])
            .limit(limit)
        )
        return [Product.model_validate(d) async for d in cursor]

    async def find_by_category(self, category: str) -> List[Product]:
        cursor = self.col.find({**_ACTIVE, "category": category}, _NO_ID).sort("product_id", 1)
        return [Product.model_validate(d) async for d in cursor]

    async def search(self, plan: QueryPlan) -> Tuple[List[Product], int]:
        """Count and page fetch share the same filter so totals never drift from pages."""
        mql = plan.to_mql_filter()
        total = await self.col.count_documents(mql)
        cursor = (
            self.col.find(mql, _NO_ID)
            .sort(plan.sort.as_list())
            .skip(plan.window.skip)
            .limit(plan.window.take)
        )
        return [Product.model_validate(d) async for d in cursor], total

    # ----- Filter options & suggestions --------------------------------------

    async def distinct_values(self, field: str) -> List[Any]:
        values = await self.col.distinct(field, _ACTIVE)
        return sorted(v for v in values if v not in (None, ""))

    async def price_envelope(self) -> Dict[str, float]:
        pipeline = [
            {"$match": _ACTIVE},
            {"$group": {"_id": None, "minPrice": {"$min": "$price"}, "maxPrice": {"$max": "$price"}}},
        ]
        docs = await self.col.aggregate(pipeline).to_list(length=1)
        if not docs:
            return {"minPrice": 0, "maxPrice": 0}
        return {"minPrice": docs[0].get("minPrice") or 0, "maxPrice": docs[0].get("maxPrice") or 0}

    async def suggest_names(self, term: str, limit: int) -> List[str]:
        cursor = self.col.find({**_ACTIVE, "name": _ci_contains(term)}, {"_id": 0, "name": 1}).limit(limit)
        return [d["name"] async for d in cursor if d.get("name")]

    async def suggest_categories(self, term: str, limit: int) -> List[str]:
        values = await self.col.distinct("category", {**_ACTIVE, "category": _ci_contains(term)})
        return sorted(v for v in values if v)[:limit]

    async def suggest_ingredients(self, term: str, limit: int) -> List[str]:
        pipeline = [
            {"$match": _ACTIVE},
            {"$unwind": "$ingredients"},
            {"$match": {"ingredients": _ci_contains(term)}},
            {"$group": {"_id": "$ingredients"}},
            {"$sort": {"_id": 1}},
            {"$limit": limit},
        ]
        docs = await self.col.aggregate(pipeline).to_list(length=limit)
        return [d["_id"] for d in docs]

    # ----- Writes (catalog management) ---------------------------------------

    async def create(self, fields: Dict[str, Any]) -> Product:
        now = datetime.now(timezone.utc)
        doc = {
            **fields,
            "product_id": fields.get("product_id") or uuid.uuid4().hex,
            "review_count": 0,
            "average_rating": 0.0,
            "created_at": now,
            "updated_at": now,
        }
        doc.setdefault("is_active", True)
        await self.col.insert_one(dict(doc))  # insert_one mutates its argument with _id
        return Product.model_validate(doc)

    async def update(self, product_id: str, fields: Dict[str, Any]) -> Optional[Product]:
        update = {**fields, "updated_at": datetime.now(timezone.utc)}
        doc = await self.col.find_one_and_update(
            {"product_id": product_id},
            {"$set": update},
            projection=_NO_ID,
            return_document=ReturnDocument.AFTER,
        )
        return Product.model_validate(doc) if doc else None

    async def delete(self, product_id: str) -> bool:
        res = await self.col.delete_one({"product_id": product_id})
        return res.deleted_count > 0

    async def set_review_stats(self, stats: ReviewStats) -> None:
        await self.col.update_one(
            {"product_id": stats.product_id},
            {"$set": {"review_count": stats.review_count, "average_rating": stats.average_rating}},
            upsert=False,
        )
