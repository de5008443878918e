# app/domain/repositories/review_repo.py

from __future__ import annotations
from typing import List, Optional
import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from app.core.errors import InvalidInput
from app.domain.models.review import Review, ReviewStats

logger = logging.getLogger(__name__)

_NO_ID = {"_id": 0}


class ReviewRepo:
    """
    Reviews collection. The unique (product_id, user_id) index created by
    `ensure_indexes` backs the one-review rule against concurrent inserts.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "reviews"):
        self.col = db[collection_name]

    async def ensure_indexes(self) -> None:
        await self.col.create_index(
            [("product_id", ASCENDING), ("user_id", ASCENDING)],
            unique=True,
            name="uniq_product_user",
        )
        await self.col.create_index([("created_at", DESCENDING)], name="created_at_desc")

    async def find_for_user(self, user_id: str, product_id: str) -> Optional[Review]:
        doc = await self.col.find_one({"user_id": user_id, "product_id": product_id}, _NO_ID)
        return Review.model_validate(doc) if doc else None

    async def insert(self, review: Review) -> Review:
        try:
            await self.col.insert_one(review.model_dump())
        except DuplicateKeyError as e:
            logger.info("duplicate review rejected product_id=%s user_id=%s", review.product_id, review.user_id)
            raise InvalidInput("You already reviewed this product", details={"product_id": review.product_id}) from e
        return review

    async def list_for_product(self, product_id: str) -> List[Review]:
        cursor = self.col.find({"product_id": product_id}, _NO_ID).sort("created_at", -1)
        return [Review.model_validate(d) async for d in cursor]

    async def latest(self, limit: int) -> List[Review]:
        cursor = self.col.find({}, _NO_ID).sort("created_at", -1).limit(limit)
        return [Review.model_validate(d) async for d in cursor]

    async def compute_stats(self, product_id: str) -> Optional[ReviewStats]:
        pipeline = [
            {"$match": {"product_id": product_id}},
            {"$group": {"_id": "$product_id", "avg": {"$avg": "$rating"}, "n": {"$sum": 1}}},
        ]
        docs = await self.col.aggregate(pipeline).to_list(length=1)
        if not docs:
            return None
        return ReviewStats(
            product_id=product_id,
            review_count=int(docs[0]["n"]),
            average_rating=round(float(docs[0]["avg"]), 1),
        )
