# app/domain/repositories/user_repo.py

from __future__ import annotations
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.domain.models.user import Preferences, UserProfile

# Credentials and interaction logs stay inside the account service
_PROFILE_PROJECTION = {"_id": 0, "password_hash": 0, "interaction_history": 0}


class UserRepo:
    """
    Read side of the user profile store ('users' collection).
    Purchase history and cart are written by the checkout flow, never here.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "users"):
        self.col = db[collection_name]

    async def get_by_user_id(self, user_id: str) -> Optional[UserProfile]:
        doc = await self.col.find_one({"user_id": user_id}, _PROFILE_PROJECTION)
        return UserProfile.model_validate(doc) if doc else None

    async def list_peers(self, exclude_user_id: str, limit: int) -> List[UserProfile]:
        """Bounded pool of other users with at least one purchase, in user_id order."""
        cursor = (
            self.col.find(
                {"user_id": {"$ne": exclude_user_id}, "purchase_history.0": {"$exists": True}},
                {"_id": 0, "user_id": 1, "purchase_history": 1},
            )
            .sort("user_id", 1)
            .limit(limit)
        )
        return [UserProfile.model_validate(d) async for d in cursor]

    async def list_profiles(self, limit: int) -> List[UserProfile]:
        """Preferences and purchases of up to `limit` users, in user_id order."""
        cursor = (
            self.col.find({}, {"_id": 0, "user_id": 1, "preferences": 1, "purchase_history": 1})
            .sort("user_id", 1)
            .limit(limit)
        )
        return [UserProfile.model_validate(d) async for d in cursor]

    async def update_preferences(self, user_id: str, prefs: Preferences) -> Optional[UserProfile]:
        doc = await self.col.find_one_and_update(
            {"user_id": user_id},
            {"$set": {"preferences": prefs.model_dump()}},
            projection=_PROFILE_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        return UserProfile.model_validate(doc) if doc else None
