# app/api/v1/routers/users.py
from fastapi import APIRouter, Depends
from typing import Annotated
import logging

from app.api.deps import current_user_id, user_repo_dep
from app.api.v1.schemas.reco import PreferencesIn
from app.core.errors import NotFound
from app.domain.models.user import UserProfile
from app.domain.repositories.user_repo import UserRepo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

UserIdDep = Annotated[str, Depends(current_user_id)]
UserRepoDep = Annotated[UserRepo, Depends(user_repo_dep)]


@router.get("/me", response_model=UserProfile)
async def me(user_id: UserIdDep, users: UserRepoDep):
    user = await users.get_by_user_id(user_id)
    if user is None:
        raise NotFound("User not found", details={"user_id": user_id})
    return user


@router.put("/me/preferences", response_model=UserProfile)
async def update_preferences(body: PreferencesIn, user_id: UserIdDep, users: UserRepoDep):
    """Replace the stored preference record (unset fields are cleared)."""
    user = await users.update_preferences(user_id, body.to_domain())
    if user is None:
        raise NotFound("User not found", details={"user_id": user_id})
    logger.info("preferences updated user_id=%s hair_type=%s", user_id, user.preferences.hair_type)
    return user
