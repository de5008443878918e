# app/api/deps.py
from fastapi import Depends, Header
from app.core.errors import InvalidInput
from app.db.mongo import get_db
from app.db.redis import get_redis
from app.domain.repositories.product_repo import ProductRepo
from app.domain.repositories.review_repo import ReviewRepo
from app.domain.repositories.user_repo import UserRepo
from app.domain.services.rerank_svc import OpenAIRankingOracle, RankingOracle

# Dependency for injecting the MongoDB database into endpoints/services
async def mongo_db(db = Depends(get_db)):
    return db

# Dependency for injecting the Redis client (or None) into endpoints/services
def redis_dep():
    return get_redis()

def product_repo_dep(db = Depends(mongo_db)) -> ProductRepo:
    return ProductRepo(db)

def user_repo_dep(db = Depends(mongo_db)) -> UserRepo:
    return UserRepo(db)

def review_repo_dep(db = Depends(mongo_db)) -> ReviewRepo:
    return ReviewRepo(db)

def ranking_oracle_dep() -> RankingOracle:
    return OpenAIRankingOracle()

async def current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """
    Acting user, as resolved by the authentication layer in front of this service
    and forwarded in the 'X-User-Id' header.
    """
    if not x_user_id or not x_user_id.strip():
        raise InvalidInput("Missing X-User-Id header")
    return x_user_id.strip()
