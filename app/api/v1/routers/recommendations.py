# app/api/v1/routers/recommendations.py
from fastapi import APIRouter, Body, Depends
from typing import Annotated, Optional
import time
import logging

from app.api.deps import current_user_id, product_repo_dep, ranking_oracle_dep, user_repo_dep
from app.api.v1.schemas.reco import CustomProductIn, PreferencesIn
from app.domain.models.product import RecommendationResult
from app.domain.repositories.product_repo import ProductRepo
from app.domain.repositories.user_repo import UserRepo
from app.domain.services import concepts_svc, recommendation_svc
from app.domain.services.rerank_svc import RankingOracle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recommendations", tags=["recommendations"])

UserIdDep = Annotated[str, Depends(current_user_id)]
ProductRepoDep = Annotated[ProductRepo, Depends(product_repo_dep)]
UserRepoDep = Annotated[UserRepo, Depends(user_repo_dep)]
OracleDep = Annotated[RankingOracle, Depends(ranking_oracle_dep)]


def _log_response(op: str, user_id: str, res: RecommendationResult, start_time: float) -> None:
    logger.info(
        "Response: %s user_id=%s source=%s count=%s elapsed_time=%.4fs",
        op, user_id, res.recommendation_source, len(res.recommended_products), time.perf_counter() - start_time,
    )


async def _content_based(user_id, users, products, overrides: Optional[PreferencesIn]) -> RecommendationResult:
    logger.info("Request: content_based user_id=%s overrides=%s", user_id, overrides is not None)
    start_time = time.perf_counter()
    res = await recommendation_svc.content_based_recommendations(
        user_id,
        user_repo=users,
        product_repo=products,
        overrides=overrides.to_domain() if overrides else None,
    )
    _log_response("content_based", user_id, res, start_time)
    return res


async def _hybrid(user_id, users, products, oracle, overrides: Optional[PreferencesIn]) -> RecommendationResult:
    logger.info("Request: hybrid user_id=%s overrides=%s", user_id, overrides is not None)
    start_time = time.perf_counter()
    res = await recommendation_svc.hybrid_recommendations(
        user_id,
        user_repo=users,
        product_repo=products,
        oracle=oracle,
        overrides=overrides.to_domain() if overrides else None,
    )
    _log_response("hybrid", user_id, res, start_time)
    return res


@router.get("/content-based", response_model=RecommendationResult)
async def content_based(user_id: UserIdDep, users: UserRepoDep, products: ProductRepoDep):
    """Active products matching the user's declared hair type (400 when preferences are not set)."""
    return await _content_based(user_id, users, products, None)


@router.post("/content-based", response_model=RecommendationResult)
async def content_based_with_overrides(
    user_id: UserIdDep,
    users: UserRepoDep,
    products: ProductRepoDep,
    overrides: Optional[PreferencesIn] = Body(default=None),
):
    return await _content_based(user_id, users, products, overrides)


@router.get("/collaborative", response_model=RecommendationResult)
async def collaborative(user_id: UserIdDep, users: UserRepoDep, products: ProductRepoDep):
    """Products bought by the 5 most similar shoppers that this user does not own yet."""
    logger.info("Request: collaborative user_id=%s", user_id)
    start_time = time.perf_counter()
    res = await recommendation_svc.collaborative_recommendations(user_id, user_repo=users, product_repo=products)
    _log_response("collaborative", user_id, res, start_time)
    return res


@router.get("/hybrid", response_model=RecommendationResult)
async def hybrid(user_id: UserIdDep, users: UserRepoDep, products: ProductRepoDep, oracle: OracleDep):
    """
    Content-based + collaborative candidates, reranked by the ranking service.
    Unusable ranking answers fall back to merge order; an unreachable service returns 503.
    """
    return await _hybrid(user_id, users, products, oracle, None)


@router.post("/hybrid", response_model=RecommendationResult)
async def hybrid_with_overrides(
    user_id: UserIdDep,
    users: UserRepoDep,
    products: ProductRepoDep,
    oracle: OracleDep,
    overrides: Optional[PreferencesIn] = Body(default=None),
):
    return await _hybrid(user_id, users, products, oracle, overrides)


@router.get("/ai", response_model=RecommendationResult)
async def ai(user_id: UserIdDep, users: UserRepoDep, products: ProductRepoDep, oracle: OracleDep):
    """Ranking service picks directly from the first 50 active catalog products."""
    logger.info("Request: ai user_id=%s", user_id)
    start_time = time.perf_counter()
    res = await recommendation_svc.ai_recommendations(user_id, user_repo=users, product_repo=products, oracle=oracle)
    _log_response("ai", user_id, res, start_time)
    return res


# ---------- generated concepts (not catalog products) -------------------------

@router.get("/suggest-new-products")
async def suggest_new_products(user_id: UserIdDep, users: UserRepoDep, products: ProductRepoDep, oracle: OracleDep):
    """Ideas for products the catalog does not carry yet, tailored to the user."""
    logger.info("Request: suggest_new_products user_id=%s", user_id)
    start_time = time.perf_counter()
    res = await concepts_svc.suggest_new_products(user_id, user_repo=users, product_repo=products, oracle=oracle)
    logger.info(
        "Response: suggest_new_products user_id=%s count=%s elapsed_time=%.4fs",
        user_id, len(res["suggestedProducts"]), time.perf_counter() - start_time,
    )
    return res


@router.get("/market-analysis")
async def market_analysis(user_id: UserIdDep, users: UserRepoDep, products: ProductRepoDep, oracle: OracleDep):
    """Category, hair-type and price gaps between shopper demand and the active catalog."""
    logger.info("Request: market_analysis user_id=%s", user_id)
    start_time = time.perf_counter()
    res = await concepts_svc.market_analysis(user_repo=users, product_repo=products, oracle=oracle)
    logger.info("Response: market_analysis elapsed_time=%.4fs", time.perf_counter() - start_time)
    return res


@router.post("/create-custom-product")
async def create_custom_product(
    user_id: UserIdDep,
    users: UserRepoDep,
    products: ProductRepoDep,
    oracle: OracleDep,
    body: Optional[CustomProductIn] = Body(default=None),
):
    """One-off product concept for the user's specific needs and budget."""
    body = body or CustomProductIn()
    logger.info("Request: create_custom_product user_id=%s needs=%s", user_id, len(body.specific_needs))
    start_time = time.perf_counter()
    res = await concepts_svc.create_custom_product(
        user_id,
        specific_needs=body.specific_needs,
        budget=body.budget,
        overrides=body.preferences.to_domain() if body.preferences else None,
        user_repo=users,
        product_repo=products,
        oracle=oracle,
    )
    logger.info("Response: create_custom_product user_id=%s elapsed_time=%.4fs", user_id, time.perf_counter() - start_time)
    return res
