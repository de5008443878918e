"""
Generated product concepts: new-product ideas for a shopper, a catalog
market-gap analysis, and a one-off custom product.

Nothing here is stored or matched against catalog ids. The model output is
validated with pydantic; one stricter retry follows a rejected answer, after
which the request fails with RecommendationServiceUnavailable (there is no
deterministic fallback for generated content).
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from app.core.errors import MalformedUpstreamResponse, NotFound, RecommendationServiceUnavailable
from app.domain.models.concept import CustomProductConcept, MarketAnalysis, SuggestedProducts
from app.domain.models.product import Product
from app.domain.models.user import Preferences, UserProfile
from app.domain.repositories.product_repo import ProductRepo
from app.domain.repositories.user_repo import UserRepo
from app.domain.services.constants import (
    CONCEPT_CATALOG_POOL, CONCEPT_MAX_TOKENS, CONCEPT_RETRIES, MARKET_USER_POOL,
    RECENT_PURCHASES_SHOWN, SOURCE_PRODUCT_SUGGESTION, SUGGEST_NEW_MAX, SUGGEST_NEW_MIN,
)
from app.domain.services.prompts import (
    CONCEPT_SYSTEM, custom_product_task, market_analysis_task, new_products_task, schema_reminder,
)
from app.domain.services.rerank_svc import RankingOracle, build_user_context, json_minify, parse_json_object

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


async def _generate(oracle: RankingOracle, payload: Dict[str, Any], model_cls: Type[M], *, what: str) -> M:
    """Ask, validate, and on a rejected answer ask once more with the JSON schema attached."""
    user_json = json_minify(payload)
    prompt = user_json
    last_error: Optional[Exception] = None
    for attempt in range(CONCEPT_RETRIES + 1):
        text = await oracle.complete(CONCEPT_SYSTEM, prompt, max_tokens=CONCEPT_MAX_TOKENS)
        try:
            return model_cls.model_validate(parse_json_object(text))
        except (MalformedUpstreamResponse, ValidationError) as e:
            last_error = e
            reason = e.message if isinstance(e, MalformedUpstreamResponse) else str(e)
            logger.warning(f"{what} answer rejected attempt={attempt + 1}: {reason[:200]}")
            prompt = user_json + schema_reminder(model_cls.model_json_schema(by_alias=True), reason)

    raise RecommendationServiceUnavailable(
        f"Could not generate {what}", details={"reason": type(last_error).__name__},
    ) from last_error


async def _load_user(user_repo: UserRepo, user_id: str) -> UserProfile:
    user = await user_repo.get_by_user_id(user_id)
    if user is None:
        raise NotFound("User not found", details={"user_id": user_id})
    return user


async def _purchased(product_repo: ProductRepo, users: List[UserProfile]) -> Dict[str, Product]:
    ids = list(dict.fromkeys(r.product_id for u in users for r in u.purchase_history))
    if not ids:
        return {}
    return {p.product_id: p for p in await product_repo.get_many_by_product_ids(ids, active_only=False)}


def _catalog_brief(catalog: List[Product]) -> List[Dict[str, Any]]:
    return [{"name": p.name, "category": p.category, "hair_types": p.hair_types} for p in catalog]


async def suggest_new_products(
    user_id: str,
    *,
    user_repo: UserRepo,
    product_repo: ProductRepo,
    oracle: RankingOracle,
) -> Dict[str, Any]:
    t0 = time.perf_counter()
    user = await _load_user(user_repo, user_id)
    owned = await _purchased(product_repo, [user])
    catalog = await product_repo.list_active(limit=CONCEPT_CATALOG_POOL)

    result = await _generate(oracle, {
        "user": build_user_context(user, list(owned.values())),
        "catalog": _catalog_brief(catalog),
        "task": new_products_task(SUGGEST_NEW_MIN, SUGGEST_NEW_MAX),
    }, SuggestedProducts, what="product suggestions")

    recent = [owned[r.product_id].name for r in user.purchase_history[-RECENT_PURCHASES_SHOWN:] if r.product_id in owned]
    logger.info(
        "suggest_new_products done user_id=%s count=%s time=%.3fs",
        user_id, len(result.products), time.perf_counter() - t0,
    )
    return {
        "suggestedProducts": [p.model_dump(by_alias=True) for p in result.products],
        "userProfile": {
            "hairType": user.preferences.hair_type,
            "concerns": user.preferences.beauty_goals,
            "recentPurchases": recent,
        },
        "recommendationSource": SOURCE_PRODUCT_SUGGESTION,
        "message": "These are new product suggestions based on your profile that are not currently in our catalog",
    }


async def market_analysis(
    *,
    user_repo: UserRepo,
    product_repo: ProductRepo,
    oracle: RankingOracle,
) -> Dict[str, Any]:
    """Demand patterns of a bounded user sample against the whole active catalog."""
    t0 = time.perf_counter()
    users = await user_repo.list_profiles(MARKET_USER_POOL)
    catalog = await product_repo.list_active()
    bought = await _purchased(product_repo, users)

    patterns = []
    for u in users:
        products = [bought[r.product_id] for r in u.purchase_history if r.product_id in bought]
        patterns.append({
            "preferences": u.preferences.model_dump(exclude_none=True),
            "purchases": [{"category": p.category, "hair_types": p.hair_types} for p in products],
        })

    prices = [p.price for p in catalog]
    categories = sorted({p.category for p in catalog if p.category})
    catalog_summary = {
        "total_products": len(catalog),
        "categories": categories,
        "hair_types": sorted({h for p in catalog for h in p.hair_types}),
        "price_range": {"min": min(prices), "max": max(prices)} if prices else {},
    }

    analysis = await _generate(oracle, {
        "users": patterns,
        "catalog": catalog_summary,
        "task": market_analysis_task(),
    }, MarketAnalysis, what="market analysis")

    logger.info(
        "market_analysis done users=%s products=%s time=%.3fs", len(users), len(catalog), time.perf_counter() - t0,
    )
    return {
        "marketAnalysis": analysis.model_dump(by_alias=True),
        "catalogStats": {
            "totalProducts": len(catalog),
            "categories": len(categories),
            "averagePrice": round(sum(prices) / len(prices), 2) if prices else 0.0,
        },
        "generatedAt": datetime.now(timezone.utc).isoformat(),
    }


async def create_custom_product(
    user_id: str,
    *,
    specific_needs: List[str],
    budget: Any,
    overrides: Optional[Preferences],
    user_repo: UserRepo,
    product_repo: ProductRepo,
    oracle: RankingOracle,
) -> Dict[str, Any]:
    t0 = time.perf_counter()
    user = await _load_user(user_repo, user_id)
    prefs = user.preferences.merged(overrides)
    owned = await _purchased(product_repo, [user])

    concept = await _generate(oracle, {
        "user": build_user_context(user.model_copy(update={"preferences": prefs}), list(owned.values())),
        "specific_needs": specific_needs,
        "budget": budget,
        "task": custom_product_task(),
    }, CustomProductConcept, what="custom product")

    logger.info("create_custom_product done user_id=%s time=%.3fs", user_id, time.perf_counter() - t0)
    return {
        "customProduct": concept.model_dump(by_alias=True),
        "createdFor": {
            "userId": user_id,
            "hairType": prefs.hair_type,
            "specificNeeds": specific_needs,
            "budget": budget,
        },
        "createdAt": datetime.now(timezone.utc).isoformat(),
    }
