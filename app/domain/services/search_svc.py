import json
import logging
import time
from typing import Any, Dict, List

from app.core.config import get_settings
from app.domain.models.search import FilterQuery
from app.domain.repositories.product_repo import ProductRepo
from app.domain.services.constants import (
    SUGGEST_CATEGORIES, SUGGEST_INGREDIENTS, SUGGEST_MIN_CHARS, SUGGEST_PRODUCTS,
)
from app.domain.services.search_compiler import compile_filter_query, paginate
from app.utils.cache import cache_delete, cache_get, cache_set

logger = logging.getLogger(__name__)


def _json_preview(obj: Any, limit: int = 1000) -> str:
    """Minify and truncate JSON for debug logs."""
    try:
        s = json.dumps(obj, separators=(",", ":"), ensure_ascii=False, default=str)
        return s if len(s) <= limit else s[:limit] + "…[truncated]"
    except Exception:
        return "<unserializable>"


def echo_filters(fq: FilterQuery) -> Dict[str, Any]:
    """Filter values as the client sent them (after coercion), for UI state reconciliation."""
    return {
        "query": fq.term or "",
        "category": fq.category or "",
        "subcategory": fq.subcategory or "",
        "priceRange": {"min": fq.min_price, "max": fq.max_price},
        "hairType": fq.hair_types or None,
        "skinType": fq.skin_types or None,
        "minRating": fq.min_rating,
        "sortBy": fq.sort_by,
        "sortOrder": fq.sort_order,
    }


async def search_products(product_repo: ProductRepo, fq: FilterQuery) -> Dict[str, Any]:
    t0 = time.perf_counter()
    plan = compile_filter_query(fq)
    logger.debug("search plan filter=%s sort=%s", _json_preview(plan.to_mql_filter()), plan.sort.as_list())

    products, total = await product_repo.search(plan)
    pagination = paginate(plan.window.page, plan.window.limit, total)
    logger.info(
        "search done total=%s page=%s/%s returned=%s time=%.3fs",
        total, pagination.current_page, pagination.total_pages, len(products), time.perf_counter() - t0,
    )
    return {
        "products": [p.model_dump(mode="json") for p in products],
        "pagination": pagination.model_dump(by_alias=True),
        "filters": echo_filters(fq),
    }


async def search_suggestions(product_repo: ProductRepo, term: str | None) -> List[Dict[str, str]]:
    term = (term or "").strip()
    if len(term) < SUGGEST_MIN_CHARS:
        return []

    names = await product_repo.suggest_names(term, SUGGEST_PRODUCTS)
    categories = await product_repo.suggest_categories(term, SUGGEST_CATEGORIES)
    ingredients = await product_repo.suggest_ingredients(term, SUGGEST_INGREDIENTS)

    suggestions = (
        [{"type": "product", "value": v} for v in names[:SUGGEST_PRODUCTS]]
        + [{"type": "category", "value": v} for v in categories[:SUGGEST_CATEGORIES]]
        + [{"type": "ingredient", "value": v} for v in ingredients[:SUGGEST_INGREDIENTS]]
    )
    logger.debug("suggestions term=%r n=%s", term, len(suggestions))
    return suggestions


async def filter_options(product_repo: ProductRepo, redis) -> Dict[str, Any]:
    """Distinct filter values present in the active catalog, cached until the next catalog write."""
    settings = get_settings()
    key = settings.filter_options_cache_key

    if cached := await cache_get(redis, key):
        logger.info("filter_options cache_hit key=%s", key)
        return cached

    options = {
        "categories": await product_repo.distinct_values("category"),
        "subcategories": await product_repo.distinct_values("subcategory"),
        "hairTypes": await product_repo.distinct_values("hair_types"),
        "skinTypes": await product_repo.distinct_values("skin_types"),
        "priceRange": await product_repo.price_envelope(),
    }
    await cache_set(redis, key, options, ex=settings.filter_options_cache_ttl)
    logger.info("filter_options cache_miss key=%s categories=%s", key, len(options["categories"]))
    return options


async def invalidate_filter_options(redis) -> None:
    await cache_delete(redis, get_settings().filter_options_cache_key)
