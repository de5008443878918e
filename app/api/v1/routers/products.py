# app/api/v1/routers/products.py

from fastapi import APIRouter, Depends, Query
from typing import List, Optional
import time

from app.api.deps import product_repo_dep, redis_dep
from app.api.v1.schemas.catalog import ProductIn, ProductPatch
from app.core.config import get_settings
from app.domain.models.product import Product
from app.domain.repositories.product_repo import ProductRepo
from app.domain.services import catalog_svc
from app.domain.services.search_compiler import build_filter_query
from app.domain.services.search_svc import filter_options, search_products, search_suggestions

import logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=List[Product])
async def list_products(repo: ProductRepo = Depends(product_repo_dep)):
    return await catalog_svc.list_products(repo)


@router.get("/categories", response_model=List[str])
async def list_categories(repo: ProductRepo = Depends(product_repo_dep)):
    return await catalog_svc.list_categories(repo)


@router.get("/search")
async def search(
    q: Optional[str] = Query(None, description="Free text over name, description and ingredients"),
    category: Optional[str] = Query(None),
    subcategory: Optional[str] = Query(None),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    hair_type: Optional[List[str]] = Query(None, alias="hairType"),
    skin_type: Optional[List[str]] = Query(None, alias="skinType"),
    min_rating: Optional[str] = Query(None, alias="minRating"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="price | rating | name | newest | oldest | popular"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="asc | desc"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    repo: ProductRepo = Depends(product_repo_dep),
):
    """
    Filtered, sorted, paginated catalog browse.
    All parameters are optional strings; invalid paging falls back to defaults instead of failing.
    """
    settings = get_settings()
    fq = build_filter_query(
        q=q, category=category, subcategory=subcategory,
        min_price=min_price, max_price=max_price,
        hair_type=hair_type, skin_type=skin_type, min_rating=min_rating,
        sort_by=sort_by, sort_order=sort_order, page=page, limit=limit,
        default_limit=settings.search_default_limit, max_limit=settings.search_max_limit,
    )
    logger.info("Request: search q=%r page=%s limit=%s sort=%s/%s", fq.term, fq.page, fq.limit, fq.sort_by, fq.sort_order)

    start_time = time.perf_counter()
    data = await search_products(repo, fq)
    logger.info(
        "Response: search total=%s returned=%s elapsed_time=%.4fs",
        data["pagination"]["totalProducts"], len(data["products"]), time.perf_counter() - start_time,
    )
    return {"success": True, "data": data}


@router.get("/search/suggestions")
async def suggestions(
    q: Optional[str] = Query(None),
    repo: ProductRepo = Depends(product_repo_dep),
):
    return {"success": True, "data": {"suggestions": await search_suggestions(repo, q)}}


@router.get("/filters")
async def filters(
    repo: ProductRepo = Depends(product_repo_dep),
    redis = Depends(redis_dep),
):
    return {"success": True, "data": await filter_options(repo, redis)}


@router.get("/category/{category}", response_model=List[Product])
async def by_category(category: str, repo: ProductRepo = Depends(product_repo_dep)):
    return await catalog_svc.products_in_category(repo, category)


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: str, repo: ProductRepo = Depends(product_repo_dep)):
    return await catalog_svc.get_product(repo, product_id)


@router.post("", response_model=Product, status_code=201)
async def create_product(
    body: ProductIn,
    repo: ProductRepo = Depends(product_repo_dep),
    redis = Depends(redis_dep),
):
    return await catalog_svc.create_product(repo, redis, body.model_dump(exclude_none=True))


@router.put("/{product_id}", response_model=Product)
async def update_product(
    product_id: str,
    body: ProductPatch,
    repo: ProductRepo = Depends(product_repo_dep),
    redis = Depends(redis_dep),
):
    return await catalog_svc.update_product(repo, redis, product_id, body.model_dump(exclude_unset=True))


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    repo: ProductRepo = Depends(product_repo_dep),
    redis = Depends(redis_dep),
):
    await catalog_svc.delete_product(repo, redis, product_id)
    return {"message": "Product deleted"}
