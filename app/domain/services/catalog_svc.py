import logging
from typing import Any, Dict, List

from app.core.errors import InvalidInput, NotFound
from app.domain.models.product import Product
from app.domain.repositories.product_repo import ProductRepo
from app.domain.services.search_svc import invalidate_filter_options

logger = logging.getLogger(__name__)

# Derived or identity fields that catalog edits may never set
_PROTECTED_FIELDS = {"product_id", "review_count", "average_rating", "created_at", "updated_at"}


def _writable(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k not in _PROTECTED_FIELDS}


async def list_products(product_repo: ProductRepo) -> List[Product]:
    return await product_repo.list_active()


async def list_categories(product_repo: ProductRepo) -> List[str]:
    return await product_repo.distinct_values("category")


async def get_product(product_repo: ProductRepo, product_id: str) -> Product:
    product = await product_repo.get_by_product_id(product_id)
    if product is None:
        raise NotFound("Product not found", details={"product_id": product_id})
    return product


async def products_in_category(product_repo: ProductRepo, category: str) -> List[Product]:
    products = await product_repo.find_by_category(category)
    if not products:
        raise NotFound("No products found in this category", details={"category": category})
    return products


async def create_product(product_repo: ProductRepo, redis, fields: Dict[str, Any]) -> Product:
    product = await product_repo.create(_writable(fields))
    await invalidate_filter_options(redis)
    logger.info("product created product_id=%s name=%s", product.product_id, product.name)
    return product


async def update_product(product_repo: ProductRepo, redis, product_id: str, fields: Dict[str, Any]) -> Product:
    changes = _writable(fields)
    if not changes:
        raise InvalidInput("No updatable fields provided", details={"product_id": product_id})
    product = await product_repo.update(product_id, changes)
    if product is None:
        raise NotFound("Product not found", details={"product_id": product_id})
    await invalidate_filter_options(redis)
    logger.info("product updated product_id=%s fields=%s", product_id, sorted(changes))
    return product


async def delete_product(product_repo: ProductRepo, redis, product_id: str) -> None:
    if not await product_repo.delete(product_id):
        raise NotFound("Product not found", details={"product_id": product_id})
    await invalidate_filter_options(redis)
    logger.info("product deleted product_id=%s", product_id)
