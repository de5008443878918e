import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from app.core.errors import InvalidInput, NotFound
from app.domain.models.review import Review, ReviewStats
from app.domain.repositories.product_repo import ProductRepo
from app.domain.repositories.review_repo import ReviewRepo
from app.domain.repositories.user_repo import UserRepo
from app.domain.services.constants import LATEST_REVIEWS

logger = logging.getLogger(__name__)


async def refresh_review_stats(product_id: str, *, review_repo: ReviewRepo, product_repo: ProductRepo) -> Optional[ReviewStats]:
    """Recompute review_count / average_rating from the reviews collection and store them on the product."""
    stats = await review_repo.compute_stats(product_id)
    if stats is None:
        return None
    await product_repo.set_review_stats(stats)
    logger.info(
        "review stats product_id=%s count=%s avg=%.1f", product_id, stats.review_count, stats.average_rating,
    )
    return stats


async def add_review(
    user_id: str,
    *,
    product_id: str,
    rating: int,
    comment: Optional[str],
    review_repo: ReviewRepo,
    product_repo: ProductRepo,
    user_repo: UserRepo,
) -> Review:
    if await product_repo.get_by_product_id(product_id) is None:
        raise NotFound("Product not found", details={"product_id": product_id})
    user = await user_repo.get_by_user_id(user_id)
    if user is None:
        raise NotFound("User not found", details={"user_id": user_id})
    if await review_repo.find_for_user(user_id, product_id) is not None:
        raise InvalidInput("You already reviewed this product", details={"product_id": product_id})

    review = Review(
        review_id=uuid.uuid4().hex,
        product_id=product_id,
        user_id=user_id,
        rating=rating,
        comment=comment,
        verified_purchase=product_id in user.purchased_ids(),
        created_at=datetime.now(timezone.utc),
    )
    await review_repo.insert(review)
    logger.info("review added product_id=%s user_id=%s rating=%s verified=%s", product_id, user_id, rating, review.verified_purchase)

    await refresh_review_stats(product_id, review_repo=review_repo, product_repo=product_repo)
    return review


async def product_reviews(product_id: str, *, review_repo: ReviewRepo) -> List[Review]:
    return await review_repo.list_for_product(product_id)


async def latest_reviews(*, review_repo: ReviewRepo) -> List[Review]:
    return await review_repo.latest(LATEST_REVIEWS)
