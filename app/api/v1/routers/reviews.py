# app/api/v1/routers/reviews.py
from fastapi import APIRouter, Depends
from typing import Annotated, List
import logging

from app.api.deps import current_user_id, product_repo_dep, review_repo_dep, user_repo_dep
from app.api.v1.schemas.review import ReviewIn
from app.domain.models.review import Review
from app.domain.repositories.product_repo import ProductRepo
from app.domain.repositories.review_repo import ReviewRepo
from app.domain.repositories.user_repo import UserRepo
from app.domain.services import review_svc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["reviews"])

ReviewRepoDep = Annotated[ReviewRepo, Depends(review_repo_dep)]


@router.post("", response_model=Review, status_code=201)
async def add_review(
    body: ReviewIn,
    user_id: Annotated[str, Depends(current_user_id)],
    reviews: ReviewRepoDep,
    products: Annotated[ProductRepo, Depends(product_repo_dep)],
    users: Annotated[UserRepo, Depends(user_repo_dep)],
):
    logger.info("Request: add_review user_id=%s product_id=%s rating=%s", user_id, body.product_id, body.rating)
    return await review_svc.add_review(
        user_id,
        product_id=body.product_id,
        rating=body.rating,
        comment=body.comment,
        review_repo=reviews,
        product_repo=products,
        user_repo=users,
    )


@router.get("/product/{product_id}", response_model=List[Review])
async def product_reviews(product_id: str, reviews: ReviewRepoDep):
    return await review_svc.product_reviews(product_id, review_repo=reviews)


@router.get("/latest", response_model=List[Review])
async def latest_reviews(reviews: ReviewRepoDep):
    return await review_svc.latest_reviews(review_repo=reviews)
