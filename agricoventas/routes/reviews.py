from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.responses import success
from agricoventas.dependencies import get_current_user, get_db, require_admin, resolve_user_id
from agricoventas.models.user import User
from agricoventas.schemas.review import ReviewCreate, ReviewModerate, ReviewRead, ReviewUpdate
from agricoventas.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    review = await ReviewService(db).create_review(current_user, data)
    return success(ReviewRead.model_validate(review))


@router.get("/product/{product_id}")
async def product_reviews(
    product_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    min_rating: Optional[int] = Query(None, alias="minRating", ge=1, le=5),
    verified_only: bool = Query(False, alias="verifiedOnly"),
    db: AsyncSession = Depends(get_db),
):
    reviews, pagination, stats = await ReviewService(db).list_product_reviews(
        product_id, page, limit, min_rating, verified_only
    )
    return success({
        "reviews": [ReviewRead.model_validate(r) for r in reviews],
        "pagination": pagination,
        "stats": stats,
    })


@router.get("/user/{user_id}")
async def user_reviews(
    user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target_id = resolve_user_id(user_id, current_user)
    reviews, pagination = await ReviewService(db).list_user_reviews(target_id, current_user, page, limit)
    return success({
        "reviews": [ReviewRead.model_validate(r) for r in reviews],
        "pagination": pagination,
    })


@router.put("/{review_id}")
async def update_review(
    review_id: int,
    data: ReviewUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    review = await ReviewService(db).update_review(review_id, current_user, data)
    return success(ReviewRead.model_validate(review))


@router.delete("/{review_id}")
async def delete_review(
    review_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ReviewService(db).delete_review(review_id, current_user)
    return success({"message": "Review deleted"})


@router.put("/{review_id}/moderate")
async def moderate_review(
    review_id: int,
    data: ReviewModerate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    review = await ReviewService(db).moderate_review(review_id, data.is_approved)
    return success(ReviewRead.model_validate(review))
