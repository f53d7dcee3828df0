# agricoventas/services/review_service.py
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from agricoventas.core.enums import OrderStatus, UserType
from agricoventas.core.exceptions import (
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from agricoventas.core.utils import paginate_query
from agricoventas.models.order import Order, OrderItem
from agricoventas.models.product import Product
from agricoventas.models.review import Review
from agricoventas.models.user import User
from agricoventas.schemas.review import ReviewCreate, ReviewUpdate
from agricoventas.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def get_review(self, review_id: int) -> Review:
        result = await self.db.execute(
            select(Review)
            .options(selectinload(Review.user))
            .where(Review.id == review_id)
            .execution_options(populate_existing=True)
        )
        review = result.scalar_one_or_none()
        if not review:
            raise NotFoundError("Review not found")
        return review

    async def _purchased(self, user_id: int, product_id: int, order_id: Optional[int] = None) -> bool:
        stmt = (
            select(Order.id)
            .join(OrderItem, OrderItem.order_id == Order.id)
            .where(
                Order.buyer_user_id == user_id,
                Order.status != OrderStatus.CANCELLED,
                OrderItem.product_id == product_id,
            )
        )
        if order_id is not None:
            stmt = stmt.where(Order.id == order_id)
        return (await self.db.scalar(stmt.limit(1))) is not None

    @staticmethod
    def _ensure_owner_or_admin(review: Review, user: User) -> None:
        if user.user_type != UserType.ADMIN and review.user_id != user.id:
            raise PermissionDeniedError("You do not have permission to modify this review")

    async def create_review(self, user: User, data: ReviewCreate) -> Review:
        """
        Add the user's review of a product.

        Reviews are published immediately; one review per user and product.
        A review counts as a verified purchase when the user has a
        non-cancelled order containing the product.
        """
        user_id = user.id
        product = await self.db.get(Product, data.product_id)
        if not product:
            raise NotFoundError("Product not found")

        existing = await self.db.scalar(
            select(Review.id).where(Review.user_id == user_id, Review.product_id == data.product_id)
        )
        if existing:
            raise ConflictError("You have already reviewed this product")

        if data.order_id is not None and not await self._purchased(user_id, data.product_id, data.order_id):
            raise BusinessRuleError("The order does not belong to you or does not contain this product")

        verified = await self._purchased(user_id, data.product_id)
        seller_id = product.seller_id
        product_name = product.name

        try:
            review = Review(
                user_id=user_id,
                product_id=data.product_id,
                order_id=data.order_id,
                rating=data.rating,
                comment=data.comment,
                is_verified_purchase=verified,
                is_approved=True,
            )
            self.db.add(review)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        review_id = review.id
        logger.info(f"Review {review_id} ({data.rating}*) by user {user_id} on product {data.product_id}")
        if seller_id != user_id:
            await self.notifications.notify_product_review(seller_id, data.product_id, product_name, data.rating)
        return await self.get_review(review_id)

    async def list_product_reviews(
        self,
        product_id: int,
        page: int = 1,
        limit: int = 10,
        min_rating: Optional[int] = None,
        verified_only: bool = False,
    ) -> Tuple[List[Review], Dict[str, int], Dict[str, float]]:
        if not await self.db.get(Product, product_id):
            raise NotFoundError("Product not found")

        stmt = (
            select(Review)
            .options(selectinload(Review.user))
            .where(Review.product_id == product_id, Review.is_approved.is_(True))
        )
        if min_rating is not None:
            stmt = stmt.where(Review.rating >= min_rating)
        if verified_only:
            stmt = stmt.where(Review.is_verified_purchase.is_(True))
        stmt = stmt.order_by(Review.created_at.desc(), Review.id.desc())
        reviews, pagination = await paginate_query(self.db, stmt, page, limit)

        total, average = (await self.db.execute(
            select(func.count(Review.id), func.avg(Review.rating))
            .where(Review.product_id == product_id, Review.is_approved.is_(True))
        )).one()
        stats = {
            "totalReviews": total or 0,
            "averageRating": round(float(average or 0), 2),
        }
        return reviews, pagination, stats

    async def list_user_reviews(self, user_id: int, actor: User, page: int = 1, limit: int = 10):
        if actor.user_type != UserType.ADMIN and actor.id != user_id:
            raise PermissionDeniedError("You do not have permission to view these reviews")
        stmt = (
            select(Review)
            .options(selectinload(Review.user))
            .where(Review.user_id == user_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        return await paginate_query(self.db, stmt, page, limit)

    async def update_review(self, review_id: int, user: User, data: ReviewUpdate) -> Review:
        review = await self.get_review(review_id)
        self._ensure_owner_or_admin(review, user)
        try:
            for field, value in data.model_dump(exclude_unset=True).items():
                if value is not None or field == "comment":
                    setattr(review, field, value)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return await self.get_review(review_id)

    async def delete_review(self, review_id: int, user: User) -> None:
        review = await self.get_review(review_id)
        self._ensure_owner_or_admin(review, user)
        try:
            await self.db.delete(review)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"Review {review_id} deleted")

    async def moderate_review(self, review_id: int, is_approved: bool) -> Review:
        review = await self.get_review(review_id)
        try:
            review.is_approved = is_approved
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"Review {review_id} moderation set to approved={is_approved}")
        return await self.get_review(review_id)
