"""
Purpose: The central service for managing marketplace products.

Handles listing, creation, updates and deletion of products and their
images. Every mutation is followed by a history record and, where
relevant, a notification to the seller; both are best-effort and run after
the product change is committed.

Sellers must pass the certification gate before creating products; admins
bypass it and may list on behalf of a seller.
"""

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from agricoventas.core.config import get_settings
from agricoventas.core.enums import UserType
from agricoventas.core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
)
from agricoventas.core.utils import paginate_query
from agricoventas.models.category import Category
from agricoventas.models.location import Location
from agricoventas.models.order import OrderItem
from agricoventas.models.product import Product, ProductImage
from agricoventas.models.review import Review
from agricoventas.models.user import User
from agricoventas.schemas.product import (
    ProductCreate,
    ProductFilters,
    ProductImageCreate,
    ProductRead,
    ProductUpdate,
)
from agricoventas.services.certification_service import CertificationService
from agricoventas.services.notification_service import NotificationService
from agricoventas.services.product_history import ProductHistoryRecorder, snapshot_product
from agricoventas.services.storage import MediaStorage

logger = logging.getLogger(__name__)

SORT_PRESETS = {
    "price_asc": (Product.base_price, "asc"),
    "price_desc": (Product.base_price, "desc"),
    "name_asc": (Product.name, "asc"),
    "name_desc": (Product.name, "desc"),
    "newest": (Product.created_at, "desc"),
}

SORT_FIELDS = {
    "createdAt": Product.created_at,
    "updatedAt": Product.updated_at,
    "basePrice": Product.base_price,
    "name": Product.name,
    "stockQuantity": Product.stock_quantity,
}

FEATURED_LIMIT = 6


class ProductService:
    def __init__(self, db: AsyncSession, storage: Optional[MediaStorage] = None):
        self.db = db
        self.storage = storage
        self.settings = get_settings()
        self.history = ProductHistoryRecorder(db)
        self.notifications = NotificationService(db)

    def _product_query(self):
        return select(Product).options(
            selectinload(Product.images),
            selectinload(Product.seller),
            selectinload(Product.category),
            selectinload(Product.origin_location),
        )

    async def get_product(self, product_id: int) -> Product:
        """
        Get a product with its images, seller, category and origin loaded.

        Raises:
            NotFoundError: If product not found
        """
        result = await self.db.execute(
            self._product_query()
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found")
        return product

    async def rating_stats(self, product_ids: List[int]) -> Dict[int, Tuple[float, int]]:
        if not product_ids:
            return {}
        result = await self.db.execute(
            select(Review.product_id, func.avg(Review.rating), func.count(Review.id))
            .where(Review.product_id.in_(product_ids), Review.is_approved.is_(True))
            .group_by(Review.product_id)
        )
        return {
            product_id: (round(float(avg or 0), 2), count)
            for product_id, avg, count in result.all()
        }

    async def to_schemas(self, products: List[Product]) -> List[ProductRead]:
        """Serialize products with rating stats and region."""
        stats = await self.rating_stats([p.id for p in products])
        schemas = []
        for product in products:
            average, count = stats.get(product.id, (0.0, 0))
            schemas.append(ProductRead.model_validate(product).model_copy(update={
                "average_rating": average,
                "review_count": count,
                "region": product.origin_location.region if product.origin_location else None,
            }))
        return schemas

    async def to_schema(self, product: Product) -> ProductRead:
        return (await self.to_schemas([product]))[0]

    async def _ensure_references(
        self,
        seller_id: Optional[int] = None,
        category_id: Optional[int] = None,
        location_id: Optional[int] = None,
    ) -> None:
        if seller_id is not None:
            seller = await self.db.get(User, seller_id)
            if not seller or not seller.is_active:
                raise BusinessRuleError("Seller not found")
        if category_id is not None and not await self.db.get(Category, category_id):
            raise BusinessRuleError("Category not found")
        if location_id is not None and not await self.db.get(Location, location_id):
            raise BusinessRuleError("Location not found")

    @staticmethod
    def ensure_can_modify(product: Product, user: User) -> None:
        if user.user_type != UserType.ADMIN and product.seller_id != user.id:
            raise PermissionDeniedError("You do not have permission to modify this product")

    async def create_product(self, user: User, data: ProductCreate) -> Product:
        """
        Create a product for the current seller (or, for admins, any seller).

        Raises:
            CertificationRequiredError: Seller lacks verified certifications
            BusinessRuleError: Seller, category or location does not exist
        """
        actor_id = user.id
        is_admin = user.user_type == UserType.ADMIN
        seller_id = data.seller_id if (is_admin and data.seller_id) else actor_id

        if not is_admin and self.settings.REQUIRE_SELLER_CERTIFICATIONS:
            await CertificationService(self.db).ensure_seller_certified(user)

        await self._ensure_references(seller_id, data.category_id, data.origin_location_id)

        images = [ProductImage(**image.model_dump()) for image in data.images]
        if images and not any(image.is_primary for image in images):
            images[0].is_primary = True

        try:
            product = Product(
                name=data.name,
                description=data.description,
                base_price=data.base_price,
                stock_quantity=data.stock_quantity,
                unit_measure=data.unit_measure,
                category_id=data.category_id,
                origin_location_id=data.origin_location_id,
                seller_id=seller_id,
                is_featured=data.is_featured,
                is_active=data.is_active,
                images=images,
            )
            self.db.add(product)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        product_id = product.id
        product_name = product.name
        logger.info(f"Product {product_id} '{product_name}' created for seller {seller_id} by {actor_id}")

        await self.history.record_creation(product, actor_id)
        await self.notifications.notify_product_created(seller_id, product_id, product_name)
        return await self.get_product(product_id)

    async def update_product(self, product_id: int, user: User, data: ProductUpdate) -> Product:
        """
        Update a product owned by the user (or any product, for admins).

        One history row is written per changed field. A LOW_STOCK notice is
        sent when stock drops from above the threshold to at or below it.
        """
        actor_id = user.id
        product = await self.get_product(product_id)
        self.ensure_can_modify(product, user)

        changes = data.model_dump(exclude_unset=True)
        await self._ensure_references(
            category_id=changes.get("category_id"),
            location_id=changes.get("origin_location_id"),
        )

        before = snapshot_product(product)
        try:
            for field, value in changes.items():
                if value is None and field not in ("description", "category_id", "origin_location_id"):
                    continue
                setattr(product, field, value)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        after = snapshot_product(product)
        seller_id = product.seller_id
        product_name = product.name
        threshold = self.settings.LOW_STOCK_THRESHOLD
        crossed_low_stock = (
            before["stockQuantity"] > threshold and after["stockQuantity"] <= threshold
        )

        await self.history.record_update(product_id, before, after, actor_id)
        if crossed_low_stock:
            await self.notifications.notify_low_stock(
                seller_id, product_id, product_name, after["stockQuantity"]
            )
        return await self.get_product(product_id)

    async def delete_product(self, product_id: int, user: User) -> None:
        """
        Delete a product and its images.

        Order lines keep their price snapshot with the product reference cleared.
        """
        actor_id = user.id
        product = await self.get_product(product_id)
        self.ensure_can_modify(product, user)

        before = snapshot_product(product)
        image_urls = [image.image_url for image in product.images]

        try:
            await self.db.execute(
                update(OrderItem).where(OrderItem.product_id == product_id).values(product_id=None)
            )
            await self.db.delete(product)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Product {product_id} deleted by {actor_id}")
        if self.storage:
            for url in image_urls:
                self.storage.delete(url)
        await self.history.record_deletion(product_id, before, actor_id)

    async def list_products(self, filters: ProductFilters) -> Tuple[List[Product], Dict[str, int]]:
        stmt = self._product_query()

        if filters.category_id is not None:
            stmt = stmt.where(Product.category_id == filters.category_id)
        if filters.seller_id is not None:
            stmt = stmt.where(Product.seller_id == filters.seller_id)
        if filters.search:
            term = f"%{filters.search.strip()}%"
            stmt = stmt.where(or_(Product.name.ilike(term), Product.description.ilike(term)))
        if filters.min_price is not None:
            stmt = stmt.where(Product.base_price >= filters.min_price)
        if filters.max_price is not None:
            stmt = stmt.where(Product.base_price <= filters.max_price)
        if filters.is_featured is not None:
            stmt = stmt.where(Product.is_featured.is_(filters.is_featured))
        if filters.is_active is not None:
            stmt = stmt.where(Product.is_active.is_(filters.is_active))
        if filters.origin_location_id is not None:
            stmt = stmt.where(Product.origin_location_id == filters.origin_location_id)
        if filters.city or filters.department:
            stmt = stmt.join(Location, Location.id == Product.origin_location_id)
            if filters.city:
                stmt = stmt.where(Location.city.ilike(filters.city))
            if filters.department:
                stmt = stmt.where(Location.department.ilike(filters.department))

        if filters.sort in SORT_PRESETS:
            column, direction = SORT_PRESETS[filters.sort]
        else:
            column = SORT_FIELDS.get(filters.sort_by, Product.created_at)
            direction = filters.sort_order.lower()
        if direction == "asc":
            stmt = stmt.order_by(column.asc(), Product.id.asc())
        else:
            stmt = stmt.order_by(column.desc(), Product.id.desc())

        return await paginate_query(self.db, stmt, filters.page, filters.limit)

    async def get_featured(self, limit: int = FEATURED_LIMIT) -> List[Product]:
        result = await self.db.execute(
            self._product_query()
            .where(Product.is_featured.is_(True), Product.is_active.is_(True))
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_by_user(self, user_id: int, page: int = 1, limit: int = 10, include_inactive: bool = False):
        stmt = self._product_query().where(Product.seller_id == user_id)
        if not include_inactive:
            stmt = stmt.where(Product.is_active.is_(True))
        stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc())
        return await paginate_query(self.db, stmt, page, limit)

    async def get_by_category(self, category_id: int, page: int = 1, limit: int = 10):
        """Active products in the category and its subcategories."""
        category = await self.db.get(Category, category_id)
        if not category:
            raise NotFoundError("Category not found")
        child_ids = (await self.db.execute(
            select(Category.id).where(Category.parent_id == category_id)
        )).scalars().all()

        stmt = (
            self._product_query()
            .where(Product.category_id.in_([category_id, *child_ids]), Product.is_active.is_(True))
            .order_by(Product.created_at.desc(), Product.id.desc())
        )
        return await paginate_query(self.db, stmt, page, limit)

    async def list_images(self, product_id: int) -> List[ProductImage]:
        if not await self.db.get(Product, product_id):
            raise NotFoundError("Product not found")
        result = await self.db.execute(
            select(ProductImage)
            .where(ProductImage.product_id == product_id)
            .order_by(ProductImage.display_order, ProductImage.id)
        )
        return list(result.scalars().all())

    async def add_images(self, product_id: int, user: User, images: List[ProductImageCreate]) -> List[ProductImage]:
        """
        Attach already stored images to a product.

        A new primary image demotes the current one; a product without any
        images gets its first image as primary.
        """
        product = await self.get_product(product_id)
        self.ensure_can_modify(product, user)

        has_images = bool(product.images)
        new_images = [ProductImage(product_id=product_id, **image.model_dump()) for image in images]
        if any(image.is_primary for image in new_images):
            for existing in product.images:
                existing.is_primary = False
            primary_seen = False
            for image in new_images:
                if image.is_primary and primary_seen:
                    image.is_primary = False
                primary_seen = primary_seen or image.is_primary
        elif not has_images and new_images:
            new_images[0].is_primary = True

        try:
            self.db.add_all(new_images)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Added {len(new_images)} images to product {product_id}")
        return new_images

