# agricoventas/services/category_service.py
import logging
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from agricoventas.core.exceptions import BusinessRuleError, ConflictError, NotFoundError
from agricoventas.models.category import Category
from agricoventas.models.product import Product
from agricoventas.schemas.category import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)


class CategoryService:
    """Two-level category tree: top-level categories and their subcategories."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _category_query(self):
        return select(Category).options(
            selectinload(Category.parent),
            selectinload(Category.children),
        )

    async def list_categories(
        self,
        parent_id: Optional[int] = None,
        level: Optional[int] = None,
    ) -> List[Category]:
        stmt = self._category_query()
        if parent_id is not None:
            stmt = stmt.where(Category.parent_id == parent_id)
        if level == 1:
            stmt = stmt.where(Category.parent_id.is_(None))
        elif level == 2:
            stmt = stmt.where(Category.parent_id.is_not(None))
        result = await self.db.execute(stmt.order_by(Category.name))
        return list(result.scalars().all())

    async def get_category(self, category_id: int) -> Category:
        result = await self.db.execute(
            self._category_query()
            .where(Category.id == category_id)
            .execution_options(populate_existing=True)
        )
        category = result.scalar_one_or_none()
        if not category:
            raise NotFoundError("Category not found")
        return category

    async def _ensure_unique_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        stmt = select(Category.id).where(func.lower(Category.name) == name.lower())
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        if await self.db.scalar(stmt):
            raise ConflictError("Category with this name already exists")

    async def _ensure_valid_parent(self, parent_id: int, category_id: Optional[int] = None) -> None:
        if category_id is not None and parent_id == category_id:
            raise BusinessRuleError("A category cannot be its own parent")
        parent = await self.db.get(Category, parent_id)
        if not parent:
            raise BusinessRuleError("Parent category not found")
        if parent.parent_id is not None:
            raise BusinessRuleError("Categories can only be nested two levels deep")

    async def create_category(self, data: CategoryCreate) -> Category:
        await self._ensure_unique_name(data.name)
        if data.parent_id is not None:
            await self._ensure_valid_parent(data.parent_id)

        try:
            category = Category(name=data.name, description=data.description, parent_id=data.parent_id)
            self.db.add(category)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Category {category.id} '{category.name}' created")
        return await self.get_category(category.id)

    async def update_category(self, category_id: int, data: CategoryUpdate) -> Category:
        category = await self.get_category(category_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("name"):
            await self._ensure_unique_name(changes["name"], exclude_id=category_id)
        if changes.get("parent_id") is not None:
            await self._ensure_valid_parent(changes["parent_id"], category_id)
            if category.children:
                raise BusinessRuleError("A category with subcategories cannot become a subcategory")

        try:
            for field, value in changes.items():
                if field == "name" and not value:
                    continue
                setattr(category, field, value)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        return await self.get_category(category_id)

    async def delete_category(self, category_id: int) -> None:
        category = await self.get_category(category_id)
        if category.children:
            raise BusinessRuleError("Cannot delete a category that has subcategories")

        product_count = await self.db.scalar(
            select(func.count(Product.id)).where(Product.category_id == category_id)
        )
        if product_count:
            raise BusinessRuleError("Cannot delete a category that has products")

        try:
            await self.db.delete(category)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"Category {category_id} deleted")
