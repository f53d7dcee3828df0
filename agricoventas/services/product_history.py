# agricoventas/services/product_history.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.enums import ChangeType
from agricoventas.models.product import Product
from agricoventas.models.product_history import ProductHistory

logger = logging.getLogger(__name__)

# (recorded field name, model attribute)
TRACKED_FIELDS = [
    ("name", "name"),
    ("description", "description"),
    ("basePrice", "base_price"),
    ("stockQuantity", "stock_quantity"),
    ("unitMeasure", "unit_measure"),
    ("isFeatured", "is_featured"),
    ("isActive", "is_active"),
    ("categoryId", "category_id"),
    ("originLocationId", "origin_location_id"),
]

RELATION_FIELDS = {"categoryId", "originLocationId"}


def stringify_value(value: Any, relation: bool = False) -> Optional[str]:
    """Render a field value the way history rows store it."""
    if value is None:
        return "none" if relation else None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def snapshot_product(product: Product) -> Dict[str, Any]:
    """Capture the tracked fields of a product before it is mutated."""
    snapshot = {field: getattr(product, attr) for field, attr in TRACKED_FIELDS}
    snapshot["id"] = product.id
    snapshot["sellerId"] = product.seller_id
    return snapshot


def diff_snapshots(before: Dict[str, Any], after: Dict[str, Any]) -> List[Dict[str, Optional[str]]]:
    """
    Compare two product snapshots field by field.

    Returns:
        One ``{"field", "old", "new"}`` entry per tracked field whose string
        rendering changed, in the order of TRACKED_FIELDS
    """
    changes = []
    for field, _ in TRACKED_FIELDS:
        relation = field in RELATION_FIELDS
        old = stringify_value(before.get(field), relation)
        new = stringify_value(after.get(field), relation)
        if old != new:
            changes.append({"field": field, "old": old, "new": new})
    return changes


class ProductHistoryRecorder:
    """
    Appends product audit rows.

    Called after the product change has been committed. Rows are committed
    on their own; any failure is rolled back, logged and swallowed.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record_creation(self, product: Product, user_id: Optional[int]) -> Optional[ProductHistory]:
        try:
            entry = ProductHistory(
                product_id=product.id,
                user_id=user_id,
                change_type=ChangeType.CREATE,
                additional_info={"product": _jsonable(snapshot_product(product))},
                timestamp=datetime.now(timezone.utc),
            )
            self.db.add(entry)
            await self.db.commit()
            logger.debug(f"History: product {product.id} created by {user_id}")
            return entry
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error recording product creation history: {str(e)}")
            return None

    async def record_update(
        self,
        product_id: int,
        before: Dict[str, Any],
        after: Dict[str, Any],
        user_id: Optional[int],
    ) -> List[ProductHistory]:
        try:
            changes = diff_snapshots(before, after)
            now = datetime.now(timezone.utc)
            entries = [
                ProductHistory(
                    product_id=product_id,
                    user_id=user_id,
                    change_type=ChangeType.UPDATE,
                    change_field=change["field"],
                    old_value=change["old"],
                    new_value=change["new"],
                    timestamp=now,
                )
                for change in changes
            ]
            if entries:
                self.db.add_all(entries)
                await self.db.commit()
                logger.debug(
                    f"History: product {product_id} changed {[c['field'] for c in changes]} by {user_id}"
                )
            return entries
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error recording product update history: {str(e)}")
            return []

    async def record_deletion(
        self,
        product_id: int,
        before: Dict[str, Any],
        user_id: Optional[int],
    ) -> Optional[ProductHistory]:
        try:
            entry = ProductHistory(
                product_id=product_id,
                user_id=user_id,
                change_type=ChangeType.DELETE,
                additional_info={"deletedProduct": _jsonable(before)},
                timestamp=datetime.now(timezone.utc),
            )
            self.db.add(entry)
            await self.db.commit()
            logger.debug(f"History: product {product_id} deleted by {user_id}")
            return entry
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error recording product deletion history: {str(e)}")
            return None


def _jsonable(snapshot: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: (value.value if hasattr(value, "value") else value)
        for key, value in snapshot.items()
    }
