# agricoventas/services/product_insights.py
"""
Read side of the product history table: per-product audit trail, admin
change metrics and price trends.

Price trends are computed from recorded basePrice updates only.
"""
import logging
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from agricoventas.core.enums import ChangeType
from agricoventas.core.exceptions import NotFoundError
from agricoventas.models.product import Product
from agricoventas.models.product_history import ProductHistory
from agricoventas.schemas.history import PriceTrend
from agricoventas.services import price_analysis

logger = logging.getLogger(__name__)

PRICE_FIELD = "basePrice"
UNCATEGORIZED = "Sin categoría"
TOP_N = 10


def _to_float(value: Optional[str]) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class ProductInsightsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_product_history(
        self,
        product_id: int,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[ProductHistory], Dict[str, Any]]:
        base = select(ProductHistory).where(ProductHistory.product_id == product_id)
        total = (await self.db.scalar(
            select(func.count(ProductHistory.id)).where(ProductHistory.product_id == product_id)
        )) or 0

        result = await self.db.execute(
            base.options(selectinload(ProductHistory.user))
            .order_by(ProductHistory.timestamp.desc(), ProductHistory.id.desc())
            .offset(offset)
            .limit(limit)
        )
        rows = list(result.scalars().all())
        pagination = {
            "total": total,
            "limit": limit,
            "offset": offset,
            "hasMore": offset + len(rows) < total,
        }
        return rows, pagination

    async def get_change_metrics(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        conditions = []
        if start_date:
            conditions.append(ProductHistory.timestamp >= start_date)
        if end_date:
            conditions.append(ProductHistory.timestamp <= end_date)

        by_type = await self.db.execute(
            select(ProductHistory.change_type, func.count(ProductHistory.id))
            .where(*conditions)
            .group_by(ProductHistory.change_type)
        )
        by_field = await self.db.execute(
            select(ProductHistory.change_field, func.count(ProductHistory.id))
            .where(ProductHistory.change_field.is_not(None), *conditions)
            .group_by(ProductHistory.change_field)
            .order_by(func.count(ProductHistory.id).desc())
        )

        change_count = func.count(ProductHistory.id).label("changes")
        top = await self.db.execute(
            select(ProductHistory.product_id, Product.name, change_count)
            .outerjoin(Product, Product.id == ProductHistory.product_id)
            .where(*conditions)
            .group_by(ProductHistory.product_id, Product.name)
            .order_by(change_count.desc(), ProductHistory.product_id)
            .limit(TOP_N)
        )

        return {
            "changesByType": {
                (change_type.value if hasattr(change_type, "value") else change_type): count
                for change_type, count in by_type.all()
            },
            "changesByField": {field: count for field, count in by_field.all()},
            "topModifiedProducts": [
                {"productId": product_id, "name": name, "changes": count}
                for product_id, name, count in top.all()
            ],
        }

    async def _price_rows(
        self,
        since: datetime,
        product_id: Optional[int] = None,
        category_id: Optional[int] = None,
    ) -> List[ProductHistory]:
        stmt = select(ProductHistory).where(
            ProductHistory.change_type == ChangeType.UPDATE,
            ProductHistory.change_field == PRICE_FIELD,
            ProductHistory.timestamp >= since,
        )
        if product_id is not None:
            stmt = stmt.where(ProductHistory.product_id == product_id)
        if category_id is not None:
            stmt = stmt.join(Product, Product.id == ProductHistory.product_id).where(
                Product.category_id == category_id
            )
        result = await self.db.execute(stmt.order_by(ProductHistory.timestamp.asc(), ProductHistory.id.asc()))
        return list(result.scalars().all())

    async def get_price_trends(self, timespan_days: int = 30, category_id: Optional[int] = None) -> List[PriceTrend]:
        """
        Products whose price moved the most over the window.

        The oldest in-window basePrice change gives the reference price; the
        trend is the percent change from it to the current price.
        """
        since = datetime.now(timezone.utc) - timedelta(days=timespan_days)
        rows = await self._price_rows(since, category_id=category_id)

        series: "OrderedDict[int, List[ProductHistory]]" = OrderedDict()
        for row in rows:
            series.setdefault(row.product_id, []).append(row)
        if not series:
            return []

        result = await self.db.execute(
            select(Product).options(selectinload(Product.category)).where(Product.id.in_(list(series)))
        )
        products = {product.id: product for product in result.scalars().all()}

        trends = []
        for product_id, changes in series.items():
            product = products.get(product_id)
            old_price = _to_float(changes[0].old_value)
            if product is None or not old_price:
                continue

            prices = [old_price]
            dates = [changes[0].timestamp]
            for change in changes:
                new_price = _to_float(change.new_value)
                if new_price is not None:
                    prices.append(new_price)
                    dates.append(change.timestamp)

            trends.append(PriceTrend(
                id=product.id,
                name=product.name,
                current_price=product.base_price,
                old_price=old_price,
                unit=product.unit_measure,
                weekly_trend=price_analysis.percent_change(old_price, product.base_price),
                category=product.category.name if product.category else UNCATEGORIZED,
                category_id=product.category_id,
                volatility=price_analysis.volatility(prices),
                trend=price_analysis.price_trend(prices, dates)["trend"],
            ))

        trends.sort(key=lambda t: abs(t.weekly_trend), reverse=True)
        return trends[:TOP_N]

    async def get_price_history(self, product_id: int, days: int = 90, window: int = 3) -> Dict[str, Any]:
        product = await self.db.get(Product, product_id)
        if not product:
            raise NotFoundError("Product not found")

        since = datetime.now(timezone.utc) - timedelta(days=days)
        changes = await self._price_rows(since, product_id=product_id)

        points = []
        if changes:
            first_price = _to_float(changes[0].old_value)
            if first_price is not None:
                points.append((changes[0].timestamp, first_price))
            for change in changes:
                price = _to_float(change.new_value)
                if price is not None:
                    points.append((change.timestamp, price))
        if not points:
            points.append((product.updated_at, product.base_price))

        prices = [price for _, price in points]
        dates = [date for date, _ in points]
        trend = price_analysis.price_trend(prices, dates)
        return {
            "productId": product.id,
            "currentPrice": product.base_price,
            "points": [{"date": date, "price": price} for date, price in points],
            "movingAverage": price_analysis.moving_average(prices, window),
            "volatility": price_analysis.volatility(prices),
            "trend": trend["trend"],
            "slope": trend["slope"],
            "anomalies": price_analysis.detect_anomalies(prices),
        }
