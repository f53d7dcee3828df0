from datetime import datetime
from typing import Any, Dict, Optional

from agricoventas.core.enums import ChangeType
from agricoventas.schemas.base import BaseSchema
from agricoventas.schemas.user import UserSummary


class ProductHistoryRead(BaseSchema):
    id: int
    product_id: int
    user_id: Optional[int] = None
    change_type: ChangeType
    change_field: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    additional_info: Optional[Dict[str, Any]] = None
    timestamp: datetime
    user: Optional[UserSummary] = None


class PriceTrend(BaseSchema):
    id: int
    name: str
    current_price: float
    old_price: float
    unit: str
    weekly_trend: float
    category: str
    category_id: Optional[int] = None
    volatility: float = 0.0
    trend: str = "stable"
