from datetime import datetime
from typing import Optional

from agricoventas.schemas.base import BaseSchema


class NotificationRead(BaseSchema):
    id: int
    recipient_user_id: int
    type: str
    title: str
    message: str
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[int] = None
    is_read: bool
    created_at: datetime
