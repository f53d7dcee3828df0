# agricoventas/models/notification.py

from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey

from ..database import Base
from ._timestamps import created_at_column


class UserNotification(Base):
    __tablename__ = "user_notifications"

    id = Column(Integer, primary_key=True)
    recipient_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    type = Column(String(50), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    related_entity_type = Column(String(50), nullable=True)
    related_entity_id = Column(Integer, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False, index=True)

    created_at = created_at_column()

    def __repr__(self) -> str:
        return f"<UserNotification id={self.id} to={self.recipient_user_id} type={self.type} read={self.is_read}>"
