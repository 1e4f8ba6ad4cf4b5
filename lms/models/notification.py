"""
Notification model - messages targeted at a user or broadcast to a role
"""
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Uuid
from lms.database import Base, utcnow
import uuid


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    message = Column(Text)
    type = Column(String(50))  # result, quiz_published, announcement
    to_user_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    to_role = Column(String(20), nullable=True, index=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self):
        return f"<Notification(id={self.id}, title={self.title})>"
