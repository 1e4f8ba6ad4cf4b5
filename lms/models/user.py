"""
User model - accounts provisioned by the identity service
"""
from sqlalchemy import Column, String, Boolean, DateTime, Uuid
from lms.database import Base, utcnow
import uuid


class UserRole:
    STUDENT = "student"
    ADMIN = "admin"


class User(Base):
    """
    Users table - read-only to this service apart from seeding
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(20), nullable=False, default=UserRole.STUDENT)
    is_premium = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
