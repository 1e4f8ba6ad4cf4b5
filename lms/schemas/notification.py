"""
Pydantic schemas for notifications
"""
from pydantic import BaseModel, Field, model_validator
from typing import Optional, Literal
from uuid import UUID
from datetime import datetime


class NotificationCreate(BaseModel):
    """Targets either a single user or every user with a role"""
    title: str = Field(..., min_length=1, max_length=255)
    message: Optional[str] = None
    type: Optional[str] = "announcement"
    to_user_id: Optional[UUID] = None
    to_role: Optional[Literal["student", "admin"]] = None

    @model_validator(mode="after")
    def check_target(self):
        if self.to_user_id is None and self.to_role is None:
            raise ValueError("to_user_id or to_role is required")
        return self


class NotificationResponse(BaseModel):
    id: UUID
    title: str
    message: Optional[str] = None
    type: Optional[str] = None
    to_user_id: Optional[UUID] = None
    to_role: Optional[str] = None
    is_read: bool
    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
