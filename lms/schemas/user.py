"""
Pydantic schemas for user records
"""
from pydantic import BaseModel
from uuid import UUID


class StudentSummary(BaseModel):
    id: UUID
    name: str
    email: str

    class Config:
        from_attributes = True


class UserResponse(StudentSummary):
    """User as seen by administrators"""
    role: str
    is_premium: bool
