"""
Shared response envelopes
"""
from pydantic import BaseModel
from typing import Generic, List, TypeVar

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Paginated list response"""
    total: int
    page: int
    limit: int
    data: List[T]


class MessageResponse(BaseModel):
    message: str
