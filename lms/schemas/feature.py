"""
Pydantic schemas for feature controls
"""
from pydantic import BaseModel
from uuid import UUID


class FeatureUpdate(BaseModel):
    feature_name: str
    is_premium: bool


class FeatureResponse(BaseModel):
    id: UUID
    feature_name: str
    is_premium: bool
    label: str

    class Config:
        from_attributes = True
