"""
Feature control API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
import logging

from lms.api.deps import get_current_user, require_admin
from lms.database import get_db
from lms.models import User
from lms.schemas.feature import FeatureResponse, FeatureUpdate
from lms.services.feature_service import feature_gate

router = APIRouter(prefix="/api/features", tags=["features"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[FeatureResponse])
async def get_feature_settings(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Premium flags for every feature; clients use them to label locked content"""
    return feature_gate.list_features(db)


@router.patch("/", response_model=FeatureResponse)
async def update_feature_setting(
    request: FeatureUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Mark a feature as premium-only or free"""
    return feature_gate.set_premium(db, request.feature_name, request.is_premium)
