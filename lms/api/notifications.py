"""
Notification API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from lms.api.deps import get_current_user, require_admin
from lms.database import get_db
from lms.models import User
from lms.schemas.common import Page
from lms.schemas.notification import NotificationCreate, NotificationResponse
from lms.services.notification_service import notification_service
from lms.utils.pagination import Pagination, get_pagination

router = APIRouter(prefix="/api/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


@router.post("/", response_model=NotificationResponse, status_code=201)
async def create_notification(
    request: NotificationCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Send an announcement to one user or to every user with a role"""
    if request.to_user_id is not None and db.get(User, request.to_user_id) is None:
        raise HTTPException(status_code=404, detail="Recipient not found")

    notification = notification_service.create(
        db,
        title=request.title,
        message=request.message,
        type=request.type,
        to_user_id=request.to_user_id,
        to_role=request.to_role,
        created_by=admin.id
    )
    db.commit()
    db.refresh(notification)

    logger.info(f"Notification {notification.id} created by {admin.id}")
    return notification


@router.get("/me", response_model=Page[NotificationResponse])
async def list_my_notifications(
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    total, items = notification_service.list_for_user(db, user, pagination.offset, pagination.limit)

    return Page[NotificationResponse](
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        data=[NotificationResponse.model_validate(n) for n in items]
    )


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return notification_service.mark_read(db, notification_id, user)
