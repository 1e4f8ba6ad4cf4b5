"""
Administrator API endpoints: subscriptions, attempt monitoring, dashboard
"""
from typing import Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from lms.api.deps import require_admin
from lms.database import get_db
from lms.models import Quiz, QuizAttempt, User
from lms.schemas.analytics import AdminDashboard
from lms.schemas.common import Page
from lms.schemas.result import AttemptWithStudent
from lms.schemas.user import UserResponse
from lms.services.analytics_service import analytics_service
from lms.services.feature_service import feature_gate
from lms.utils.pagination import Pagination, get_pagination

router = APIRouter(prefix="/api/admin", tags=["admin"])
logger = logging.getLogger(__name__)


@router.patch("/users/{user_id}/premium", response_model=UserResponse)
async def toggle_premium(
    user_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Grant or revoke a user's premium subscription"""
    user = feature_gate.toggle_user_premium(db, user_id)
    logger.info(f"Admin {admin.id} set premium={user.is_premium} for user {user.id}")
    return user


@router.get("/attempts", response_model=Page[AttemptWithStudent])
async def list_all_attempts(
    search: Optional[str] = Query(None, description="Matches student name or quiz title"),
    pagination: Pagination = Depends(get_pagination),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Attempts across all students and quizzes, newest first"""
    query = (
        db.query(QuizAttempt)
        .join(User, User.id == QuizAttempt.student_id)
        .join(Quiz, Quiz.id == QuizAttempt.quiz_id)
    )
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(User.name.ilike(pattern), Quiz.title.ilike(pattern)))

    total = query.count()
    attempts = (
        query.order_by(QuizAttempt.started_at.desc())
        .offset(pagination.offset)
        .limit(pagination.limit)
        .all()
    )

    return Page[AttemptWithStudent](
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        data=[AttemptWithStudent.model_validate(a) for a in attempts]
    )


@router.get("/analytics/dashboard", response_model=AdminDashboard)
async def get_dashboard(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return analytics_service.get_admin_dashboard(db)
