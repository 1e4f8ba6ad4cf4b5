"""
Performance analytics API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
import logging

from lms.api.deps import ensure_self_or_admin, get_current_user, require_admin
from lms.database import get_db
from lms.models import User
from lms.schemas.analytics import QuizAnalytics, StudentOverview, SystemOverview, TagAccuracy
from lms.services.analytics_service import analytics_service

router = APIRouter(prefix="/api/analytics", tags=["analytics"])
logger = logging.getLogger(__name__)


@router.get("/students/{student_id}/overview", response_model=StudentOverview)
async def get_student_overview(
    student_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Performance summary for a student

    Returns:
    - Recent graded attempts
    - Average percentage
    - Weak topics and recommendations
    """
    ensure_self_or_admin(user, student_id)

    logger.info(f"Fetching overview for student {student_id}")
    return analytics_service.get_student_overview(db, student_id)


@router.get("/students/{student_id}/topics", response_model=List[TagAccuracy])
async def get_topic_accuracy(
    student_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Accuracy grouped by question topic"""
    ensure_self_or_admin(user, student_id)
    return analytics_service.get_accuracy_by(db, student_id, "topic")


@router.get("/students/{student_id}/slos", response_model=List[TagAccuracy])
async def get_slo_accuracy(
    student_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Accuracy grouped by student learning outcome tag"""
    ensure_self_or_admin(user, student_id)
    return analytics_service.get_accuracy_by(db, student_id, "slo_tag")


@router.get("/quizzes/{quiz_id}", response_model=QuizAnalytics)
async def get_quiz_analytics(
    quiz_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Analytics for a specific quiz

    Returns:
    - Attempt counts and percentage range
    - Per-question accuracy, hardest first
    """
    analytics = analytics_service.get_quiz_analytics(db, quiz_id)

    if analytics is None:
        raise HTTPException(status_code=404, detail="Quiz not found")

    return analytics


@router.get("/overview", response_model=SystemOverview)
async def get_system_overview(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return analytics_service.get_system_overview(db)
