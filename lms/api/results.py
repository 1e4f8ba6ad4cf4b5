"""
Quiz attempt and result API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from lms.api.deps import get_current_user, require_admin, require_student
from lms.database import get_db
from lms.models import QuizAttempt, User
from lms.schemas.common import Page
from lms.schemas.result import AttemptDetails, AttemptWithQuiz, ResultResponse
from lms.utils.pagination import Pagination, get_pagination

router = APIRouter(prefix="/api/results", tags=["results"])
logger = logging.getLogger(__name__)


def _get_visible_attempt(db: Session, attempt_id: UUID, user: User) -> QuizAttempt:
    attempt = db.get(QuizAttempt, attempt_id)
    if not attempt:
        raise HTTPException(status_code=404, detail="Attempt not found")

    # Students can only view their own attempts
    if not user.is_admin and attempt.student_id != user.id:
        raise HTTPException(status_code=403, detail="Forbidden")

    return attempt


def _list_attempts(db: Session, student_id: UUID, pagination: Pagination) -> Page[AttemptWithQuiz]:
    query = db.query(QuizAttempt).filter(QuizAttempt.student_id == student_id)
    total = query.count()
    attempts = (
        query.order_by(QuizAttempt.started_at.desc())
        .offset(pagination.offset)
        .limit(pagination.limit)
        .all()
    )

    return Page[AttemptWithQuiz](
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        data=[AttemptWithQuiz.model_validate(a) for a in attempts]
    )


@router.get("/attempts/{attempt_id}", response_model=AttemptWithQuiz)
async def get_attempt(
    attempt_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Score, percentage and timestamps for one attempt"""
    return _get_visible_attempt(db, attempt_id, user)


@router.get("/attempts/{attempt_id}/details", response_model=AttemptDetails)
async def get_attempt_details(
    attempt_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Attempt with question-by-question breakdown

    Includes the selected option or typed answer and, for short answers,
    the grader's feedback.
    """
    attempt = _get_visible_attempt(db, attempt_id, user)

    return AttemptDetails(
        attempt=AttemptWithQuiz.model_validate(attempt),
        quiz_results=[ResultResponse.model_validate(r) for r in attempt.results]
    )


@router.get("/students/me/attempts", response_model=Page[AttemptWithQuiz])
async def list_my_attempts(
    pagination: Pagination = Depends(get_pagination),
    student: User = Depends(require_student),
    db: Session = Depends(get_db)
):
    return _list_attempts(db, student.id, pagination)


@router.get("/students/{student_id}/attempts", response_model=Page[AttemptWithQuiz])
async def list_student_attempts(
    student_id: UUID,
    pagination: Pagination = Depends(get_pagination),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Any student's attempts, for administrators"""
    return _list_attempts(db, student_id, pagination)
