"""
Quiz authoring and submission API endpoints
"""
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from lms.api.deps import get_current_user, require_admin, require_student
from lms.database import get_db
from lms.exceptions import Forbidden, ValidationError
from lms.models import (
    FeatureName, Question, Quiz, QuizAttempt, QuizStatus, QuizType, User, UserRole,
)
from lms.schemas.common import MessageResponse, Page
from lms.schemas.quiz import (
    AdminQuizDetail,
    QuestionCreate,
    QuestionResponse,
    QuestionPublic,
    QuizCreate,
    QuizDetail,
    QuizResponse,
    QuizSubmission,
    QuizUpdate,
    SubmissionSummary,
)
from lms.schemas.result import AttemptDetails, AttemptResponse, AttemptWithQuiz, ResultResponse
from lms.services.feature_service import feature_gate
from lms.services.notification_service import notification_service
from lms.services.submission_service import (
    PREMIUM_REQUIRED, SubmissionService, get_submission_service,
)
from lms.utils.cache import analytics_cache
from lms.utils.pagination import Pagination, get_pagination

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])
logger = logging.getLogger(__name__)

NULLABLE_QUIZ_FIELDS = {"description", "subject_id", "class_id", "deadline"}


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _require_quiz_access(db: Session, user: User) -> None:
    if not feature_gate.has_access(db, FeatureName.QUIZZES, user):
        raise Forbidden(
            "This is a premium feature. Please upgrade to access quizzes.",
            code=PREMIUM_REQUIRED
        )


def _get_quiz_or_404(db: Session, quiz_id: UUID) -> Quiz:
    quiz = db.get(Quiz, quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


def _announce_quiz(db: Session, quiz: Quiz, admin: User) -> None:
    notification_service.create(
        db,
        title="New Quiz",
        message=f"{quiz.title} is available",
        type="quiz_published",
        to_role=UserRole.STUDENT,
        created_by=admin.id
    )


@router.get("/", response_model=Page[QuizResponse])
async def list_quizzes(
    subject_id: Optional[UUID] = Query(None),
    class_id: Optional[UUID] = Query(None),
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List quizzes, newest first

    Students only see published quizzes.
    """
    _require_quiz_access(db, user)

    query = db.query(Quiz)
    if subject_id:
        query = query.filter(Quiz.subject_id == subject_id)
    if class_id:
        query = query.filter(Quiz.class_id == class_id)
    if not user.is_admin:
        query = query.filter(Quiz.status == QuizStatus.PUBLISHED.value)

    total = query.count()
    quizzes = (
        query.order_by(Quiz.created_at.desc())
        .offset(pagination.offset)
        .limit(pagination.limit)
        .all()
    )

    return Page[QuizResponse](
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        data=[QuizResponse.model_validate(q) for q in quizzes]
    )


@router.get("/me/attempts", response_model=Page[AttemptWithQuiz])
async def my_attempts(
    pagination: Pagination = Depends(get_pagination),
    student: User = Depends(require_student),
    db: Session = Depends(get_db)
):
    """The current student's attempts, newest first"""
    query = db.query(QuizAttempt).filter(QuizAttempt.student_id == student.id)
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


@router.post("/", response_model=QuizResponse, status_code=201)
async def create_quiz(
    request: QuizCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Create a quiz

    Publishing on creation broadcasts a "New Quiz" notification to students.
    """
    quiz = Quiz(
        title=request.title,
        description=request.description,
        duration_minutes=request.duration_minutes,
        subject_id=request.subject_id,
        class_id=request.class_id,
        status=request.status,
        type=request.type,
        deadline=_to_utc(request.deadline),
        created_by=admin.id
    )
    db.add(quiz)

    if quiz.status == QuizStatus.PUBLISHED.value:
        _announce_quiz(db, quiz, admin)

    db.commit()
    db.refresh(quiz)

    logger.info(f"Quiz created: {quiz.id} ({quiz.type}, {quiz.status})")
    return quiz


@router.get("/{quiz_id}")
async def get_quiz(
    quiz_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Quiz with its questions

    Admins receive the answer key; students receive questions only, and only
    for published quizzes.
    """
    _require_quiz_access(db, user)

    quiz = _get_quiz_or_404(db, quiz_id)
    questions = (
        db.query(Question)
        .filter(Question.quiz_id == quiz.id)
        .order_by(Question.created_at, Question.id)
        .all()
    )

    if user.is_admin:
        return AdminQuizDetail(
            **QuizResponse.model_validate(quiz).model_dump(),
            questions=[QuestionResponse.model_validate(q) for q in questions]
        )

    if not quiz.is_published:
        raise HTTPException(status_code=404, detail="Quiz not found")

    return QuizDetail(
        **QuizResponse.model_validate(quiz).model_dump(),
        questions=[QuestionPublic.model_validate(q) for q in questions]
    )


@router.patch("/{quiz_id}", response_model=QuizResponse)
async def update_quiz(
    quiz_id: UUID,
    request: QuizUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Partially update a quiz

    The quiz type is frozen once any attempt exists. Moving from draft to
    published notifies students.
    """
    quiz = _get_quiz_or_404(db, quiz_id)
    changes = {
        field: value
        for field, value in request.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_QUIZ_FIELDS
    }

    if "type" in changes and changes["type"] != quiz.type:
        has_attempts = db.query(QuizAttempt.id).filter(
            QuizAttempt.quiz_id == quiz.id
        ).first() is not None
        if has_attempts:
            raise Forbidden("Quiz type cannot change after students have attempted it")

    if "deadline" in changes:
        changes["deadline"] = _to_utc(changes["deadline"])

    previous_status = quiz.status
    for field, value in changes.items():
        setattr(quiz, field, value)

    if previous_status != QuizStatus.PUBLISHED.value and quiz.status == QuizStatus.PUBLISHED.value:
        _announce_quiz(db, quiz, admin)

    db.commit()
    db.refresh(quiz)
    analytics_cache.invalidate_quiz(quiz.id)

    logger.info(f"Quiz updated: {quiz.id} fields={sorted(changes)}")
    return quiz


@router.delete("/{quiz_id}", response_model=MessageResponse)
async def delete_quiz(
    quiz_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a quiz with its questions, attempts and results"""
    quiz = _get_quiz_or_404(db, quiz_id)

    db.delete(quiz)
    db.commit()
    analytics_cache.invalidate_quiz(quiz_id)

    logger.info(f"Quiz deleted: {quiz_id} by {admin.id}")
    return MessageResponse(message="Deleted")


@router.get("/{quiz_id}/questions", response_model=List[QuestionResponse])
async def list_questions(
    quiz_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Questions in creation order, with the answer key"""
    quiz = _get_quiz_or_404(db, quiz_id)
    return (
        db.query(Question)
        .filter(Question.quiz_id == quiz.id)
        .order_by(Question.created_at, Question.id)
        .all()
    )


@router.post("/{quiz_id}/questions", response_model=QuestionResponse, status_code=201)
async def add_question(
    quiz_id: UUID,
    request: QuestionCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Add a question to a quiz

    MCQ questions need at least two options and a valid correct index.
    Short answer questions never carry options.
    """
    quiz = _get_quiz_or_404(db, quiz_id)

    options = request.options
    correct_option_index = request.correct_option_index

    if quiz.quiz_type == QuizType.MCQ:
        if not options or len(options) < 2:
            raise ValidationError("Options must be an array of length >= 2 for MCQ")
        if correct_option_index is None:
            raise ValidationError("Correct option index is required for MCQ")
        if correct_option_index >= len(options):
            raise ValidationError("Correct option index is out of range")
    else:
        options = None
        correct_option_index = None

    question = Question(
        quiz_id=quiz.id,
        text=request.text,
        options=options,
        correct_option_index=correct_option_index,
        slo_tag=request.slo_tag,
        topic=request.topic,
        difficulty=request.difficulty
    )
    db.add(question)
    db.commit()
    db.refresh(question)

    logger.info(f"Question {question.id} added to quiz {quiz.id}")
    return question


@router.post("/{quiz_id}/attempts", response_model=SubmissionSummary, status_code=201)
async def submit_attempt(
    quiz_id: UUID,
    submission: QuizSubmission,
    background_tasks: BackgroundTasks,
    student: User = Depends(require_student),
    db: Session = Depends(get_db),
    service: SubmissionService = Depends(get_submission_service)
):
    """
    Submit and grade a quiz

    Grading strategy:
    - MCQ: Exact match on the selected option
    - Short Answer: Gemini grading of the whole batch

    One attempt per student per quiz. The result notification is delivered
    after the response.
    """

    def notify(user_id: UUID, title: str, message: str) -> None:
        background_tasks.add_task(notification_service.notify_user, user_id, title, message, "result")

    logger.info(f"Submission for quiz {quiz_id} by student {student.id}")

    return await service.submit(db, quiz_id, student, submission.answers, notify=notify)


@router.get("/{quiz_id}/attempts", response_model=Page[AttemptResponse])
async def quiz_attempts(
    quiz_id: UUID,
    pagination: Pagination = Depends(get_pagination),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """All attempts for a quiz, newest first"""
    query = db.query(QuizAttempt).filter(QuizAttempt.quiz_id == quiz_id)
    total = query.count()
    attempts = (
        query.order_by(QuizAttempt.started_at.desc())
        .offset(pagination.offset)
        .limit(pagination.limit)
        .all()
    )

    return Page[AttemptResponse](
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        data=[AttemptResponse.model_validate(a) for a in attempts]
    )


@router.get("/{quiz_id}/my-attempt", response_model=AttemptDetails)
async def my_attempt(
    quiz_id: UUID,
    student: User = Depends(require_student),
    db: Session = Depends(get_db)
):
    """The current student's attempt at a quiz with per-question results"""
    attempt = db.query(QuizAttempt).filter(
        QuizAttempt.quiz_id == quiz_id,
        QuizAttempt.student_id == student.id
    ).first()

    if not attempt:
        raise HTTPException(status_code=404, detail="No attempt found")

    return AttemptDetails(
        attempt=AttemptWithQuiz.model_validate(attempt),
        quiz_results=[ResultResponse.model_validate(r) for r in attempt.results]
    )
