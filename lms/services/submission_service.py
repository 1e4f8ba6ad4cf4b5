"""
Quiz submission orchestrator

Flow: preconditions -> reserve attempt -> grade -> persist results -> notify
"""
import logging
from typing import Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from lms.database import as_utc, utcnow
from lms.exceptions import Forbidden, NotFound, ServerError
from lms.models import (
    AttemptStatus, FeatureName, Question, Quiz, QuizAttempt, QuizResult, QuizType, User,
)
from lms.schemas.quiz import AnswerSubmission, SubmissionSummary
from lms.services.feature_service import FeatureGate, feature_gate
from lms.services.gemini_service import gemini_service
from lms.services.grading_service import (
    AnsweredQuestion, GradingService, McqGrader, ShortAnswerGrader, calculate_percentage,
)
from lms.utils.cache import AnalyticsCache, analytics_cache

logger = logging.getLogger(__name__)

# (user_id, title, message)
NotificationSink = Callable[[UUID, str, str], None]

PREMIUM_REQUIRED = "PREMIUM_REQUIRED"
ALREADY_ATTEMPTED = "ALREADY_ATTEMPTED"


class SubmissionService:
    """
    Grades one student's single attempt at a quiz

    Attempt uniqueness per (quiz, student) is enforced by the database. An
    attempt whose grading failed is kept in the `failed` state and may be
    re-reserved by a later submission.
    """

    def __init__(
        self,
        grading: GradingService,
        feature_gate: FeatureGate,
        cache: Optional[AnalyticsCache] = None
    ):
        self.grading = grading
        self.feature_gate = feature_gate
        self.cache = cache

    async def submit(
        self,
        db: Session,
        quiz_id: UUID,
        student: User,
        answers: List[AnswerSubmission],
        notify: Optional[NotificationSink] = None
    ) -> SubmissionSummary:
        """
        Grade a submission and record the attempt

        Raises:
            NotFound: quiz does not exist
            Forbidden: quiz unavailable, deadline passed, premium required,
                or already attempted
            ValidationError: answers do not match the quiz type
            ServerError: grading or persistence failed
        """
        quiz = db.get(Quiz, quiz_id)
        if quiz is None:
            raise NotFound("Quiz not found")

        self._check_availability(db, quiz, student)
        previous = self._check_not_attempted(db, quiz, student)

        grader = self.grading.grader_for(quiz.quiz_type)
        grader.validate(answers)

        questions = (
            db.query(Question)
            .filter(Question.quiz_id == quiz.id)
            .order_by(Question.created_at, Question.id)
            .all()
        )

        attempt = self._reserve_attempt(db, quiz, student, previous)
        attempt_id = attempt.id
        logger.info(f"Attempt {attempt_id} reserved: quiz={quiz.id} student={student.id}")

        answered = self._match_answers(questions, answers)

        try:
            graded = await grader.grade(answered)
        except Exception as e:
            logger.error(f"Grading failed for attempt {attempt_id}: {str(e)}")
            self._mark_failed(db, attempt_id)
            raise ServerError("Grading failed. Please try again.") from e

        score = sum(1 for item in graded if item.correct)
        total = len(questions)
        percentage = calculate_percentage(score, total)

        try:
            for item in graded:
                db.add(QuizResult(
                    attempt_id=attempt_id,
                    question_id=item.question_id,
                    correct=item.correct,
                    selected_option_index=item.selected_option_index,
                    student_answer_text=item.student_answer_text,
                    ai_feedback=item.ai_feedback
                ))

            attempt.score = score
            attempt.percentage = percentage
            attempt.status = AttemptStatus.GRADED.value
            attempt.completed_at = utcnow()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to store results for attempt {attempt_id}: {str(e)}")
            self._mark_failed(db, attempt_id)
            raise ServerError("Failed to store quiz results") from e

        logger.info(f"Attempt {attempt_id} graded: {score}/{total} ({percentage}%)")

        if self.cache is not None:
            self.cache.invalidate_quiz(quiz.id)

        self._send_result_notification(notify, student.id, quiz.title, score, total)

        return SubmissionSummary(
            attempt_id=attempt_id,
            score=score,
            total=total,
            percentage=percentage
        )

    def _check_availability(self, db: Session, quiz: Quiz, student: User) -> None:
        if not self.feature_gate.has_access(db, FeatureName.QUIZZES, student):
            raise Forbidden(
                "This is a premium feature. Please upgrade to access quizzes.",
                code=PREMIUM_REQUIRED
            )

        if not quiz.is_published:
            raise Forbidden("Quiz not available")

        if quiz.deadline is not None and utcnow() > as_utc(quiz.deadline):
            raise Forbidden("Quiz deadline has passed")

        if quiz.quiz_type == QuizType.SHORT_ANSWER and not self.feature_gate.has_access(
            db, FeatureName.SHORT_ANSWER_QUIZ, student
        ):
            raise Forbidden(
                "This is a premium feature. Please upgrade to access Short Answer quizzes.",
                code=PREMIUM_REQUIRED
            )

    def _check_not_attempted(self, db: Session, quiz: Quiz, student: User) -> Optional[QuizAttempt]:
        """Returns a previous failed attempt that may be reused, if any"""
        existing = db.query(QuizAttempt).filter(
            QuizAttempt.quiz_id == quiz.id,
            QuizAttempt.student_id == student.id
        ).first()

        if existing is not None and existing.status != AttemptStatus.FAILED.value:
            raise Forbidden("You have already attempted this quiz", code=ALREADY_ATTEMPTED)

        return existing

    def _reserve_attempt(
        self,
        db: Session,
        quiz: Quiz,
        student: User,
        previous: Optional[QuizAttempt]
    ) -> QuizAttempt:
        if previous is None:
            attempt = QuizAttempt(
                quiz_id=quiz.id,
                student_id=student.id,
                status=AttemptStatus.RESERVED.value,
                started_at=utcnow()
            )
            db.add(attempt)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.warning(f"Concurrent attempt detected: quiz={quiz.id} student={student.id}")
                raise Forbidden("You have already attempted this quiz", code=ALREADY_ATTEMPTED)
            return attempt

        # Conditional update so that only one retry can claim a failed attempt
        result = db.execute(
            update(QuizAttempt)
            .where(
                QuizAttempt.id == previous.id,
                QuizAttempt.status == AttemptStatus.FAILED.value
            )
            .values(
                status=AttemptStatus.RESERVED.value,
                score=0,
                percentage=0,
                started_at=utcnow(),
                completed_at=None
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()

        if result.rowcount != 1:
            raise Forbidden("You have already attempted this quiz", code=ALREADY_ATTEMPTED)

        db.refresh(previous)
        logger.info(f"Re-reserving failed attempt {previous.id}")
        return previous

    @staticmethod
    def _match_answers(
        questions: List[Question],
        answers: List[AnswerSubmission]
    ) -> List[AnsweredQuestion]:
        """Pair answers with their questions; unknown ids and repeats are dropped"""
        lookup: Dict[UUID, Question] = {question.id: question for question in questions}
        seen = set()
        answered = []

        for answer in answers:
            question = lookup.get(answer.question_id)
            if question is None:
                logger.debug(f"Ignoring answer for unknown question {answer.question_id}")
                continue
            if question.id in seen:
                logger.warning(f"Ignoring duplicate answer for question {question.id}")
                continue
            seen.add(question.id)
            answered.append((question, answer))

        return answered

    @staticmethod
    def _mark_failed(db: Session, attempt_id: UUID) -> None:
        db.execute(
            update(QuizAttempt)
            .where(QuizAttempt.id == attempt_id)
            .values(status=AttemptStatus.FAILED.value)
            .execution_options(synchronize_session=False)
        )
        db.commit()

    @staticmethod
    def _send_result_notification(
        notify: Optional[NotificationSink],
        student_id: UUID,
        quiz_title: str,
        score: int,
        total: int
    ) -> None:
        if notify is None:
            return

        try:
            notify(student_id, "Result Published", f"You scored {score}/{total} in {quiz_title}")
        except Exception as e:
            logger.error(f"Result notification failed for student {student_id}: {str(e)}")


# Global instance
submission_service = SubmissionService(
    grading=GradingService([McqGrader(), ShortAnswerGrader(gemini_service)]),
    feature_gate=feature_gate,
    cache=analytics_cache
)


def get_submission_service() -> SubmissionService:
    """FastAPI dependency; overridden in tests"""
    return submission_service
