"""
Quiz grading strategies, one per quiz type
MCQ: Exact match on the selected option index
Short answer: Batched semantic grading via the grading oracle
"""
import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Protocol, Tuple
from uuid import UUID

from tenacity import AsyncRetrying, before_sleep_log, stop_after_attempt, wait_exponential

from lms.config import settings
from lms.exceptions import OracleError, ValidationError
from lms.models import Question, QuizType
from lms.schemas.grading import OracleItem, OracleVerdict
from lms.schemas.quiz import AnswerSubmission

logger = logging.getLogger(__name__)

AnsweredQuestion = Tuple[Question, AnswerSubmission]


class GradingOracle(Protocol):
    """Anything that can judge a batch of free-text answers"""

    async def grade(self, items: List[OracleItem]) -> List[OracleVerdict]:
        ...


@dataclass
class GradedAnswer:
    """Outcome for one answered question, ready to persist as a QuizResult"""
    question_id: UUID
    correct: bool
    selected_option_index: Optional[int] = None
    student_answer_text: Optional[str] = None
    ai_feedback: Optional[Dict[str, Any]] = None


def calculate_percentage(correct_count: int, total: int) -> float:
    """
    Percentage of correct answers over all questions in the quiz

    Rounded half-up to 2 decimals; 0 for an empty quiz.
    """
    if total <= 0:
        return 0.0

    value = Decimal(correct_count) * 100 / Decimal(total)
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class McqGrader:
    """Deterministic grading against the stored correct option"""

    quiz_type = QuizType.MCQ

    def validate(self, answers: List[AnswerSubmission]) -> None:
        for answer in answers:
            if answer.selected_option_index is None:
                raise ValidationError(
                    f"Answer for question {answer.question_id} is missing selected_option_index"
                )

    async def grade(self, answered: List[AnsweredQuestion]) -> List[GradedAnswer]:
        graded = []
        for question, answer in answered:
            graded.append(GradedAnswer(
                question_id=question.id,
                correct=answer.selected_option_index == question.correct_option_index,
                selected_option_index=answer.selected_option_index,
            ))
        return graded


class ShortAnswerGrader:
    """
    Delegates to the grading oracle in one batched call

    The call is bounded by a timeout and retried with exponential backoff.
    Responses that do not match the request one-to-one (length, order and
    question ids) are rejected, never truncated or padded.
    """

    quiz_type = QuizType.SHORT_ANSWER

    def __init__(
        self,
        oracle: GradingOracle,
        timeout_seconds: float = None,
        max_attempts: int = None,
        backoff_seconds: float = None
    ):
        self.oracle = oracle
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.ORACLE_TIMEOUT_SECONDS
        self.max_attempts = max_attempts if max_attempts is not None else settings.ORACLE_MAX_ATTEMPTS
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.ORACLE_BACKOFF_SECONDS

    def validate(self, answers: List[AnswerSubmission]) -> None:
        for answer in answers:
            if answer.answer_text is None:
                raise ValidationError(
                    f"Answer for question {answer.question_id} is missing answer_text"
                )

    async def grade(self, answered: List[AnsweredQuestion]) -> List[GradedAnswer]:
        if not answered:
            return []

        items = [
            OracleItem(
                question_id=str(question.id),
                question=question.text,
                answer=answer.answer_text,
            )
            for question, answer in answered
        ]

        verdicts = await self._call_oracle(items)

        graded = []
        for (question, answer), verdict in zip(answered, verdicts):
            graded.append(GradedAnswer(
                question_id=question.id,
                correct=verdict.status == "correct",
                student_answer_text=answer.answer_text,
                ai_feedback={"feedback": verdict.feedback, "status": verdict.status},
            ))
        return graded

    async def _call_oracle(self, items: List[OracleItem]) -> List[OracleVerdict]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=30),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                verdicts = await asyncio.wait_for(
                    self.oracle.grade(items),
                    timeout=self.timeout_seconds
                )
                self._check_contract(items, verdicts)

        logger.info(f"Oracle graded {len(verdicts)} answers")
        return verdicts

    @staticmethod
    def _check_contract(items: List[OracleItem], verdicts: List[OracleVerdict]) -> None:
        if len(verdicts) != len(items):
            raise OracleError(
                f"Oracle returned {len(verdicts)} verdicts for {len(items)} answers"
            )

        for position, (item, verdict) in enumerate(zip(items, verdicts)):
            if verdict.question_id != item.question_id:
                raise OracleError(
                    f"Oracle verdict {position} is for question {verdict.question_id}, "
                    f"expected {item.question_id}"
                )


class GradingService:
    """Registry of graders keyed by quiz type"""

    def __init__(self, graders):
        self._graders = {grader.quiz_type: grader for grader in graders}

    def grader_for(self, quiz_type: QuizType):
        try:
            return self._graders[quiz_type]
        except KeyError:
            raise ValidationError(f"Unsupported quiz type: {quiz_type}") from None
