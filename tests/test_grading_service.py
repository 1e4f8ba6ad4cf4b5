import asyncio
import uuid

import pytest

from conftest import FakeOracle
from lms.exceptions import OracleError, ValidationError
from lms.models import Question, QuizType
from lms.schemas.grading import OracleVerdict
from lms.schemas.quiz import AnswerSubmission
from lms.services.grading_service import (
    GradingService, McqGrader, ShortAnswerGrader, calculate_percentage,
)


def _question(text="Q", options=None, correct=None):
    return Question(id=uuid.uuid4(), quiz_id=uuid.uuid4(), text=text, options=options, correct_option_index=correct)


def _short_answer(question, text):
    return question, AnswerSubmission(question_id=question.id, answer_text=text)


def _verdict(question, status="correct", feedback="ok"):
    return OracleVerdict(question_id=str(question.id), status=status, feedback=feedback)


@pytest.mark.parametrize("correct, total, expected", [
    (2, 3, 66.67),
    (1, 3, 33.33),
    (3, 3, 100.0),
    (0, 4, 0.0),
    (1, 800, 0.13),  # half-up, not banker's rounding
    (0, 0, 0.0),
])
def test_calculate_percentage(correct, total, expected):
    assert calculate_percentage(correct, total) == expected


def test_grader_registry_dispatches_by_quiz_type():
    mcq = McqGrader()
    short = ShortAnswerGrader(FakeOracle([]), backoff_seconds=0)
    service = GradingService([mcq, short])

    assert service.grader_for(QuizType.MCQ) is mcq
    assert service.grader_for(QuizType.SHORT_ANSWER) is short


def test_grader_registry_rejects_missing_type():
    service = GradingService([McqGrader()])

    with pytest.raises(ValidationError):
        service.grader_for(QuizType.SHORT_ANSWER)


def test_mcq_validate_requires_selected_option():
    answers = [AnswerSubmission(question_id=uuid.uuid4(), answer_text="Paris")]

    with pytest.raises(ValidationError):
        McqGrader().validate(answers)


@pytest.mark.asyncio
async def test_mcq_grades_by_exact_index():
    q1 = _question(options=["3", "4"], correct=1)
    q2 = _question(options=["a", "b", "c"], correct=0)
    answered = [
        (q1, AnswerSubmission(question_id=q1.id, selected_option_index=1)),
        (q2, AnswerSubmission(question_id=q2.id, selected_option_index=2)),
    ]

    graded = await McqGrader().grade(answered)

    assert [g.correct for g in graded] == [True, False]
    assert [g.selected_option_index for g in graded] == [1, 2]
    assert all(g.ai_feedback is None for g in graded)


def test_short_answer_validate_requires_text():
    answers = [AnswerSubmission(question_id=uuid.uuid4(), selected_option_index=0)]

    with pytest.raises(ValidationError):
        ShortAnswerGrader(FakeOracle([])).validate(answers)


@pytest.mark.asyncio
async def test_short_answer_skips_oracle_when_nothing_answered():
    oracle = FakeOracle([])

    assert await ShortAnswerGrader(oracle).grade([]) == []
    assert oracle.calls == []


@pytest.mark.asyncio
async def test_short_answer_maps_verdicts_in_order():
    q1, q2 = _question("Capital of France?"), _question("2+2?")
    oracle = FakeOracle([_verdict(q1, "correct", "Right."), _verdict(q2, "incorrect", "It is 4.")])

    graded = await ShortAnswerGrader(oracle, backoff_seconds=0).grade(
        [_short_answer(q1, "Paris"), _short_answer(q2, "5")]
    )

    assert len(oracle.calls) == 1
    sent = oracle.calls[0]
    assert [item.question_id for item in sent] == [str(q1.id), str(q2.id)]
    assert [item.answer for item in sent] == ["Paris", "5"]

    assert [g.correct for g in graded] == [True, False]
    assert graded[0].student_answer_text == "Paris"
    assert graded[1].ai_feedback == {"feedback": "It is 4.", "status": "incorrect"}


@pytest.mark.asyncio
async def test_short_answer_rejects_short_response():
    q1, q2 = _question(), _question()
    oracle = FakeOracle([_verdict(q1)])
    grader = ShortAnswerGrader(oracle, max_attempts=1, backoff_seconds=0)

    with pytest.raises(OracleError):
        await grader.grade([_short_answer(q1, "a"), _short_answer(q2, "b")])


@pytest.mark.asyncio
async def test_short_answer_rejects_reordered_response():
    q1, q2 = _question(), _question()
    oracle = FakeOracle([_verdict(q2), _verdict(q1)])
    grader = ShortAnswerGrader(oracle, max_attempts=1, backoff_seconds=0)

    with pytest.raises(OracleError):
        await grader.grade([_short_answer(q1, "a"), _short_answer(q2, "b")])


@pytest.mark.asyncio
async def test_short_answer_retries_transient_failure():
    q1 = _question()
    oracle = FakeOracle(OracleError("boom"), [_verdict(q1)])
    grader = ShortAnswerGrader(oracle, max_attempts=3, backoff_seconds=0)

    graded = await grader.grade([_short_answer(q1, "a")])

    assert len(oracle.calls) == 2
    assert graded[0].correct is True


@pytest.mark.asyncio
async def test_short_answer_gives_up_after_max_attempts():
    q1 = _question()
    oracle = FakeOracle(OracleError("down"))
    grader = ShortAnswerGrader(oracle, max_attempts=2, backoff_seconds=0)

    with pytest.raises(OracleError):
        await grader.grade([_short_answer(q1, "a")])

    assert len(oracle.calls) == 2


@pytest.mark.asyncio
async def test_short_answer_times_out():
    q1 = _question()

    async def slow(items):
        await asyncio.sleep(1)
        return [_verdict(q1)]

    grader = ShortAnswerGrader(FakeOracle(slow), timeout_seconds=0.01, max_attempts=1, backoff_seconds=0)

    with pytest.raises(asyncio.TimeoutError):
        await grader.grade([_short_answer(q1, "a")])
