import uuid

import pytest

from conftest import auth
from lms.models import QuizAttempt
from lms.schemas.quiz import AnswerSubmission
from lms.services.analytics_service import AnalyticsService
from lms.services.feature_service import FeatureGate
from lms.services.grading_service import GradingService, McqGrader
from lms.services.submission_service import SubmissionService
from lms.utils.cache import AnalyticsCache, quiz_analytics_key

QUESTIONS = [
    ("2+2?", ["3", "4"], 1, "arithmetic"),
    ("Capital of France?", ["Paris", "Rome"], 0, "geography"),
]


class FakeRedis:
    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def delete(self, key):
        self.store.pop(key, None)


def submit(client, user, quiz, questions, indexes):
    answers = [
        {"question_id": str(q.id), "selected_option_index": i}
        for q, i in zip(questions, indexes)
    ]
    response = client.post(f"/api/quizzes/{quiz.id}/attempts", json={"answers": answers}, headers=auth(user))
    assert response.status_code == 201
    return response.json()


def test_student_overview(client, student, make_quiz):
    quiz, questions = make_quiz(QUESTIONS)
    submit(client, student, quiz, questions, [1, 1])

    body = client.get(f"/api/analytics/students/{student.id}/overview", headers=auth(student)).json()

    assert body["total_attempts"] == 1
    assert body["average_percentage"] == 50.0
    assert body["attempts"][0]["title"] == "Algebra"
    assert body["weak_areas"] == ["geography"]
    assert len(body["recommendations"]) == 2


def test_overview_without_attempts(client, student):
    body = client.get(f"/api/analytics/students/{student.id}/overview", headers=auth(student)).json()

    assert body["total_attempts"] == 0
    assert body["recommendations"] == ["Attempt your first quiz to start tracking progress"]


def test_topic_accuracy(client, student, make_quiz):
    quiz, questions = make_quiz(QUESTIONS)
    submit(client, student, quiz, questions, [1, 1])

    body = client.get(f"/api/analytics/students/{student.id}/topics", headers=auth(student)).json()

    assert body == [
        {"label": "arithmetic", "accuracy": 100.0, "answered": 1},
        {"label": "geography", "accuracy": 0.0, "answered": 1},
    ]


def test_students_cannot_read_each_other(client, student, other_student):
    response = client.get(f"/api/analytics/students/{other_student.id}/slos", headers=auth(student))

    assert response.status_code == 403


def test_quiz_analytics(client, admin, student, other_student, make_quiz):
    quiz, questions = make_quiz(QUESTIONS)
    submit(client, student, quiz, questions, [1, 0])
    submit(client, other_student, quiz, questions, [1, 1])

    body = client.get(f"/api/analytics/quizzes/{quiz.id}", headers=auth(admin)).json()

    assert body["graded_attempts"] == 2
    assert body["average_percentage"] == 75.0
    assert (body["highest_percentage"], body["lowest_percentage"]) == (100.0, 50.0)
    # hardest first
    assert [q["topic"] for q in body["questions"]] == ["geography", "arithmetic"]
    assert body["questions"][0]["accuracy"] == 50.0


def test_quiz_analytics_missing_quiz(client, admin):
    response = client.get(f"/api/analytics/quizzes/{uuid.uuid4()}", headers=auth(admin))

    assert response.status_code == 404


def test_system_overview(client, db, admin, student, make_quiz):
    quiz, questions = make_quiz(QUESTIONS)
    make_quiz(status="draft", title="Draft")
    submit(client, student, quiz, questions, [1, 1])

    body = client.get("/api/analytics/overview", headers=auth(admin)).json()

    assert body["total_users"] == 2
    assert body["total_students"] == 1
    assert (body["total_quizzes"], body["published_quizzes"]) == (2, 1)
    assert body["graded_attempts"] == db.query(QuizAttempt).count() == 1


@pytest.mark.asyncio
async def test_graded_submission_invalidates_quiz_cache(db, student, make_quiz):
    cache = AnalyticsCache(redis_url="")
    cache.redis_client = FakeRedis()
    analytics = AnalyticsService(cache=cache)
    service = SubmissionService(GradingService([McqGrader()]), FeatureGate(), cache=cache)
    quiz, questions = make_quiz(QUESTIONS)

    first = analytics.get_quiz_analytics(db, quiz.id)
    assert first["graded_attempts"] == 0
    assert quiz_analytics_key(quiz.id) in cache.redis_client.store

    await service.submit(
        db, quiz.id, student,
        [AnswerSubmission(question_id=questions[0].id, selected_option_index=1)]
    )

    assert quiz_analytics_key(quiz.id) not in cache.redis_client.store
    assert analytics.get_quiz_analytics(db, quiz.id)["graded_attempts"] == 1
