import os
from datetime import timedelta

# Settings are read at import time; point them at throwaway backends first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GEMINI_API_KEY"] = "test-key"
os.environ["REDIS_URL"] = ""
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["RATE_LIMIT_PER_HOUR"] = "1000000"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from lms.database import Base, SessionLocal, engine, utcnow
from lms.main import app
from lms.models import FeatureControl, Question, Quiz, User, UserRole
from lms.schemas.grading import OracleVerdict
from lms.services.feature_service import FeatureGate
from lms.services.grading_service import GradingService, McqGrader, ShortAnswerGrader
from lms.services.submission_service import SubmissionService
from lms.utils.rate_limiter import rate_limiter


class FakeOracle:
    """Scripted grading oracle; each call pops the next response"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def grade(self, items):
        self.calls.append(list(items))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return await response(items)
        return response


def verdicts_for(items_or_ids, statuses, feedback="feedback"):
    ids = [getattr(i, "id", i) for i in items_or_ids]
    return [
        OracleVerdict(question_id=str(qid), status=status, feedback=f"{feedback} {n}")
        for n, (qid, status) in enumerate(zip(ids, statuses))
    ]


class NotificationRecorder:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def __call__(self, user_id, title, message):
        if self.fail:
            raise RuntimeError("notification backend down")
        self.sent.append((user_id, title, message))


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _user(db, name, role=UserRole.STUDENT, is_premium=False):
    user = User(name=name, email=f"{name.lower()}@example.com", role=role, is_premium=is_premium)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db):
    return _user(db, "Admin", role=UserRole.ADMIN)


@pytest.fixture
def student(db):
    return _user(db, "Student")


@pytest.fixture
def other_student(db):
    return _user(db, "Other")


@pytest.fixture
def premium_student(db):
    return _user(db, "Premium", is_premium=True)


@pytest.fixture
def make_quiz(db, admin):
    """Create a quiz; questions are (text, options, correct_index) or (text,) tuples"""

    def factory(questions=(), quiz_type="MCQ", status="published", deadline=None, title="Algebra"):
        quiz = Quiz(
            title=title,
            duration_minutes=10,
            created_by=admin.id,
            status=status,
            type=quiz_type,
            deadline=deadline,
        )
        db.add(quiz)
        db.flush()

        created = []
        for n, spec in enumerate(questions):
            text = spec[0]
            options = spec[1] if len(spec) > 1 else None
            correct = spec[2] if len(spec) > 2 else None
            topic = spec[3] if len(spec) > 3 else None
            question = Question(
                quiz_id=quiz.id,
                text=text,
                options=options,
                correct_option_index=correct,
                topic=topic,
                created_at=utcnow() + timedelta(microseconds=n),
            )
            db.add(question)
            created.append(question)

        db.commit()
        db.refresh(quiz)
        return quiz, created

    return factory


@pytest.fixture
def set_premium(db):
    def factory(feature_name, is_premium=True):
        feature = db.query(FeatureControl).filter(FeatureControl.feature_name == feature_name).first()
        if feature is None:
            feature = FeatureControl(feature_name=feature_name, label=feature_name)
            db.add(feature)
        feature.is_premium = is_premium
        db.commit()

    return factory


def build_service(oracle=None, max_attempts=1, timeout_seconds=5.0):
    graders = [McqGrader()]
    if oracle is not None:
        graders.append(ShortAnswerGrader(
            oracle,
            timeout_seconds=timeout_seconds,
            max_attempts=max_attempts,
            backoff_seconds=0,
        ))
    return SubmissionService(grading=GradingService(graders), feature_gate=FeatureGate())


@pytest.fixture
def client(db):
    rate_limiter.reset()
    # startup hooks are skipped; tables come from the db fixture
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(user):
    return {"X-User-Id": str(user.id)}

