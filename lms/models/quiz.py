"""
Quiz and Question models - the question bank
"""
import enum
import uuid

from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from lms.database import Base, JSONType, utcnow


class QuizStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class QuizType(str, enum.Enum):
    MCQ = "MCQ"
    SHORT_ANSWER = "SHORT_ANSWER"


class Quiz(Base):
    """
    Quizzes table - one row per authored quiz
    """
    __tablename__ = "quizzes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    duration_minutes = Column(Integer, nullable=False)
    subject_id = Column(Uuid, nullable=True, index=True)
    class_id = Column(Uuid, nullable=True, index=True)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=False)
    status = Column(String(20), nullable=False, default=QuizStatus.DRAFT.value)
    type = Column(String(20), nullable=False, default=QuizType.MCQ.value)
    deadline = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    questions = relationship(
        "Question",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="Question.created_at",
    )
    attempts = relationship(
        "QuizAttempt",
        back_populates="quiz",
        cascade="all, delete-orphan",
    )

    @property
    def quiz_type(self) -> QuizType:
        return QuizType(self.type)

    @property
    def is_published(self) -> bool:
        return self.status == QuizStatus.PUBLISHED.value

    def __repr__(self):
        return f"<Quiz(id={self.id}, title={self.title}, type={self.type}, status={self.status})>"


class Question(Base):
    """
    Questions table - options and correct_option_index are only set for MCQ quizzes
    """
    __tablename__ = "questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    options = Column(JSONType)  # ["Option A", "Option B", ...]
    correct_option_index = Column(Integer)
    slo_tag = Column(String(100))
    topic = Column(String(100))
    difficulty = Column(String(20), default="medium")
    created_at = Column(DateTime(timezone=True), default=utcnow)

    quiz = relationship("Quiz", back_populates="questions")

    def __repr__(self):
        return f"<Question(id={self.id}, quiz_id={self.quiz_id})>"
