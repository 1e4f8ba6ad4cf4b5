"""
QuizAttempt and QuizResult models - the attempt ledger and per-question results
"""
import enum
import uuid

from sqlalchemy import (
    Column, String, Integer, Text, Boolean, Numeric, DateTime, ForeignKey,
    UniqueConstraint, Uuid,
)
from sqlalchemy.orm import relationship

from lms.database import Base, JSONType, utcnow


class AttemptStatus(str, enum.Enum):
    RESERVED = "reserved"
    GRADED = "graded"
    FAILED = "failed"


class QuizAttempt(Base):
    """
    Quiz attempts table - at most one per (quiz, student)
    """
    __tablename__ = "quiz_attempts"
    __table_args__ = (
        UniqueConstraint("quiz_id", "student_id", name="uq_quiz_attempts_quiz_student"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=AttemptStatus.RESERVED.value)
    score = Column(Integer, nullable=False, default=0)
    percentage = Column(Numeric(5, 2, asdecimal=False), nullable=False, default=0)
    started_at = Column(DateTime(timezone=True), default=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    quiz = relationship("Quiz", back_populates="attempts")
    student = relationship("User")
    results = relationship(
        "QuizResult",
        back_populates="attempt",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return (
            f"<QuizAttempt(quiz_id={self.quiz_id}, student_id={self.student_id}, "
            f"status={self.status}, score={self.score})>"
        )


class QuizResult(Base):
    """
    Quiz results table - one row per answered question per attempt
    """
    __tablename__ = "quiz_results"
    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_quiz_results_attempt_question"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    attempt_id = Column(Uuid, ForeignKey("quiz_attempts.id"), nullable=False, index=True)
    question_id = Column(Uuid, ForeignKey("questions.id"), nullable=False)
    correct = Column(Boolean, nullable=False)
    selected_option_index = Column(Integer)  # MCQ
    student_answer_text = Column(Text)  # SHORT_ANSWER
    ai_feedback = Column(JSONType)  # {"feedback": "...", "status": "correct"}

    attempt = relationship("QuizAttempt", back_populates="results")
    question = relationship("Question")

    def __repr__(self):
        return f"<QuizResult(attempt_id={self.attempt_id}, question_id={self.question_id}, correct={self.correct})>"
