"""
FeatureControl model - premium gating per feature
"""
from sqlalchemy import Column, String, Boolean, DateTime, Uuid
from lms.database import Base, utcnow
import uuid


class FeatureName:
    NOTES = "notes"
    QUIZZES = "quizzes"
    SHORT_ANSWER_QUIZ = "shortAnswerQuiz"
    CONCEPT_MASTER_AI = "conceptMasterAi"

    ALL = (NOTES, QUIZZES, SHORT_ANSWER_QUIZ, CONCEPT_MASTER_AI)


class FeatureControl(Base):
    """
    Feature controls table - a missing row means the feature is free
    """
    __tablename__ = "feature_controls"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    feature_name = Column(String(50), unique=True, nullable=False)
    is_premium = Column(Boolean, nullable=False, default=False)
    label = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<FeatureControl(feature_name={self.feature_name}, is_premium={self.is_premium})>"
