"""
Database models package
"""
from lms.models.user import User, UserRole
from lms.models.quiz import Quiz, Question, QuizStatus, QuizType
from lms.models.quiz_attempt import QuizAttempt, QuizResult, AttemptStatus
from lms.models.notification import Notification
from lms.models.feature_control import FeatureControl, FeatureName

__all__ = [
    "User", "UserRole",
    "Quiz", "Question", "QuizStatus", "QuizType",
    "QuizAttempt", "QuizResult", "AttemptStatus",
    "Notification",
    "FeatureControl", "FeatureName",
]
