"""
Analytics service for student and quiz performance tracking
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from lms.models import (
    AttemptStatus, Question, Quiz, QuizAttempt, QuizResult, QuizStatus, User, UserRole,
)
from lms.database import utcnow
from lms.utils.cache import AnalyticsCache, analytics_cache

logger = logging.getLogger(__name__)

WEAK_TOPIC_THRESHOLD = 60.0
RECENT_ATTEMPTS_LIMIT = 50
TOP_STUDENTS_LIMIT = 5
TOP_QUIZZES_LIMIT = 10
ACTIVITY_DAYS = 7


class AnalyticsService:
    """Aggregations over graded attempts and their per-question results"""

    def __init__(self, cache: Optional[AnalyticsCache] = None):
        self.cache = cache

    def get_student_overview(self, db: Session, student_id: UUID) -> Dict[str, Any]:
        """
        Recent graded attempts with overall statistics

        Args:
            db: Database session
            student_id: Student UUID

        Returns:
            Dictionary with attempts, averages, weak areas and recommendations
        """
        rows = (
            db.query(QuizAttempt, Quiz.title)
            .join(Quiz, Quiz.id == QuizAttempt.quiz_id)
            .filter(
                QuizAttempt.student_id == student_id,
                QuizAttempt.status == AttemptStatus.GRADED.value
            )
            .order_by(QuizAttempt.completed_at.desc())
            .limit(RECENT_ATTEMPTS_LIMIT)
            .all()
        )

        attempts = [
            {
                "attempt_id": attempt.id,
                "quiz_id": attempt.quiz_id,
                "title": title,
                "score": attempt.score,
                "percentage": float(attempt.percentage or 0),
                "completed_at": attempt.completed_at,
            }
            for attempt, title in rows
        ]

        total_graded, avg_percentage = (
            db.query(func.count(QuizAttempt.id), func.avg(QuizAttempt.percentage))
            .filter(
                QuizAttempt.student_id == student_id,
                QuizAttempt.status == AttemptStatus.GRADED.value
            )
            .one()
        )
        avg_percentage = round(float(avg_percentage or 0), 2)

        topic_accuracy = self.get_accuracy_by(db, student_id, "topic")
        weak_areas = [
            item["label"] for item in topic_accuracy
            if item["accuracy"] < WEAK_TOPIC_THRESHOLD
        ]

        return {
            "student_id": student_id,
            "total_attempts": total_graded,
            "average_percentage": avg_percentage,
            "attempts": attempts,
            "weak_areas": weak_areas,
            "recommendations": self._generate_recommendations(total_graded, avg_percentage, weak_areas),
        }

    def get_accuracy_by(self, db: Session, student_id: UUID, dimension: str) -> List[Dict[str, Any]]:
        """
        Percentage of correct results grouped by a question tag

        Args:
            dimension: "topic" or "slo_tag"
        """
        column = getattr(Question, dimension)
        correct_pct = func.avg(case((QuizResult.correct.is_(True), 100.0), else_=0.0))

        rows = (
            db.query(column, correct_pct, func.count(QuizResult.id))
            .join(QuizResult, QuizResult.question_id == Question.id)
            .join(QuizAttempt, QuizAttempt.id == QuizResult.attempt_id)
            .filter(QuizAttempt.student_id == student_id, column.isnot(None))
            .group_by(column)
            .all()
        )

        accuracy = [
            {"label": label, "accuracy": round(float(pct or 0), 2), "answered": answered}
            for label, pct, answered in rows
        ]
        accuracy.sort(key=lambda x: x["accuracy"], reverse=True)
        return accuracy

    def get_quiz_analytics(self, db: Session, quiz_id: UUID) -> Optional[Dict[str, Any]]:
        """
        Attempt statistics and per-question accuracy for one quiz

        Results are cached until the quiz is next graded, edited or deleted.
        """
        if self.cache is not None:
            cached = self.cache.get_quiz(quiz_id)
            if cached is not None:
                return cached

        quiz = db.get(Quiz, quiz_id)
        if quiz is None:
            return None

        total_attempts = db.query(func.count(QuizAttempt.id)).filter(
            QuizAttempt.quiz_id == quiz_id
        ).scalar()

        graded_attempts, avg_pct, max_pct, min_pct = (
            db.query(
                func.count(QuizAttempt.id),
                func.avg(QuizAttempt.percentage),
                func.max(QuizAttempt.percentage),
                func.min(QuizAttempt.percentage),
            )
            .filter(
                QuizAttempt.quiz_id == quiz_id,
                QuizAttempt.status == AttemptStatus.GRADED.value
            )
            .one()
        )

        analytics = {
            "quiz_id": str(quiz.id),
            "title": quiz.title,
            "type": quiz.type,
            "total_attempts": total_attempts or 0,
            "graded_attempts": graded_attempts or 0,
            "average_percentage": round(float(avg_pct or 0), 2),
            "highest_percentage": round(float(max_pct or 0), 2),
            "lowest_percentage": round(float(min_pct or 0), 2),
            "questions": self._question_accuracy(db, quiz_id),
        }

        if self.cache is not None:
            self.cache.put_quiz(quiz_id, analytics)

        return analytics

    def _question_accuracy(self, db: Session, quiz_id: UUID) -> List[Dict[str, Any]]:
        """Per-question answer counts, hardest first"""
        correct_count = func.sum(case((QuizResult.correct.is_(True), 1), else_=0))

        rows = (
            db.query(
                Question.id,
                Question.text,
                Question.topic,
                func.count(QuizResult.id),
                correct_count,
            )
            .outerjoin(QuizResult, QuizResult.question_id == Question.id)
            .filter(Question.quiz_id == quiz_id)
            .group_by(Question.id, Question.text, Question.topic)
            .all()
        )

        questions = []
        for question_id, text, topic, answered, correct in rows:
            correct = int(correct or 0)
            questions.append({
                "question_id": str(question_id),
                "question_text": text[:100] + "..." if len(text) > 100 else text,
                "topic": topic,
                "answered": answered,
                "correct": correct,
                "accuracy": round(correct / answered * 100, 2) if answered else 0.0,
            })

        questions.sort(key=lambda x: x["accuracy"])
        return questions

    def get_system_overview(self, db: Session) -> Dict[str, int]:
        """Headline counts for the admin dashboard"""
        return {
            "total_users": db.query(func.count(User.id)).scalar() or 0,
            "total_students": db.query(func.count(User.id)).filter(
                User.role == UserRole.STUDENT
            ).scalar() or 0,
            "total_quizzes": db.query(func.count(Quiz.id)).scalar() or 0,
            "published_quizzes": db.query(func.count(Quiz.id)).filter(
                Quiz.status == QuizStatus.PUBLISHED.value
            ).scalar() or 0,
            "total_attempts": db.query(func.count(QuizAttempt.id)).scalar() or 0,
            "graded_attempts": db.query(func.count(QuizAttempt.id)).filter(
                QuizAttempt.status == AttemptStatus.GRADED.value
            ).scalar() or 0,
        }

    def get_admin_dashboard(self, db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Leaderboards and recent activity

        Returns:
            - top_students: best average percentage over graded attempts
            - quiz_performance: most attempted quizzes with their averages
            - daily_activity: attempts started per day over the last week
        """
        graded = QuizAttempt.status == AttemptStatus.GRADED.value
        avg_pct = func.avg(QuizAttempt.percentage)
        attempt_count = func.count(QuizAttempt.id)

        student_rows = (
            db.query(User.id, User.name, User.email, avg_pct, attempt_count)
            .join(QuizAttempt, QuizAttempt.student_id == User.id)
            .filter(graded)
            .group_by(User.id, User.name, User.email)
            .order_by(avg_pct.desc(), User.name)
            .limit(TOP_STUDENTS_LIMIT)
            .all()
        )

        quiz_rows = (
            db.query(Quiz.id, Quiz.title, avg_pct, attempt_count)
            .join(QuizAttempt, QuizAttempt.quiz_id == Quiz.id)
            .filter(graded)
            .group_by(Quiz.id, Quiz.title)
            .order_by(attempt_count.desc(), Quiz.title)
            .limit(TOP_QUIZZES_LIMIT)
            .all()
        )

        since = (now or utcnow()) - timedelta(days=ACTIVITY_DAYS)
        day = func.date(QuizAttempt.started_at)
        activity_rows = (
            db.query(day, attempt_count)
            .filter(QuizAttempt.started_at >= since)
            .group_by(day)
            .order_by(day)
            .all()
        )

        return {
            "top_students": [
                {
                    "student_id": student_id,
                    "name": name,
                    "email": email,
                    "average_percentage": round(float(pct or 0), 1),
                    "attempts": attempts,
                }
                for student_id, name, email, pct, attempts in student_rows
            ],
            "quiz_performance": [
                {
                    "quiz_id": quiz_id,
                    "title": title,
                    "average_percentage": round(float(pct or 0), 1),
                    "attempts": attempts,
                }
                for quiz_id, title, pct, attempts in quiz_rows
            ],
            # SQLite returns the day as text, PostgreSQL as a date
            "daily_activity": [
                {"date": str(date), "count": count}
                for date, count in activity_rows
            ],
        }

    def _generate_recommendations(
        self,
        total_attempts: int,
        avg_percentage: float,
        weak_areas: List[str]
    ) -> List[str]:
        """Generate personalized recommendations"""

        recommendations = []

        if total_attempts == 0:
            return ["Attempt your first quiz to start tracking progress"]

        if avg_percentage < 60:
            recommendations.append("Review fundamental concepts before attempting more quizzes")
        elif avg_percentage < 80:
            recommendations.append("Good progress! Revisit incorrect answers to close the gaps")
        else:
            recommendations.append("Excellent performance! Keep up the regular practice")

        if weak_areas:
            recommendations.append(f"Strengthen understanding in: {', '.join(weak_areas[:3])}")

        return recommendations


# Global instance
analytics_service = AnalyticsService(cache=analytics_cache)
