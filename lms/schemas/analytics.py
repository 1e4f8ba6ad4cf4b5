"""
Pydantic schemas for analytics endpoints
"""
from pydantic import BaseModel
from typing import List, Optional
from uuid import UUID
from datetime import datetime


class AttemptSummary(BaseModel):
    """One graded attempt in a student's history"""
    attempt_id: UUID
    quiz_id: UUID
    title: str
    score: int
    percentage: float
    completed_at: Optional[datetime] = None


class StudentOverview(BaseModel):
    """Student performance summary"""
    student_id: UUID
    total_attempts: int
    average_percentage: float
    attempts: List[AttemptSummary]
    weak_areas: List[str]
    recommendations: List[str]


class TagAccuracy(BaseModel):
    """Accuracy for one topic or learning-outcome tag"""
    label: str
    accuracy: float
    answered: int


class QuestionAccuracy(BaseModel):
    """Accuracy for one question across all attempts"""
    question_id: UUID
    question_text: str
    topic: Optional[str] = None
    answered: int
    correct: int
    accuracy: float


class QuizAnalytics(BaseModel):
    """Aggregate results for a quiz"""
    quiz_id: UUID
    title: str
    type: str
    total_attempts: int
    graded_attempts: int
    average_percentage: float
    highest_percentage: float
    lowest_percentage: float
    questions: List[QuestionAccuracy]


class SystemOverview(BaseModel):
    """Headline counts"""
    total_users: int
    total_students: int
    total_quizzes: int
    published_quizzes: int
    total_attempts: int
    graded_attempts: int


class TopStudent(BaseModel):
    student_id: UUID
    name: str
    email: str
    average_percentage: float
    attempts: int


class QuizPerformance(BaseModel):
    quiz_id: UUID
    title: str
    average_percentage: float
    attempts: int


class DailyActivity(BaseModel):
    date: str  # YYYY-MM-DD
    count: int


class AdminDashboard(BaseModel):
    """Leaderboards and recent activity for the admin dashboard"""
    top_students: List[TopStudent]
    quiz_performance: List[QuizPerformance]
    daily_activity: List[DailyActivity]
