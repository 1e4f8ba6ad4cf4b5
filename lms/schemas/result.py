"""
Pydantic schemas for attempts and per-question results
"""
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import datetime

from lms.schemas.quiz import QuestionResponse, QuizResponse
from lms.schemas.user import StudentSummary


class AttemptResponse(BaseModel):
    """One student's attempt at a quiz"""
    id: UUID
    quiz_id: UUID
    student_id: UUID
    status: str
    score: int
    percentage: float
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AttemptWithQuiz(AttemptResponse):
    quiz: Optional[QuizResponse] = None


class AttemptWithStudent(AttemptWithQuiz):
    """System-wide attempt listing for administrators"""
    student: Optional[StudentSummary] = None


class ResultResponse(BaseModel):
    """Outcome for one question within an attempt"""
    id: UUID
    question_id: UUID
    correct: bool
    selected_option_index: Optional[int] = None
    student_answer_text: Optional[str] = None
    ai_feedback: Optional[Dict[str, Any]] = None
    question: Optional[QuestionResponse] = None

    class Config:
        from_attributes = True


class AttemptDetails(BaseModel):
    """Attempt with question-by-question breakdown"""
    attempt: AttemptWithQuiz
    quiz_results: List[ResultResponse]
