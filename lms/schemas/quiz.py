"""
Pydantic schemas for quiz-related requests and responses
"""
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional, Literal
from uuid import UUID
from datetime import datetime


class QuizCreate(BaseModel):
    """Request schema for quiz creation"""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    duration_minutes: int = Field(..., gt=0, description="Time limit in minutes")
    subject_id: Optional[UUID] = None
    class_id: Optional[UUID] = None
    status: Literal["draft", "published"] = "draft"
    type: Literal["MCQ", "SHORT_ANSWER"] = "MCQ"
    deadline: Optional[datetime] = None


class QuizUpdate(BaseModel):
    """Partial update; only fields that are sent are applied"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, gt=0)
    subject_id: Optional[UUID] = None
    class_id: Optional[UUID] = None
    status: Optional[Literal["draft", "published"]] = None
    type: Optional[Literal["MCQ", "SHORT_ANSWER"]] = None
    deadline: Optional[datetime] = None


class QuizResponse(BaseModel):
    """Quiz metadata"""
    id: UUID
    title: str
    description: Optional[str] = None
    duration_minutes: int
    subject_id: Optional[UUID] = None
    class_id: Optional[UUID] = None
    created_by: UUID
    status: str
    type: str
    deadline: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QuestionCreate(BaseModel):
    """Request schema for adding a question"""
    text: str = Field(..., min_length=1)
    options: Optional[List[str]] = None
    correct_option_index: Optional[int] = Field(None, ge=0)
    slo_tag: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Literal["easy", "medium", "hard"] = "medium"


class QuestionPublic(BaseModel):
    """Question as shown to a student taking the quiz"""
    id: UUID
    text: str
    options: Optional[List[str]] = None
    slo_tag: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[str] = None

    class Config:
        from_attributes = True


class QuestionResponse(QuestionPublic):
    """Question including the answer key"""
    quiz_id: UUID
    correct_option_index: Optional[int] = None


class QuizDetail(QuizResponse):
    """Quiz with its questions, answer key stripped"""
    questions: List[QuestionPublic]


class AdminQuizDetail(QuizResponse):
    """Quiz with its questions and answer key"""
    questions: List[QuestionResponse]


class AnswerSubmission(BaseModel):
    """
    One submitted answer

    MCQ quizzes: {question_id, selected_option_index}
    Short answer quizzes: {question_id, answer_text}
    """
    question_id: UUID
    selected_option_index: Optional[int] = Field(None, ge=0)
    answer_text: Optional[str] = None

    @model_validator(mode="after")
    def check_answer_present(self):
        if self.selected_option_index is None and self.answer_text is None:
            raise ValueError("either selected_option_index or answer_text is required")
        return self


class QuizSubmission(BaseModel):
    """Schema for quiz submission"""
    answers: List[AnswerSubmission] = Field(default_factory=list)


class SubmissionSummary(BaseModel):
    """Response after quiz grading"""
    attempt_id: UUID
    score: int
    total: int
    percentage: float
