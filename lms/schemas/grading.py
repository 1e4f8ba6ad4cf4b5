"""
Schemas exchanged with the grading oracle
"""
from pydantic import BaseModel
from typing import Literal


class OracleItem(BaseModel):
    """One short answer sent to the oracle"""
    question_id: str
    question: str
    answer: str


class OracleVerdict(BaseModel):
    """The oracle's judgement of one answer"""
    question_id: str
    status: Literal["correct", "incorrect"]
    feedback: str = ""
