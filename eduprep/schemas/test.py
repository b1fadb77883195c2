"""
Pydantic schemas for questions, tests and result submission
"""
from pydantic import Field, model_validator
from typing import List, Dict, Any, Optional, Literal
from datetime import datetime

from eduprep.schemas.common import CamelModel

Difficulty = Literal["easy", "medium", "hard"]


class Question(CamelModel):
    """A single multiple-choice question; immutable once created"""
    id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    correct_answer_index: int
    subject: str = "general"
    difficulty: Difficulty = "medium"
    explanation: Optional[str] = None

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_correct_answer_index(self):
        if not 0 <= self.correct_answer_index < len(self.options):
            raise ValueError(
                f"correct_answer_index {self.correct_answer_index} out of range "
                f"for {len(self.options)} options"
            )
        return self

    def public_dict(self) -> Dict[str, Any]:
        """Wire form without the answer key, for exam-mode fetches"""
        return self.model_dump(by_alias=True, exclude={"correct_answer_index", "explanation"})


class TestCreate(CamelModel):
    """Schema for creating a new test (teacher/admin only)"""
    __test__ = False

    title: str = Field(..., min_length=1, max_length=255)
    subject: str = Field(..., min_length=1, max_length=64)
    difficulty: Difficulty
    time_limit: Optional[int] = Field(None, ge=1, description="Time limit in seconds")
    questions: List[Question] = Field(..., min_length=1)


class TestResponse(CamelModel):
    """Test with its questions; answer keys omitted in exam mode"""
    __test__ = False

    id: str
    title: str
    subject: str
    difficulty: str
    time_limit: Optional[int] = None
    questions: List[Dict[str, Any]]
    total_questions: int
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class AnswerIn(CamelModel):
    """One recorded answer as sent by the client"""
    question_id: str = Field(..., min_length=1)
    selected_option_index: int = Field(..., ge=0)
    correct: Optional[bool] = None


class ResultSubmission(CamelModel):
    """Body of POST /api/tests/submit and /api/tests/{id}/submit"""
    answers: List[AnswerIn]
    score: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    percentage: int = Field(..., ge=0, le=100)
    time_spent_seconds: int = Field(..., ge=0)
    subject: Optional[str] = Field(None, max_length=64)
    difficulty: Optional[Difficulty] = None

    @model_validator(mode="after")
    def check_score_within_total(self):
        if self.score > self.total:
            raise ValueError("score cannot exceed total")
        return self


class QuestionOutcome(CamelModel):
    """Scoring outcome for a single answered question"""
    question_id: str
    selected_option_index: int
    correct: bool

    class Config:
        frozen = True


class ScoredResult(CamelModel):
    """Immutable output of the scoring engine"""
    score: int
    total: int
    percentage: int
    per_question: List[QuestionOutcome]
    time_spent_seconds: int = 0

    class Config:
        frozen = True


class ResultRecord(CamelModel):
    """Durable test result as stored by the server"""
    id: int
    user_id: str
    test_id: Optional[str] = None
    answers: List[Dict[str, Any]]
    score: int
    total: int
    percentage: int
    time_spent_seconds: int
    subject: Optional[str] = None
    difficulty: Optional[str] = None
    title: Optional[str] = None
    completed_at: datetime
