"""
Pydantic schemas for the AI tutor endpoints
"""
from pydantic import Field
from typing import List, Literal, Optional
from datetime import datetime

from eduprep.schemas.common import CamelModel
from eduprep.schemas.test import Difficulty, Question


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1, max_length=4000)
    context: Optional[str] = Field(None, max_length=2000)
    language: Optional[Literal["ru", "kz"]] = None


class ChatResponse(CamelModel):
    response: str
    provider: str
    timestamp: datetime


class ChatHistoryItem(CamelModel):
    id: int
    message: str
    response: str
    context: Optional[str] = None
    provider: Optional[str] = None
    timestamp: datetime


class QuizGenerationRequest(CamelModel):
    subject: str = Field(..., min_length=1, max_length=255)
    difficulty: Difficulty = "medium"
    count: int = Field(5, ge=1, le=20)


class QuizGenerationResponse(CamelModel):
    subject: str
    difficulty: str
    questions: List[Question]
