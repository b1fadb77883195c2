"""
Pydantic schemas for profile endpoints
"""
from pydantic import EmailStr, Field
from typing import List, Optional
from datetime import datetime

from eduprep.schemas.common import CamelModel


class ProfileResponse(CamelModel):
    id: str
    email: str
    name: str
    role: str
    tests_completed: int
    average_score: float
    study_streak: int
    total_study_time: int  # minutes
    created_at: Optional[datetime] = None


class ProfileUpdate(CamelModel):
    """At least one field must be set"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None


class RecentTest(CamelModel):
    subject: str
    score: int
    total: int
    percentage: int
    completed_at: datetime


class ProfileStats(CamelModel):
    """Profile summary with rank and achievements"""
    tests_completed: int
    average_score: float
    total_questions: int
    correct_answers: int
    study_time: int  # minutes
    streak: int
    rank: str
    achievements: List[str]
    recent_tests: List[RecentTest]
