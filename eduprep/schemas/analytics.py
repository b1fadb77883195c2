"""
Pydantic schemas for analytics endpoints
"""
from typing import List, Optional
from datetime import datetime

from eduprep.schemas.common import CamelModel


class ActivityItem(CamelModel):
    """One of the most recent results"""
    id: int
    test_id: Optional[str] = None
    title: str
    subject: str
    score: int
    percentage: int
    time_spent_seconds: int
    completed_at: datetime


class TrendPoint(CamelModel):
    """A result inside the progress trend window"""
    date: str
    score: int
    subject: str


class SubjectBreakdown(CamelModel):
    """Aggregates for one subject"""
    subject: str
    tests_count: int
    average_score: int
    total_time: int  # minutes
    percentage: int  # share of all tests


class DifficultyBreakdown(CamelModel):
    """Aggregates for one difficulty tier"""
    difficulty: str
    tests_count: int
    average_score: int
    percentage: int


class UserAnalytics(CamelModel):
    """Complete per-user analytics"""
    total_tests: int
    average_score: int
    recent_activity: List[ActivityItem]
    progress_trend: List[TrendPoint]
    study_streak: int
    total_study_time: int  # minutes
    subject_breakdown: List[SubjectBreakdown]
    difficulty_breakdown: List[DifficultyBreakdown]


class SubjectResult(CamelModel):
    """Result row inside subject analytics"""
    id: int
    title: str
    difficulty: str
    score: int
    percentage: int
    time_spent_seconds: int
    completed_at: datetime
    answers: List[dict]


class SubjectAnalytics(CamelModel):
    """Analytics for one subject"""
    subject: str
    total_tests: int
    average_score: int
    best_score: int
    worst_score: int
    total_time: int
    results: List[SubjectResult]


class UserStanding(CamelModel):
    average_score: float
    tests_completed: int
    percentile: int


class PlatformStats(CamelModel):
    total_users: int
    average_score: int
    min_score: float
    max_score: float


class Comparison(CamelModel):
    """Anonymised comparison with all users who completed a test"""
    user: UserStanding
    platform: PlatformStats
