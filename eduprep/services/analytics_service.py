"""
Analytics service for user progress and cross-user comparison
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eduprep.config import settings
from eduprep.database import utcnow
from eduprep.errors import NotFoundError, UpstreamServiceError
from eduprep.models import Test, TestResult, User
from eduprep.services.scoring_service import round_half_up
from eduprep.services.stats_service import compute_study_streak

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "general"
DEFAULT_DIFFICULTY = "medium"


@dataclass(frozen=True)
class HistoryEntry:
    """A persisted result joined with its test metadata"""
    id: int
    percentage: int
    time_spent_seconds: int
    completed_at: datetime
    subject: str = DEFAULT_SUBJECT
    difficulty: str = DEFAULT_DIFFICULTY
    test_id: Optional[str] = None
    title: Optional[str] = None
    answers: List[Dict[str, Any]] = field(default_factory=list)


def _mean(values: Sequence[float]) -> int:
    return round_half_up(sum(values) / len(values)) if values else 0


def _minutes(seconds: int) -> int:
    return round_half_up(seconds / 60)


def compute_percentile(user_average: float, eligible_averages: Sequence[float]) -> int:
    """
    Share of eligible users with a strictly lower average, in percent

    With no eligible users there is nothing to compare against and the
    user sits in the middle (50).
    """
    if not eligible_averages:
        return 50
    below = sum(1 for average in eligible_averages if average < user_average)
    return round_half_up(below / len(eligible_averages) * 100)


def summarize_history(
    entries: Sequence[HistoryEntry],
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Compute user analytics from a newest-first result history

    Args:
        entries: Results ordered newest first
        now: Reference time for the progress trend window

    Returns:
        Dictionary matching the UserAnalytics schema
    """
    if not entries:
        return {
            "total_tests": 0,
            "average_score": 0,
            "recent_activity": [],
            "progress_trend": [],
            "study_streak": 0,
            "total_study_time": 0,
            "subject_breakdown": [],
            "difficulty_breakdown": []
        }

    now = now or utcnow()
    total_tests = len(entries)

    recent_activity = [
        {
            "id": entry.id,
            "test_id": entry.test_id,
            "title": entry.title or f"Test {entry.test_id or entry.subject}",
            "subject": entry.subject,
            "score": entry.percentage,
            "percentage": entry.percentage,
            "time_spent_seconds": entry.time_spent_seconds,
            "completed_at": entry.completed_at
        }
        for entry in entries[:settings.RECENT_ACTIVITY_LIMIT]
    ]

    cutoff = now - timedelta(days=settings.PROGRESS_TREND_DAYS)
    progress_trend = [
        {
            "date": entry.completed_at.date().isoformat(),
            "score": entry.percentage,
            "subject": entry.subject
        }
        for entry in reversed(entries)
        if entry.completed_at >= cutoff
    ]

    return {
        "total_tests": total_tests,
        "average_score": _mean([entry.percentage for entry in entries]),
        "recent_activity": recent_activity,
        "progress_trend": progress_trend,
        "study_streak": compute_study_streak([entry.percentage for entry in entries]),
        "total_study_time": _minutes(sum(entry.time_spent_seconds for entry in entries)),
        "subject_breakdown": _subject_breakdown(entries, total_tests),
        "difficulty_breakdown": _difficulty_breakdown(entries, total_tests)
    }


def _subject_breakdown(entries: Sequence[HistoryEntry], total_tests: int) -> List[Dict[str, Any]]:
    groups: "OrderedDict[str, List[HistoryEntry]]" = OrderedDict()
    for entry in entries:
        groups.setdefault(entry.subject, []).append(entry)

    return [
        {
            "subject": subject,
            "tests_count": len(group),
            "average_score": _mean([entry.percentage for entry in group]),
            "total_time": _minutes(sum(entry.time_spent_seconds for entry in group)),
            "percentage": round_half_up(len(group) / total_tests * 100)
        }
        for subject, group in groups.items()
    ]


def _difficulty_breakdown(entries: Sequence[HistoryEntry], total_tests: int) -> List[Dict[str, Any]]:
    groups: "OrderedDict[str, List[HistoryEntry]]" = OrderedDict()
    for entry in entries:
        groups.setdefault(entry.difficulty, []).append(entry)

    return [
        {
            "difficulty": difficulty,
            "tests_count": len(group),
            "average_score": _mean([entry.percentage for entry in group]),
            "percentage": round_half_up(len(group) / total_tests * 100)
        }
        for difficulty, group in groups.items()
    ]


class AnalyticsService:
    """Service for generating performance analytics from stored results"""

    def load_history(self, db: Session, user_id: str) -> List[HistoryEntry]:
        """
        Load a user's results newest first, joined with test metadata

        Raises:
            UpstreamServiceError: if the result store cannot be read
        """
        try:
            rows = (
                db.query(TestResult, Test)
                .outerjoin(Test, TestResult.test_id == Test.id)
                .filter(TestResult.user_id == user_id)
                .order_by(TestResult.completed_at.desc(), TestResult.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to load history for {user_id}: {str(e)}")
            raise UpstreamServiceError("Failed to fetch analytics") from e

        return [
            HistoryEntry(
                id=result.id,
                percentage=result.percentage,
                time_spent_seconds=result.time_spent_seconds or 0,
                completed_at=result.completed_at,
                subject=result.subject or (test.subject if test else None) or DEFAULT_SUBJECT,
                difficulty=result.difficulty or (test.difficulty if test else None) or DEFAULT_DIFFICULTY,
                test_id=result.test_id,
                title=test.title if test else None,
                answers=result.answers or []
            )
            for result, test in rows
        ]

    def get_user_analytics(self, db: Session, user_id: str) -> Dict[str, Any]:
        """
        Get comprehensive analytics for a user

        Args:
            db: Database session
            user_id: User id

        Returns:
            Dictionary matching the UserAnalytics schema
        """
        history = self.load_history(db, user_id)
        logger.info(f"Computing analytics for {user_id} over {len(history)} results")
        return summarize_history(history)

    def get_subject_analytics(self, db: Session, user_id: str, subject: str) -> Dict[str, Any]:
        """Get best/worst/average figures and result list for one subject"""
        history = [entry for entry in self.load_history(db, user_id) if entry.subject == subject]

        if not history:
            return {
                "subject": subject,
                "total_tests": 0,
                "average_score": 0,
                "best_score": 0,
                "worst_score": 0,
                "total_time": 0,
                "results": []
            }

        scores = [entry.percentage for entry in history]
        return {
            "subject": subject,
            "total_tests": len(history),
            "average_score": _mean(scores),
            "best_score": max(scores),
            "worst_score": min(scores),
            "total_time": _minutes(sum(entry.time_spent_seconds for entry in history)),
            "results": [
                {
                    "id": entry.id,
                    "title": entry.title or f"Test {entry.test_id or subject}",
                    "difficulty": entry.difficulty,
                    "score": entry.percentage,
                    "percentage": entry.percentage,
                    "time_spent_seconds": entry.time_spent_seconds,
                    "completed_at": entry.completed_at,
                    "answers": entry.answers
                }
                for entry in history
            ]
        }

    def get_comparison(self, db: Session, user_id: str) -> Dict[str, Any]:
        """
        Compare a user's average with every user who completed a test

        Raises:
            NotFoundError: unknown user
            UpstreamServiceError: if the user store cannot be read
        """
        try:
            user = db.query(User).filter(User.id == user_id).first()
            if user is None:
                raise NotFoundError("User not found")

            eligible = [
                float(row[0])
                for row in db.query(User.average_score).filter(User.tests_completed > 0).all()
            ]
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch comparison data: {str(e)}")
            raise UpstreamServiceError("Failed to fetch comparison data") from e

        return {
            "user": {
                "average_score": user.average_score or 0,
                "tests_completed": user.tests_completed or 0,
                "percentile": compute_percentile(user.average_score or 0, eligible)
            },
            "platform": {
                "total_users": len(eligible),
                "average_score": _mean(eligible),
                "min_score": min(eligible) if eligible else 0,
                "max_score": max(eligible) if eligible else 0
            }
        }


# Global instance
analytics_service = AnalyticsService()
