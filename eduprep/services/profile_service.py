"""
Profile service: account updates and the rank/achievement summary
"""
import logging
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from eduprep.database import utcnow
from eduprep.errors import UpstreamServiceError, ValidationError
from eduprep.models import Test, TestResult, User
from eduprep.services.scoring_service import round_half_up
from eduprep.services.stats_service import compute_study_streak

logger = logging.getLogger(__name__)

RECENT_TESTS_LIMIT = 5

# (minimum average score, rank), highest first
RANKS = [
    (90, "Эксперт"),
    (80, "Продвинутый"),
    (70, "Средний"),
    (60, "Развивающийся"),
]
DEFAULT_RANK = "Начинающий"


def compute_rank(average_score: float) -> str:
    for threshold, rank in RANKS:
        if average_score >= threshold:
            return rank
    return DEFAULT_RANK


def compute_achievements(
    tests_completed: int,
    average_score: float,
    total_study_time: int,
    streak: int
) -> List[str]:
    """Achievement labels earned so far, in display order"""
    achievements = []
    if tests_completed >= 1:
        achievements.append("Первый тест")
    if tests_completed >= 5:
        achievements.append("Активный ученик")
    if tests_completed >= 10:
        achievements.append("Настойчивый")
    if streak >= 3:
        achievements.append("Серия побед")
    if average_score >= 90:
        achievements.append("Отличник")
    if total_study_time >= 60:
        achievements.append("Час изучения")
    return achievements


class ProfileService:
    """Service for reading and updating the current user's profile"""

    def update_profile(self, db: Session, user: User, name=None, email=None) -> User:
        """
        Update name and/or email

        Raises:
            ValidationError: nothing to update or email already taken
        """
        if not name and not email:
            raise ValidationError("No fields to update")

        if email:
            email = email.lower()
            taken = db.query(User).filter(User.email == email, User.id != user.id).first()
            if taken:
                raise ValidationError("Email already exists")
            user.email = email
        if name:
            user.name = name
        user.updated_at = utcnow()

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise ValidationError("Email already exists") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to update profile of {user.id}: {str(e)}")
            raise UpstreamServiceError("Failed to update profile") from e

        db.refresh(user)
        logger.info(f"Profile of {user.id} updated")
        return user

    def get_stats(self, db: Session, user: User) -> Dict[str, Any]:
        """
        Profile summary: question counts, streak, rank, achievements and
        the five most recent tests
        """
        try:
            rows = (
                db.query(TestResult, Test.subject)
                .outerjoin(Test, TestResult.test_id == Test.id)
                .filter(TestResult.user_id == user.id)
                .order_by(TestResult.completed_at.desc(), TestResult.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch stats for {user.id}: {str(e)}")
            raise UpstreamServiceError("Failed to fetch detailed stats") from e

        total_questions = sum(len(result.answers or []) for result, _ in rows)
        correct_answers = sum(
            1
            for result, _ in rows
            for answer in (result.answers or [])
            if answer.get("correct")
        )
        streak = compute_study_streak([result.percentage for result, _ in rows])

        tests_completed = user.tests_completed or 0
        average_score = user.average_score or 0
        study_time = user.total_study_time or 0

        return {
            "tests_completed": tests_completed,
            "average_score": average_score,
            "total_questions": total_questions,
            "correct_answers": correct_answers,
            "study_time": study_time,
            "streak": streak,
            "rank": compute_rank(average_score),
            "achievements": compute_achievements(tests_completed, average_score, study_time, streak),
            "recent_tests": [
                {
                    "subject": result.subject or subject or "general",
                    "score": result.score,
                    "total": result.total,
                    "percentage": round_half_up(result.percentage),
                    "completed_at": result.completed_at
                }
                for result, subject in rows[:RECENT_TESTS_LIMIT]
            ]
        }


# Global instance
profile_service = ProfileService()
