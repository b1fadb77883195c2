"""
Result persistence and per-user aggregate statistics
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from eduprep.config import settings
from eduprep.database import utcnow
from eduprep.errors import NotFoundError, UpstreamServiceError
from eduprep.models import TestResult, User
from eduprep.services.scoring_service import round_half_up

logger = logging.getLogger(__name__)


def compute_study_streak(percentages: List[int], threshold: Optional[int] = None) -> int:
    """
    Count consecutive passing results, newest first

    Stops at the first result below the threshold; 0 when the newest
    result already failed or there is no history.
    """
    threshold = settings.PASSING_PERCENTAGE if threshold is None else threshold
    streak = 0
    for percentage in percentages:
        if percentage < threshold:
            break
        streak += 1
    return streak


def user_lock_query(db: Session, user_id: str) -> Query:
    """SELECT ... FOR UPDATE on the user row; submissions for one user queue on it"""
    return db.query(User).filter(User.id == user_id).with_for_update()


class StatsService:
    """
    Service for storing results and keeping user aggregates consistent

    The user row is locked first, so the history read for the streak and
    the aggregate UPDATE see every earlier submission of that user.
    """

    def record_result(
        self,
        db: Session,
        user_id: str,
        answers: List[Dict[str, Any]],
        score: int,
        total: int,
        percentage: int,
        time_spent_seconds: int,
        test_id: Optional[str] = None,
        subject: Optional[str] = None,
        difficulty: Optional[str] = None
    ) -> TestResult:
        """
        Persist a scored result and fold it into the user's aggregates

        Both writes happen in one transaction.

        Raises:
            NotFoundError: user row does not exist
            UpstreamServiceError: storage failure
        """
        try:
            if user_lock_query(db, user_id).first() is None:
                db.rollback()
                raise NotFoundError("User not found")

            result = TestResult(
                user_id=user_id,
                test_id=test_id,
                answers=answers,
                score=score,
                total=total,
                percentage=percentage,
                time_spent_seconds=time_spent_seconds,
                subject=subject,
                difficulty=difficulty,
                completed_at=utcnow()
            )
            db.add(result)
            db.flush()

            streak = self._history_streak(db, user_id)
            db.execute(
                update(User)
                .where(User.id == user_id)
                .values(
                    tests_completed=User.tests_completed + 1,
                    # Right-hand columns read the pre-update row values
                    average_score=func.round(
                        (User.average_score * User.tests_completed + percentage)
                        / (User.tests_completed + 1.0)
                    ),
                    total_study_time=User.total_study_time + round_half_up(time_spent_seconds / 60),
                    study_streak=streak,
                    updated_at=utcnow()
                )
                .execution_options(synchronize_session=False)
            )

            db.commit()
            db.refresh(result)

        except SQLAlchemyError as e:
            logger.error(f"Failed to store test result for {user_id}: {str(e)}")
            db.rollback()
            raise UpstreamServiceError("Failed to submit test result") from e

        logger.info(
            f"Result stored: id={result.id}, user={user_id}, "
            f"score={score}/{total} ({percentage}%), streak={streak}"
        )
        return result

    def _history_streak(self, db: Session, user_id: str) -> int:
        """Streak over the user's full history, newest first"""
        rows = (
            db.query(TestResult.percentage)
            .filter(TestResult.user_id == user_id)
            .order_by(TestResult.completed_at.desc(), TestResult.id.desc())
            .all()
        )
        return compute_study_streak([row[0] for row in rows])


# Global instance
stats_service = StatsService()
