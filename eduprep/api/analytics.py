"""
Progress analytics API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from eduprep.api.deps import get_current_user
from eduprep.database import get_db
from eduprep.models import User
from eduprep.schemas.analytics import Comparison, SubjectAnalytics, UserAnalytics
from eduprep.services.analytics_service import analytics_service

router = APIRouter(prefix="/api/analytics", tags=["analytics"])
logger = logging.getLogger(__name__)


@router.get("", response_model=UserAnalytics)
async def get_user_analytics(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """
    Get comprehensive analytics for the current user

    Returns:
    - Total tests, average score, study streak and study time
    - Ten most recent results
    - Progress trend over the last 30 days (oldest first)
    - Subject and difficulty breakdowns

    A user without results gets all-zero aggregates.
    """
    logger.info(f"Fetching analytics for user {user.id}")
    analytics = analytics_service.get_user_analytics(db, user.id)
    return UserAnalytics(**analytics)


@router.get("/subject/{subject}", response_model=SubjectAnalytics)
async def get_subject_analytics(
    subject: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Best, worst and average score plus all results for one subject"""
    logger.info(f"Fetching {subject} analytics for user {user.id}")
    analytics = analytics_service.get_subject_analytics(db, user.id, subject)
    return SubjectAnalytics(**analytics)


@router.get("/comparison", response_model=Comparison)
async def get_comparison(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """
    Compare the current user with everyone who completed a test

    Only aggregate figures about other users are returned.
    """
    comparison = analytics_service.get_comparison(db, user.id)
    return Comparison(**comparison)
