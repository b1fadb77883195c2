"""
Profile API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from eduprep.api.deps import get_current_user
from eduprep.database import get_db
from eduprep.models import User
from eduprep.schemas.profile import ProfileResponse, ProfileStats, ProfileUpdate
from eduprep.services.profile_service import profile_service

router = APIRouter(prefix="/api/profile", tags=["profile"])
logger = logging.getLogger(__name__)


@router.get("", response_model=ProfileResponse)
async def get_profile(user: User = Depends(get_current_user)):
    """Account data and aggregate statistics of the current user"""
    return ProfileResponse.model_validate(user)


@router.put("", response_model=ProfileResponse)
async def update_profile(
    request: ProfileUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Update name and/or email; 400 when nothing is set or the email is taken"""
    updated = profile_service.update_profile(db, user, name=request.name, email=request.email)
    return ProfileResponse.model_validate(updated)


@router.get("/stats", response_model=ProfileStats)
async def get_profile_stats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """
    Profile summary

    Returns:
    - Answered and correct question counts
    - Current streak of passing results
    - Rank by average score and earned achievements
    - Five most recent tests
    """
    return ProfileStats(**profile_service.get_stats(db, user))
