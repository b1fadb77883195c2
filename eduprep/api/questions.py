"""
Question bank API endpoint
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Literal, Optional
import logging

from eduprep.database import get_db
from eduprep.errors import UpstreamServiceError
from eduprep.schemas.test import Difficulty
from eduprep.services.question_store import load_question_bank

router = APIRouter(prefix="/api/questions", tags=["questions"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[Dict[str, Any]])
async def list_questions(
    subject: Optional[str] = Query(None, max_length=64),
    difficulty: Optional[Difficulty] = None,
    mode: Literal["review", "exam"] = Query("review", description="exam omits answer keys"),
    db: Session = Depends(get_db)
):
    """
    Flat question bank across all tests

    - Ordered by test, then by position within the test
    - Each question carries its test's subject and difficulty
    - Optional subject/difficulty filters
    """
    try:
        questions = load_question_bank(db, subject=subject, difficulty=difficulty)
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch questions: {str(e)}")
        raise UpstreamServiceError("Failed to fetch questions") from e

    logger.info(f"Returning {len(questions)} questions (subject={subject}, difficulty={difficulty})")
    if mode == "exam":
        return [question.public_dict() for question in questions]
    return [question.model_dump(by_alias=True) for question in questions]
