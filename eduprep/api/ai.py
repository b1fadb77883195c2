"""
AI tutor API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from eduprep.api.deps import get_current_user, get_optional_user
from eduprep.database import get_db, utcnow
from eduprep.errors import UpstreamServiceError
from eduprep.models import ChatMessage, User
from eduprep.schemas.ai import (
    ChatHistoryItem,
    ChatRequest,
    ChatResponse,
    QuizGenerationRequest,
    QuizGenerationResponse,
)
from eduprep.services.ai_service import ai_service

router = APIRouter(prefix="/api/ai", tags=["ai"])
logger = logging.getLogger(__name__)

MAX_HISTORY = 50


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user)
):
    """
    Ask the AI tutor

    - Gemini, DeepSeek and OpenRouter are tried in turn
    - A canned answer is returned when every provider fails
    - The exchange is saved to the history of authenticated users
    """
    reply = await ai_service.chat(request.message, request.context, request.language)
    if reply.error:
        logger.info(f"Answered by {reply.provider} after: {reply.error}")

    if user is not None:
        try:
            db.add(ChatMessage(
                user_id=user.id,
                message=request.message,
                response=reply.response,
                context=request.context,
                provider=reply.provider
            ))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to save chat history for {user.id}: {str(e)}")

    return ChatResponse(response=reply.response, provider=reply.provider, timestamp=utcnow())


@router.get("/chat/history", response_model=List[ChatHistoryItem])
async def get_chat_history(
    limit: int = Query(10, description="Clamped to 1..50"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Most recent exchanges of the current user, in chronological order"""
    limit = min(MAX_HISTORY, max(1, limit))
    try:
        messages = (
            db.query(ChatMessage)
            .filter(ChatMessage.user_id == user.id)
            .order_by(ChatMessage.timestamp.desc(), ChatMessage.id.desc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch chat history for {user.id}: {str(e)}")
        raise UpstreamServiceError("Failed to fetch chat history") from e

    return [ChatHistoryItem.model_validate(message) for message in reversed(messages)]


@router.post("/generate-quiz", response_model=QuizGenerationResponse)
async def generate_quiz(
    request: QuizGenerationRequest,
    user: User = Depends(get_current_user)
):
    """Generate multiple-choice questions for a subject"""
    logger.info(
        f"Generating {request.count} {request.difficulty} questions on "
        f"{request.subject} for {user.id}"
    )
    questions = await ai_service.generate_quiz(request.subject, request.difficulty, request.count)
    return QuizGenerationResponse(
        subject=request.subject,
        difficulty=request.difficulty,
        questions=questions
    )
