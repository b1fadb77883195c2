"""
Test catalogue and result submission API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Literal, Optional
import logging

from eduprep.api.deps import get_current_user, require_roles
from eduprep.config import settings
from eduprep.database import get_db
from eduprep.errors import NotFoundError, UpstreamServiceError
from eduprep.models import Test, TestResult, User
from eduprep.schemas.test import ResultRecord, ResultSubmission, TestCreate, TestResponse
from eduprep.services.question_store import load_test_questions
from eduprep.services.scoring_service import scoring_service
from eduprep.services.stats_service import stats_service
from eduprep.utils.cache import cache_service

router = APIRouter(prefix="/api/tests", tags=["tests"])
logger = logging.getLogger(__name__)

TESTS_CACHE_KEY = cache_service.generate_cache_key("tests", "all")


def _to_response(test: Test, exam: bool = False) -> TestResponse:
    questions = load_test_questions(test)
    return TestResponse(
        id=test.id,
        title=test.title,
        subject=test.subject,
        difficulty=test.difficulty,
        time_limit=test.time_limit,
        questions=[
            question.public_dict() if exam else question.model_dump(by_alias=True)
            for question in questions
        ],
        total_questions=len(questions),
        created_by=test.created_by,
        created_at=test.created_at
    )


def _to_record(result: TestResult, title: Optional[str] = None) -> ResultRecord:
    return ResultRecord(
        id=result.id,
        user_id=result.user_id,
        test_id=result.test_id,
        answers=result.answers or [],
        score=result.score,
        total=result.total,
        percentage=result.percentage,
        time_spent_seconds=result.time_spent_seconds,
        subject=result.subject,
        difficulty=result.difficulty,
        title=title,
        completed_at=result.completed_at
    )


@router.get("", response_model=List[TestResponse])
async def list_tests(db: Session = Depends(get_db)):
    """
    List all tests, newest first

    - Cached in Redis (5-minute TTL) when available
    - Cache is dropped whenever a test is created
    """
    cached = cache_service.get(TESTS_CACHE_KEY)
    if cached is not None:
        logger.info("Returning cached test list")
        return [TestResponse.model_validate(item) for item in cached]

    try:
        tests = db.query(Test).order_by(Test.created_at.desc(), Test.id).all()
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch tests: {str(e)}")
        raise UpstreamServiceError("Failed to fetch tests") from e

    response = [_to_response(test) for test in tests]
    cache_service.set(
        TESTS_CACHE_KEY,
        [item.model_dump(mode="json", by_alias=True) for item in response],
        ttl=settings.DEFAULT_TESTS_CACHE_TTL
    )
    return response


@router.post("", response_model=TestResponse, status_code=201)
async def create_test(
    request: TestCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles("teacher", "admin"))
):
    """Create a test (teacher/admin only)"""
    test = Test(
        title=request.title,
        subject=request.subject,
        difficulty=request.difficulty,
        time_limit=request.time_limit,
        questions=[question.model_dump() for question in request.questions],
        created_by=user.id
    )
    try:
        db.add(test)
        db.commit()
        db.refresh(test)
    except SQLAlchemyError as e:
        logger.error(f"Failed to create test: {str(e)}")
        db.rollback()
        raise UpstreamServiceError("Failed to create test") from e

    cache_service.delete(TESTS_CACHE_KEY)
    logger.info(f"Test {test.id} created by {user.id} with {len(request.questions)} questions")
    return _to_response(test)


@router.post("/submit", response_model=ResultRecord, status_code=201)
async def submit_result(
    submission: ResultSubmission,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """
    Store a result scored by the client

    Updates the user's aggregate statistics in the same transaction.
    """
    result = stats_service.record_result(
        db,
        user_id=user.id,
        answers=[answer.model_dump(by_alias=True, exclude_none=True) for answer in submission.answers],
        score=submission.score,
        total=submission.total,
        percentage=submission.percentage,
        time_spent_seconds=submission.time_spent_seconds,
        subject=submission.subject or "general",
        difficulty=submission.difficulty
    )
    return _to_record(result)


@router.get("/results/me", response_model=List[ResultRecord])
async def get_my_results(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """All results of the current user, newest first"""
    try:
        rows = (
            db.query(TestResult, Test.title)
            .outerjoin(Test, TestResult.test_id == Test.id)
            .filter(TestResult.user_id == user.id)
            .order_by(TestResult.completed_at.desc(), TestResult.id.desc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch results for {user.id}: {str(e)}")
        raise UpstreamServiceError("Failed to fetch test results") from e

    return [_to_record(result, title) for result, title in rows]


@router.get("/{test_id}", response_model=TestResponse)
async def get_test(
    test_id: str,
    mode: Literal["review", "exam"] = Query("review", description="exam omits answer keys"),
    db: Session = Depends(get_db)
):
    """Get one test with its questions"""
    test = db.query(Test).filter(Test.id == test_id).first()
    if not test:
        raise NotFoundError("Test not found")
    return _to_response(test, exam=(mode == "exam"))


@router.post("/{test_id}/submit", response_model=ResultRecord, status_code=201)
async def submit_test_result(
    test_id: str,
    submission: ResultSubmission,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """
    Store a result for a stored test

    The answers are re-scored against the stored questions; client-sent
    score, total and percentage are ignored.
    """
    test = db.query(Test).filter(Test.id == test_id).first()
    if not test:
        raise NotFoundError("Test not found")

    scored = scoring_service.score(
        load_test_questions(test),
        submission.answers,
        submission.time_spent_seconds
    )
    if scored.score != submission.score or scored.percentage != submission.percentage:
        logger.warning(
            f"Client score {submission.score}/{submission.total} differs from "
            f"server score {scored.score}/{scored.total} for test {test_id}"
        )

    result = stats_service.record_result(
        db,
        user_id=user.id,
        answers=[outcome.model_dump(by_alias=True) for outcome in scored.per_question],
        score=scored.score,
        total=scored.total,
        percentage=scored.percentage,
        time_spent_seconds=scored.time_spent_seconds,
        test_id=test.id,
        subject=test.subject,
        difficulty=test.difficulty
    )
    return _to_record(result, test.title)
