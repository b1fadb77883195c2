"""
Question store: seed content and loading of stored test questions
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from eduprep.models import Test, User
from eduprep.schemas.test import Question
from eduprep.utils.security import get_password_hash

logger = logging.getLogger(__name__)


DEFAULT_USERS: List[Dict[str, str]] = [
    {"id": "user_demo", "email": "demo@example.com", "password": "password123",
     "name": "Demo User", "role": "student"},
    {"id": "user_admin", "email": "admin@example.com", "password": "admin123",
     "name": "Admin User", "role": "admin"},
    {"id": "user_teacher", "email": "teacher@example.com", "password": "teacher123",
     "name": "Teacher User", "role": "teacher"},
]

DEFAULT_QUESTIONS: List[Dict[str, Any]] = [
    {
        "id": "q1",
        "text": "Что является столицей Казахстана?",
        "options": ["Алматы", "Нур-Султан", "Шымкент", "Караганда"],
        "correct_answer_index": 1,
        "subject": "География",
        "difficulty": "easy",
    },
    {
        "id": "q2",
        "text": "Сколько будет 15 + 27?",
        "options": ["40", "42", "45", "48"],
        "correct_answer_index": 1,
        "subject": "Математика",
        "difficulty": "easy",
    },
    {
        "id": "q3",
        "text": "Кто написал роман \"Война и мир\"?",
        "options": ["А.С. Пушкин", "Л.Н. Толстой", "Ф.М. Достоевский", "И.С. Тургенев"],
        "correct_answer_index": 1,
        "subject": "Литература",
        "difficulty": "medium",
    },
    {
        "id": "q4",
        "text": "В каком году была принята Конституция Республики Казахстан?",
        "options": ["1991", "1993", "1995", "1997"],
        "correct_answer_index": 2,
        "subject": "История",
        "difficulty": "medium",
    },
    {
        "id": "q5",
        "text": "Что такое квадратный корень из 64?",
        "options": ["6", "7", "8", "9"],
        "correct_answer_index": 2,
        "subject": "Математика",
        "difficulty": "easy",
    },
]

DEFAULT_TESTS: List[Dict[str, Any]] = [
    {
        "id": "test-1",
        "title": "Математика - Алгебра",
        "subject": "mathematics",
        "difficulty": "medium",
        "time_limit": 1800,
        "questions": [
            {
                "id": "q1",
                "text": "Решите уравнение: 2x + 5 = 13",
                "options": ["x = 4", "x = 3", "x = 5", "x = 6"],
                "correct_answer_index": 0,
                "subject": "mathematics",
                "difficulty": "medium",
                "explanation": "2x + 5 = 13, значит 2x = 8, откуда x = 4",
            },
            {
                "id": "q2",
                "text": "Найдите значение выражения: (3 + 2) × 4",
                "options": ["20", "18", "14", "16"],
                "correct_answer_index": 0,
                "subject": "mathematics",
                "difficulty": "medium",
                "explanation": "Сначала вычисляем в скобках: 3 + 2 = 5, затем 5 × 4 = 20",
            },
        ],
    },
    {
        "id": "test-2",
        "title": "История Казахстана",
        "subject": "history",
        "difficulty": "easy",
        "time_limit": 1200,
        "questions": [
            {
                "id": "q1",
                "text": "В каком году была провозглашена независимость Казахстана?",
                "options": ["1990", "1991", "1992", "1993"],
                "correct_answer_index": 1,
                "subject": "history",
                "difficulty": "easy",
                "explanation": "Казахстан провозгласил независимость 16 декабря 1991 года",
            },
        ],
    },
    {
        "id": "test-general",
        "title": "Общие знания",
        "subject": "general",
        "difficulty": "easy",
        "time_limit": None,
        "questions": DEFAULT_QUESTIONS,
    },
]


def load_test_questions(test: Test) -> List[Question]:
    """Turn the stored JSON question list of a test into Question objects"""
    return [Question.model_validate(raw) for raw in (test.questions or [])]


def load_question_bank(
    db: Session,
    subject: Optional[str] = None,
    difficulty: Optional[str] = None
) -> List[Question]:
    """
    Flat question bank across all tests, in test creation order

    Each question is tagged with the subject and difficulty of its test;
    the filters match on those test-level values.
    """
    query = db.query(Test)
    if subject:
        query = query.filter(Test.subject == subject)
    if difficulty:
        query = query.filter(Test.difficulty == difficulty)

    bank = []
    for test in query.order_by(Test.created_at, Test.id).all():
        for question in load_test_questions(test):
            bank.append(question.model_copy(
                update={"subject": test.subject, "difficulty": test.difficulty}
            ))
    return bank


def seed_database(db: Session) -> bool:
    """
    Insert demo users and tests when the database is empty

    Returns:
        True if seed data was inserted
    """
    if db.query(User).count() > 0:
        logger.info("Default data already exists")
        return False

    logger.info("Inserting default data...")

    for user in DEFAULT_USERS:
        db.add(User(
            id=user["id"],
            email=user["email"],
            password_hash=get_password_hash(user["password"]),
            name=user["name"],
            role=user["role"]
        ))
    db.flush()

    for test in DEFAULT_TESTS:
        # Validate seed content the same way authored tests are validated
        questions = [Question.model_validate(q).model_dump() for q in test["questions"]]
        db.add(Test(
            id=test["id"],
            title=test["title"],
            subject=test["subject"],
            difficulty=test["difficulty"],
            time_limit=test["time_limit"],
            questions=questions,
            created_by="user_teacher"
        ))

    db.commit()
    logger.info("Default data inserted successfully")
    return True
