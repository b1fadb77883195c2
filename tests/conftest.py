"""
Shared fixtures: in-memory database, API client and auth headers
"""
import os

# Settings are read at import time; configure before importing the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_PER_MINUTE"] = "10000"
os.environ["RATE_LIMIT_PER_HOUR"] = "100000"
os.environ["REDIS_URL"] = ""
os.environ["GEMINI_API_KEY"] = ""
os.environ["DEEPSEEK_API_KEY"] = ""
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eduprep.api.deps import get_experiment_service
from eduprep.database import Base, get_db, init_db
from eduprep.main import app
from eduprep.services.experiment_service import ExperimentService, InMemoryAssignmentStore
from eduprep.utils.rate_limiter import rate_limiter
from eduprep.utils.security import create_access_token


@pytest.fixture
def engine():
    """Fresh seeded in-memory database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def experiment_service():
    return ExperimentService(InMemoryAssignmentStore())


@pytest.fixture
def client(engine, experiment_service):
    """TestClient bound to the test database"""
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_experiment_service] = lambda: experiment_service
    rate_limiter.reset()

    yield TestClient(app)

    app.dependency_overrides.clear()


def bearer(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def auth_headers():
    """Seeded demo student"""
    return bearer("user_demo")


@pytest.fixture
def teacher_headers():
    return bearer("user_teacher")


@pytest.fixture
def submission():
    """Valid result body in wire format"""
    return {
        "answers": [
            {"questionId": "q1", "selectedOptionIndex": 1, "correct": True},
            {"questionId": "q2", "selectedOptionIndex": 0, "correct": False},
        ],
        "score": 1,
        "total": 2,
        "percentage": 50,
        "timeSpentSeconds": 90,
        "subject": "mathematics",
        "difficulty": "medium",
    }
