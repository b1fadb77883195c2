"""
Database engine, session factory and schema initialisation
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from eduprep.config import settings

logger = logging.getLogger(__name__)

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args,
    pool_pre_ping=True,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Yield a database session for the duration of a request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """
    Create tables and insert seed data on first start

    Seeding only happens when the users table is empty, so restarting
    the server never duplicates demo content.
    """
    # Models must be imported so they register on Base.metadata
    from eduprep import models  # noqa: F401
    from eduprep.services.question_store import seed_database

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables created/verified")

    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=bind)
    db = session_factory()
    try:
        seed_database(db)
    finally:
        db.close()


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what SQLite hands back on read"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
