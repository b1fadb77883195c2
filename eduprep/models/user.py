"""
User model - account data plus the running aggregate statistics
"""
from sqlalchemy import Column, String, Integer, Float, DateTime
from eduprep.database import Base, utcnow
import uuid


class User(Base):
    """
    Users table - credentials, role and per-user aggregate stats

    The aggregate columns are only mutated by the result submission path
    (see ``stats_service.record_result``) in a single UPDATE statement.
    """
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=lambda: f"user_{uuid.uuid4().hex}")
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="student")  # student | teacher | admin
    tests_completed = Column(Integer, nullable=False, default=0)
    average_score = Column(Float, nullable=False, default=0)
    study_streak = Column(Integer, nullable=False, default=0)
    total_study_time = Column(Integer, nullable=False, default=0)  # minutes
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
