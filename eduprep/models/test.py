"""
Test model - a named, classified collection of questions
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, JSON
from eduprep.database import Base, utcnow
import uuid


class Test(Base):
    """
    Tests table - questions are stored as a JSON array and never mutated
    once results reference them
    """
    __tablename__ = "tests"
    __test__ = False  # not a pytest class

    id = Column(String(64), primary_key=True, default=lambda: f"test_{uuid.uuid4().hex}")
    title = Column(String(255), nullable=False)
    subject = Column(String(64), nullable=False, index=True)
    difficulty = Column(String(20), nullable=False)
    time_limit = Column(Integer)  # seconds
    questions = Column(JSON, nullable=False)  # [{id, text, options, correct_answer_index, ...}]
    created_by = Column(String(64), ForeignKey("users.id"))
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Test(id={self.id}, title={self.title}, subject={self.subject})>"
