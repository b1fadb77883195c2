"""
ExperimentEvent model - landing page experiment event log
"""
from sqlalchemy import Column, String, Integer, DateTime, JSON
from eduprep.database import Base, utcnow


class ExperimentEvent(Base):
    __tablename__ = "experiment_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    experiment_name = Column(String(128), nullable=False, index=True)
    variant = Column(String(64), nullable=False)
    visitor_id = Column(String(128), nullable=False, index=True)
    event_name = Column(String(64), nullable=False)
    properties = Column(JSON)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<ExperimentEvent(event={self.event_name}, variant={self.variant})>"
