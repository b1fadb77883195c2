"""
Pydantic schemas for landing page experiments
"""
from pydantic import Field
from typing import Any, Dict, Optional
from datetime import datetime

from eduprep.schemas.common import CamelModel


class AssignRequest(CamelModel):
    visitor_id: str = Field(..., min_length=1, max_length=128)


class AssignmentResponse(CamelModel):
    experiment: str
    variant: str
    bucket: Optional[int] = None  # absent when the stored assignment was reused


class EventIn(CamelModel):
    experiment: str = Field(..., min_length=1)
    visitor_id: str = Field(..., min_length=1, max_length=128)
    event_name: str = Field(..., min_length=1)
    properties: Dict[str, Any] = Field(default_factory=dict)


class EventResponse(CamelModel):
    id: int
    experiment_name: str
    variant: str
    visitor_id: str
    event_name: str
    properties: Dict[str, Any]
    created_at: datetime
