"""
Landing page experiment API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from eduprep.api.deps import get_experiment_service
from eduprep.database import get_db
from eduprep.schemas.experiment import AssignmentResponse, AssignRequest, EventIn, EventResponse
from eduprep.services.experiment_service import ExperimentService

router = APIRouter(prefix="/api/experiments", tags=["experiments"])
logger = logging.getLogger(__name__)


@router.post("/{experiment_name}/assign", response_model=AssignmentResponse)
async def assign_variant(
    experiment_name: str,
    request: AssignRequest,
    service: ExperimentService = Depends(get_experiment_service)
):
    """
    Get the variant of a visitor

    The same visitor always gets the same variant; ``bucket`` is only
    present on the first assignment.
    """
    assignment = service.assign_variant(request.visitor_id, experiment_name)
    return AssignmentResponse(
        experiment=assignment.experiment,
        variant=assignment.variant,
        bucket=assignment.bucket
    )


@router.post("/events", response_model=EventResponse, status_code=201)
async def track_event(
    request: EventIn,
    db: Session = Depends(get_db),
    service: ExperimentService = Depends(get_experiment_service)
):
    """Log a standard landing page event with the visitor's variant"""
    event = service.track_event(
        db,
        experiment_name=request.experiment,
        visitor_id=request.visitor_id,
        event_name=request.event_name,
        properties=request.properties
    )
    return EventResponse.model_validate(event)
