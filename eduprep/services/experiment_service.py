"""
Landing page experiment bucketing and event logging

Visitors are assigned to a variant by a deterministic string hash, so the
same visitor lands in the same bucket on every device. The first
assignment is persisted in an injected store and reused afterwards.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eduprep.config import settings
from eduprep.errors import NotFoundError, UpstreamServiceError, ValidationError
from eduprep.models import ExperimentEvent
from eduprep.utils.cache import CacheService

logger = logging.getLogger(__name__)

BUCKET_COUNT = 100

# Standard event names shared by all landing page variants
EVENTS = {
    "HERO_CTA_CLICK": "hero_cta_click",
    "SIGNUP_START": "signup_start",
    "SIGNUP_COMPLETE": "signup_complete",
    "TRIAL_ACTIVATED": "trial_activated",
    "ROLE_SELECTED": "role_selected",
    "DEMO_VIDEO_PLAY": "demo_video_play",
    "PRICING_VIEW": "pricing_view",
    "SOCIAL_SIGNIN_CLICK": "social_signin_click",
    "PAGE_VIEW": "page_view",
    "PAGE_EXIT": "page_exit",
    "SCROLL_DEPTH": "scroll_depth",
}


class ExperimentConfig(BaseModel):
    """An experiment with ordered variant weights that must sum to 100"""
    name: str = Field(..., min_length=1)
    weights: Dict[str, int]

    @field_validator("weights")
    @classmethod
    def check_weights(cls, weights: Dict[str, int]) -> Dict[str, int]:
        if not weights:
            raise ValueError("experiment needs at least one variant")
        if any(weight < 0 for weight in weights.values()):
            raise ValueError("variant weights must be non-negative")
        total = sum(weights.values())
        if total != BUCKET_COUNT:
            raise ValueError(f"variant weights must sum to {BUCKET_COUNT}, got {total}")
        return weights


@dataclass(frozen=True)
class Assignment:
    experiment: str
    visitor_id: str
    variant: str
    bucket: Optional[int]  # None when served from the store
    cached: bool


def simple_hash(value: str) -> int:
    """
    Non-negative 32-bit string hash (h = h * 31 + code unit)

    Iterates UTF-16 code units and wraps like a signed 32-bit integer,
    so assignments agree with the browser-side implementation.
    """
    data = value.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def compute_bucket(visitor_id: str, experiment_name: str) -> int:
    return simple_hash(visitor_id + experiment_name) % BUCKET_COUNT


def pick_variant(bucket: int, weights: Dict[str, int]) -> str:
    """First variant, in declared order, whose cumulative upper bound exceeds the bucket"""
    threshold = 0
    for variant, weight in weights.items():
        threshold += weight
        if bucket < threshold:
            return variant
    # Unreachable for validated weights
    raise ValidationError(f"bucket {bucket} not covered by weights {weights}")


class AssignmentStore(ABC):
    """Durable key-value store for visitor assignments"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, variant: str) -> None:
        ...


class InMemoryAssignmentStore(AssignmentStore):
    """Process-local store; used in tests and when Redis is unavailable"""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, variant: str) -> None:
        self._data[key] = variant


class CacheAssignmentStore(AssignmentStore):
    """Redis-backed store, entries kept without expiry"""

    def __init__(self, cache: CacheService):
        self.cache = cache

    def get(self, key: str) -> Optional[str]:
        value = self.cache.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, variant: str) -> None:
        self.cache.set(key, variant)


class ExperimentService:
    """Service for assigning visitors to variants and logging experiment events"""

    def __init__(
        self,
        store: AssignmentStore,
        experiments: Optional[Dict[str, Dict[str, int]]] = None
    ):
        self.store = store
        definitions = settings.EXPERIMENTS if experiments is None else experiments
        # Invalid weights fail here, when the service is configured
        self.experiments: Dict[str, ExperimentConfig] = {
            name: ExperimentConfig(name=name, weights=weights)
            for name, weights in definitions.items()
        }

    def get_experiment(self, name: str) -> ExperimentConfig:
        experiment = self.experiments.get(name)
        if experiment is None:
            raise NotFoundError(f"Experiment not found: {name}")
        return experiment

    def assign_variant(
        self,
        visitor_id: str,
        experiment_name: str,
        weights: Optional[Dict[str, int]] = None
    ) -> Assignment:
        """
        Get or assign the variant of a visitor

        Args:
            visitor_id: Persisted visitor identifier
            experiment_name: Experiment to bucket into
            weights: Ordered variant weights; defaults to the configured experiment

        Returns:
            Assignment; ``cached`` is True when it came from the store
        """
        if not visitor_id:
            raise ValidationError("visitor_id is required")

        if weights is None:
            config = self.get_experiment(experiment_name)
        else:
            try:
                config = ExperimentConfig(name=experiment_name, weights=weights)
            except ValueError as e:
                raise ValidationError(str(e)) from e

        key = self._key(experiment_name, visitor_id)
        stored = self.store.get(key)
        if stored is not None and stored in config.weights:
            return Assignment(experiment_name, visitor_id, stored, None, True)

        bucket = compute_bucket(visitor_id, experiment_name)
        variant = pick_variant(bucket, config.weights)
        self.store.set(key, variant)

        logger.info(f"Assigned {visitor_id} to {experiment_name}/{variant} (bucket {bucket})")
        return Assignment(experiment_name, visitor_id, variant, bucket, False)

    def track_event(
        self,
        db: Session,
        experiment_name: str,
        visitor_id: str,
        event_name: str,
        properties: Optional[Dict[str, Any]] = None
    ) -> ExperimentEvent:
        """
        Log an experiment event with the visitor's variant attached

        Raises:
            ValidationError: unknown event name
            UpstreamServiceError: storage failure
        """
        if event_name not in EVENTS.values():
            raise ValidationError(f"Unknown event: {event_name}")

        assignment = self.assign_variant(visitor_id, experiment_name)

        event = ExperimentEvent(
            experiment_name=experiment_name,
            variant=assignment.variant,
            visitor_id=visitor_id,
            event_name=event_name,
            properties=properties or {}
        )
        try:
            db.add(event)
            db.commit()
            db.refresh(event)
        except SQLAlchemyError as e:
            logger.error(f"Failed to store experiment event: {str(e)}")
            db.rollback()
            raise UpstreamServiceError("Failed to store experiment event") from e

        logger.info(f"Experiment event: {event_name} ({experiment_name}/{assignment.variant})")
        return event

    @staticmethod
    def _key(experiment_name: str, visitor_id: str) -> str:
        return f"experiment:{experiment_name}:{visitor_id}"
