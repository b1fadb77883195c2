"""
Shared FastAPI dependencies: authentication, roles and service wiring
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from eduprep.database import get_db
from eduprep.errors import AuthenticationError, AuthorizationError
from eduprep.models import User
from eduprep.services.experiment_service import (
    CacheAssignmentStore,
    ExperimentService,
    InMemoryAssignmentStore,
)
from eduprep.utils.cache import cache_service
from eduprep.utils.security import decode_token

bearer_scheme = HTTPBearer(auto_error=False)


def _user_from_credentials(
    db: Session,
    credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[User]:
    if credentials is None:
        return None

    payload = decode_token(credentials.credentials)
    if not payload or payload.get("type") != "access" or not payload.get("sub"):
        raise AuthenticationError("Invalid or expired token")

    user = db.query(User).filter(User.id == payload["sub"]).first()
    if user is None:
        raise AuthenticationError("Invalid or expired token")
    return user


def get_current_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> User:
    """
    Resolve the user from the Bearer token

    Raises:
        AuthenticationError: token missing, invalid, expired or of an unknown user
    """
    user = _user_from_credentials(db, credentials)
    if user is None:
        raise AuthenticationError("Access token required")
    return user


def get_optional_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[User]:
    """Like ``get_current_user`` but anonymous callers get None; bad tokens still fail"""
    return _user_from_credentials(db, credentials)


def require_roles(*roles: str):
    """Dependency factory rejecting users whose role is not in ``roles``"""

    def _check(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise AuthorizationError(f"Requires role: {', '.join(roles)}")
        return user

    return _check


_experiment_service: Optional[ExperimentService] = None


def get_experiment_service() -> ExperimentService:
    """Experiment service backed by Redis when available, process memory otherwise"""
    global _experiment_service
    if _experiment_service is None:
        store = CacheAssignmentStore(cache_service) if cache_service.enabled else InMemoryAssignmentStore()
        _experiment_service = ExperimentService(store)
    return _experiment_service
