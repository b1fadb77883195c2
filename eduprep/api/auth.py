"""
Registration and login API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from eduprep.database import get_db
from eduprep.errors import AuthenticationError, ValidationError
from eduprep.models import User
from eduprep.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserPublic
from eduprep.schemas.common import Message
from eduprep.utils.security import create_access_token, get_password_hash, verify_password

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        user=UserPublic.model_validate(user),
        token=create_access_token(user.id)
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """
    Register a new student or teacher account

    Returns the created user with an access token.
    """
    email = request.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise ValidationError("User already exists")

    user = User(
        email=email,
        password_hash=get_password_hash(request.password),
        name=request.name,
        role=request.role
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("User already exists")
    db.refresh(user)

    logger.info(f"Registered user {user.id} ({user.role})")
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for an access token"""
    user = db.query(User).filter(User.email == request.email.lower()).first()
    if not user or not verify_password(request.password, user.password_hash):
        logger.info(f"Failed login for {request.email}")
        raise AuthenticationError("Invalid credentials")

    logger.info(f"User {user.id} logged in")
    return _auth_response(user)


@router.post("/logout", response_model=Message)
async def logout():
    """Tokens are stateless; the client discards its token"""
    return Message(message="Logged out successfully")
