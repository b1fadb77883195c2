"""
Pydantic schemas for registration and login
"""
from pydantic import EmailStr, Field
from typing import Literal

from eduprep.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    """Self-registration; admins are only created by seeding"""
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    role: Literal["student", "teacher"] = "student"


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserPublic(CamelModel):
    """User as returned to its owner"""
    id: str
    email: str
    name: str
    role: str
    tests_completed: int = 0
    average_score: float = 0
    study_streak: int = 0
    total_study_time: int = 0


class AuthResponse(CamelModel):
    user: UserPublic
    token: str
