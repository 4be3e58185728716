"""Pydantic request/response models for account endpoints."""

from pydantic import BaseModel, Field


EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RegisterRequest(BaseModel):
    """Registration payload."""

    username: str = Field(..., min_length=4, max_length=255)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=128)


class LoginRequest(BaseModel):
    """Login payload."""

    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1, max_length=128)


class LoginResponse(BaseModel):
    token: str


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
