"""FastAPI dependencies for authentication."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from jose import JWTError
from sqlalchemy.orm import Session

from photomind.auth.config import AuthSettings
from photomind.auth.jwt import get_user_id_from_token
from photomind.auth.models import User
from photomind.database import get_db


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_auth_settings(request: Request) -> AuthSettings:
    """Return the AuthSettings the application was started with."""
    auth_settings = getattr(request.app.state, "auth_settings", None)
    if auth_settings is None:
        raise HTTPException(status_code=500, detail="Authentication is not configured")
    return auth_settings


def get_current_user(
    authorization: Optional[str] = Header(None),
    auth_settings: AuthSettings = Depends(get_auth_settings),
    db: Session = Depends(get_db),
) -> User:
    """Verify the bearer token and return the authenticated user.

    Raises:
        HTTPException 401: Missing header, invalid or expired token, unknown user
    """
    if not authorization:
        raise _unauthorized("Authorization header is required")

    if not authorization.startswith("Bearer "):
        raise _unauthorized("Bearer token is required")

    token = authorization[7:].strip()  # Remove "Bearer " prefix
    try:
        user_id = get_user_id_from_token(token, auth_settings)
    except JWTError:
        raise _unauthorized("Invalid token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise _unauthorized("Invalid token")
    return user
