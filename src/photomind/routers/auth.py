"""Account endpoints: register, login, current user."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from photomind.auth.config import AuthSettings
from photomind.auth.dependencies import get_auth_settings, get_current_user
from photomind.auth.jwt import create_access_token
from photomind.auth.models import User
from photomind.auth.passwords import hash_password, verify_password
from photomind.auth.schemas import LoginRequest, LoginResponse, RegisterRequest, UserResponse
from photomind.database import get_db
from photomind.ratelimit import limiter


router = APIRouter(prefix="/api/v1/users", tags=["users"])
logger = logging.getLogger(__name__)


def _conflict() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Username or email already exists",
    )


def create_user(db: Session, body: RegisterRequest) -> User:
    """Create an account.

    Raises:
        HTTPException 409: username or email already taken
    """
    username = body.username.strip()
    email = body.email.strip().lower()

    existing = db.query(User).filter(or_(User.username == username, User.email == email)).first()
    if existing:
        raise _conflict()

    user = User(username=username, email=email, password_hash=hash_password(body.password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise _conflict()
    db.refresh(user)
    logger.info(f"Registered user {user.id} ({user.username})")
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    """Return the user for valid credentials.

    Raises:
        HTTPException 401: unknown email or wrong password
    """
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return user


@router.post("/register", response_model=dict, status_code=201)
@limiter.limit("10/minute")
async def register(
    request: Request,
    body: RegisterRequest,
    db: Session = Depends(get_db),
):
    """Register a new account."""
    user = create_user(db, body)
    return {
        "message": "User registered successfully",
        "user": UserResponse(id=user.id, username=user.username, email=user.email).model_dump(),
    }


@router.post("/login", response_model=LoginResponse)
@limiter.limit("20/minute")
async def login(
    request: Request,
    body: LoginRequest,
    db: Session = Depends(get_db),
    auth_settings: AuthSettings = Depends(get_auth_settings),
):
    """Exchange email and password for a bearer token."""
    user = authenticate_user(db, body.email, body.password)
    return LoginResponse(token=create_access_token(user.id, auth_settings))


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    return UserResponse(id=user.id, username=user.username, email=user.email)
