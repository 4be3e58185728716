"""Tests for accounts, tokens and the current-user dependency."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from jose import JWTError
from starlette.requests import Request

from photomind.auth.config import (
    DEV_DEFAULT_SECRET,
    AuthConfigError,
    AuthSettings,
    build_auth_settings,
)
from photomind.auth.dependencies import get_auth_settings, get_current_user
from photomind.auth.jwt import create_access_token, get_user_id_from_token, verify_access_token
from photomind.auth.models import User
from photomind.auth.passwords import hash_password, verify_password
from photomind.auth.schemas import LoginRequest, RegisterRequest
from photomind.ratelimit import limiter
from photomind.routers.auth import get_me, login, register
from photomind.settings import Settings


SECRET = "s" * 32


@pytest.fixture
def auth_settings():
    return AuthSettings(secret=SECRET)


@pytest.fixture
def no_rate_limit():
    limiter.enabled = False
    yield
    limiter.enabled = True


def _build_request(path: str = "/api/v1/users/register") -> Request:
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": path,
            "headers": [],
        }
    )


def _register(db, username="alice", email="alice@example.com", password="secret1"):
    return asyncio.run(
        register(
            request=_build_request(),
            body=RegisterRequest(username=username, email=email, password=password),
            db=db,
        )
    )


def test_short_secret_is_rejected():
    with pytest.raises(AuthConfigError):
        AuthSettings(secret="too-short")


def test_build_auth_settings_uses_dev_default_only_in_dev():
    dev = build_auth_settings(Settings(environment="dev", jwt_secret=None))
    assert dev.secret == DEV_DEFAULT_SECRET

    with pytest.raises(AuthConfigError):
        build_auth_settings(Settings(environment="prod", jwt_secret=None))

    configured = build_auth_settings(Settings(environment="prod", jwt_secret=SECRET, jwt_expire_hours=2))
    assert configured.secret == SECRET
    assert configured.expire_hours == 2


def test_token_round_trip(auth_settings):
    token = create_access_token(42, auth_settings)

    claims = verify_access_token(token, auth_settings)

    assert claims["sub"] == "42"
    assert claims["exp"] - claims["iat"] == 24 * 3600
    assert get_user_id_from_token(token, auth_settings) == 42


def test_expired_token_is_rejected(auth_settings):
    issued = datetime.now(timezone.utc) - timedelta(hours=25)
    token = create_access_token(1, auth_settings, now=issued)

    with pytest.raises(JWTError):
        verify_access_token(token, auth_settings)


def test_token_signed_with_other_secret_is_rejected(auth_settings):
    token = create_access_token(1, AuthSettings(secret="o" * 32))
    with pytest.raises(JWTError):
        verify_access_token(token, auth_settings)


def test_password_hashing():
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret1", "not-a-hash")


def test_register_then_login(test_db, auth_settings, no_rate_limit):
    response = _register(test_db, email="Alice@Example.com")

    assert response["user"]["username"] == "alice"
    assert response["user"]["email"] == "alice@example.com"

    result = asyncio.run(
        login(
            request=_build_request("/api/v1/users/login"),
            body=LoginRequest(email="alice@example.com", password="secret1"),
            db=test_db,
            auth_settings=auth_settings,
        )
    )
    assert get_user_id_from_token(result.token, auth_settings) == response["user"]["id"]


def test_duplicate_username_or_email_conflicts(test_db, no_rate_limit):
    _register(test_db)

    with pytest.raises(HTTPException) as exc_info:
        _register(test_db, email="other@example.com")
    assert exc_info.value.status_code == 409

    with pytest.raises(HTTPException) as exc_info:
        _register(test_db, username="someone")
    assert exc_info.value.status_code == 409


def test_login_with_wrong_password(test_db, auth_settings, no_rate_limit):
    _register(test_db)

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(
            login(
                request=_build_request("/api/v1/users/login"),
                body=LoginRequest(email="alice@example.com", password="wrong-password"),
                db=test_db,
                auth_settings=auth_settings,
            )
        )
    assert exc_info.value.status_code == 401


@pytest.mark.parametrize("payload", [
    {"username": "abc", "email": "a@example.com", "password": "secret1"},
    {"username": "alice", "email": "not-an-email", "password": "secret1"},
    {"username": "alice", "email": "a@example.com", "password": "12345"},
])
def test_register_request_validation(payload):
    with pytest.raises(ValueError):
        RegisterRequest(**payload)


def test_get_current_user(test_db, auth_settings):
    user = User(username="carol", email="carol@example.com", password_hash=hash_password("secret1"))
    test_db.add(user)
    test_db.commit()

    token = create_access_token(user.id, auth_settings)
    resolved = get_current_user(authorization=f"Bearer {token}", auth_settings=auth_settings, db=test_db)
    assert resolved.id == user.id

    me = asyncio.run(get_me(user=resolved))
    assert me.email == "carol@example.com"


@pytest.mark.parametrize("header", [None, "Token abc", "Bearer not-a-jwt"])
def test_get_current_user_rejects_bad_headers(test_db, auth_settings, header):
    with pytest.raises(HTTPException) as exc_info:
        get_current_user(authorization=header, auth_settings=auth_settings, db=test_db)
    assert exc_info.value.status_code == 401
    assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}


def test_get_current_user_for_deleted_account(test_db, auth_settings):
    token = create_access_token(999, auth_settings)
    with pytest.raises(HTTPException) as exc_info:
        get_current_user(authorization=f"Bearer {token}", auth_settings=auth_settings, db=test_db)
    assert exc_info.value.status_code == 401


def test_auth_settings_come_from_app_state(auth_settings):
    class _State:
        pass

    class _App:
        state = _State()

    request = Request({"type": "http", "method": "GET", "path": "/", "headers": [], "app": _App()})
    with pytest.raises(HTTPException):
        get_auth_settings(request)

    _App.state.auth_settings = auth_settings
    assert get_auth_settings(request) is auth_settings
