"""Access token issuing and verification."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from photomind.auth.config import AuthSettings


def create_access_token(
    user_id: int,
    auth_settings: AuthSettings,
    now: Optional[datetime] = None,
) -> str:
    """Create a signed token carrying the user id and an expiry."""
    issued_at = now or datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(hours=auth_settings.expire_hours)
    claims = {
        "sub": str(user_id),
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(claims, auth_settings.secret, algorithm=auth_settings.algorithm)


def verify_access_token(token: str, auth_settings: AuthSettings) -> Dict[str, Any]:
    """Verify signature and expiry and return the decoded claims.

    Raises:
        JWTError: If the token is invalid, expired, or has no subject
    """
    decoded = jwt.decode(
        token,
        auth_settings.secret,
        algorithms=[auth_settings.algorithm],
        options={
            "verify_signature": True,
            "verify_exp": True,
        },
    )
    if not decoded.get("sub"):
        raise JWTError("Token has no subject")
    return decoded


def get_user_id_from_token(token: str, auth_settings: AuthSettings) -> int:
    """Extract the user id from a verified token."""
    decoded = verify_access_token(token, auth_settings)
    try:
        return int(decoded["sub"])
    except (TypeError, ValueError) as exc:
        raise JWTError("Token subject is not a user id") from exc
