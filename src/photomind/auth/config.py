"""Signing configuration for access tokens."""

import logging
from dataclasses import dataclass
from typing import Optional

from photomind.settings import Settings


logger = logging.getLogger(__name__)

MIN_SECRET_BYTES = 32
DEV_DEFAULT_SECRET = "dev_default_secret_key_change_in_production"


class AuthConfigError(ValueError):
    """Raised when the token signing configuration is unusable."""


@dataclass(frozen=True)
class AuthSettings:
    """Token signing parameters, built once at startup and injected."""

    secret: str
    algorithm: str = "HS256"
    expire_hours: int = 24

    def __post_init__(self):
        if len(self.secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise AuthConfigError(
                f"JWT secret must be at least {MIN_SECRET_BYTES} bytes long"
            )


def build_auth_settings(app_settings: Settings, secret: Optional[str] = None) -> AuthSettings:
    """Build AuthSettings from application settings.

    Falls back to a development secret when none is configured; that fallback
    is refused outside the dev environment.
    """
    value = secret if secret is not None else app_settings.jwt_secret
    if not value:
        if not app_settings.is_development:
            raise AuthConfigError("JWT_SECRET must be set outside the dev environment")
        logger.warning("Using default JWT secret. Set JWT_SECRET in production.")
        value = DEV_DEFAULT_SECRET
    return AuthSettings(
        secret=value,
        algorithm=app_settings.jwt_algorithm,
        expire_hours=app_settings.jwt_expire_hours,
    )
