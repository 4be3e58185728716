"""Authentication module for photomind.

This module handles:
- Token signing configuration injected at startup
- JWT issuing and verification
- Password hashing
- User accounts
"""

from photomind.auth.config import AuthConfigError, AuthSettings, build_auth_settings
from photomind.auth.jwt import create_access_token, verify_access_token
from photomind.auth.models import User
from photomind.auth.passwords import hash_password, verify_password

__all__ = [
    "AuthConfigError",
    "AuthSettings",
    "build_auth_settings",
    "create_access_token",
    "verify_access_token",
    "User",
    "hash_password",
    "verify_password",
]
