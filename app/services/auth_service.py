"""
Authentication Service for the Walk Check-in service.

Issues and validates bearer tokens for route admins and participants.
Participant tokens are minted after the external login exchange; this
module only signs and reads them.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from fastapi import status
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.models.admin import RouteAdmin

settings = get_settings()
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenRole(str, Enum):
    """Who a bearer token was issued to."""

    ADMIN = "admin"
    PARTICIPANT = "participant"


class AuthError(Exception):
    """Bearer token or credential check failed."""

    def __init__(self, message: str, status_code: int = status.HTTP_401_UNAUTHORIZED):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check an admin password against its bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a plain password."""
    return pwd_context.hash(password)


def create_access_token(
    subject: str,
    role: TokenRole,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token for an admin or a participant."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode: dict[str, Any] = {"sub": subject, "role": role.value, "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str, expected_role: TokenRole | None = None) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Raises:
        AuthError: invalid, expired, or issued to another role
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        raise AuthError("Invalid or expired token") from e

    if not payload.get("sub"):
        raise AuthError("Invalid token payload")
    if expected_role is not None and payload.get("role") != expected_role.value:
        raise AuthError("Token not valid for this endpoint", status.HTTP_403_FORBIDDEN)
    return payload


async def authenticate_admin(session: AsyncSession, account: str, password: str) -> RouteAdmin:
    """
    Check a route admin's credentials.

    Raises:
        AuthError: unknown account or wrong password
    """
    result = await session.execute(select(RouteAdmin).where(RouteAdmin.account == account))
    admin = result.scalar_one_or_none()
    if admin is None or not verify_password(password, admin.password_hash):
        raise AuthError("Incorrect account or password")
    return admin
