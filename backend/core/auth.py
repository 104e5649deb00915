"""
JWT authentication for staff-only endpoints.

Public ordering and payment routes take no token; everything that mutates
catalog, stock or order state on behalf of staff goes through
``get_current_user`` or ``require_roles``.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional
import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import get_settings
from .database import get_db
from .exceptions import AuthenticationError, PermissionDeniedError
from modules.auth.models.user_models import User, UserRole

logger = logging.getLogger(__name__)

settings = get_settings()

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")
security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token using secure configuration."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )
    to_encode.update({"exp": expire, "iat": datetime.utcnow(), "type": "access"})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_user_token(user: User) -> str:
    return create_access_token(
        {"sub": str(user.id), "email": user.email, "role": user.role.value}
    )


def decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError as e:
        logger.info(f"Rejected access token: {e}")
        raise AuthenticationError("Invalid or expired token", "TOKEN_INVALID")

    if payload.get("type") != "access" or not payload.get("sub"):
        raise AuthenticationError("Invalid or expired token", "TOKEN_INVALID")
    return payload


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required", "TOKEN_MISSING")

    payload = decode_token(credentials.credentials)

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid or expired token", "TOKEN_INVALID")

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("Invalid or expired token", "TOKEN_INVALID")
    return user


def require_roles(*roles: UserRole) -> Callable:
    """Dependency factory: the current user must hold one of ``roles``."""

    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise PermissionDeniedError(
                f"Requires one of roles: {', '.join(r.value for r in roles)}"
            )
        return current_user

    return checker


require_manager = require_roles(UserRole.ADMIN, UserRole.MANAGER)
