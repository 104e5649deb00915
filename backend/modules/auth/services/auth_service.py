"""Account lookups and credential changes behind the /auth routes."""

import logging

from sqlalchemy.orm import Session

from core.auth import get_password_hash, verify_password
from core.exceptions import AuthenticationError, ConflictError, ValidationError
from ..models.user_models import User
from ..schemas.auth_schemas import (
    ChangePasswordRequest,
    ProfileUpdate,
    RegisterRequest,
)

logger = logging.getLogger(__name__)


def authenticate_user(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email.lower()).first()
    if user is None or not verify_password(password, user.hashed_password):
        logger.info(f"Failed login for {email}")
        raise AuthenticationError("Invalid email or password", "INVALID_CREDENTIALS")
    if not user.is_active:
        raise AuthenticationError("Account is disabled", "ACCOUNT_DISABLED")
    return user


def register_user(db: Session, data: RegisterRequest) -> User:
    email = data.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise ConflictError(f"User {email} already exists", "USER_EXISTS")

    user = User(
        email=email,
        hashed_password=get_password_hash(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        role=data.role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id} with role {user.role.value}")
    return user


def update_profile(db: Session, user: User, data: ProfileUpdate) -> User:
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, data: ChangePasswordRequest) -> None:
    if not verify_password(data.current_password, user.hashed_password):
        raise ValidationError("Current password is incorrect", "INVALID_PASSWORD")
    if data.current_password == data.new_password:
        raise ValidationError("New password must differ from the current one")
    user.hashed_password = get_password_hash(data.new_password)
    db.commit()
    logger.info(f"Password changed for user {user.id}")
