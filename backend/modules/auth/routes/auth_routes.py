"""
Authentication routes.

Staff log in with email and password and receive a bearer token; only
managers and admins can create further accounts.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.auth import create_user_token, get_current_user, require_manager
from core.database import get_db
from core.response_utils import APIResponse, create_response
from ..models.user_models import User
from ..schemas.auth_schemas import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    TokenOut,
    UserOut,
)
from ..services import auth_service

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=APIResponse[TokenOut])
async def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = auth_service.authenticate_user(db, data.email, data.password)
    return create_response(
        TokenOut(token=create_user_token(user), user=UserOut.model_validate(user))
    )


@router.post(
    "/register",
    response_model=APIResponse[UserOut],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_manager),
):
    user = auth_service.register_user(db, data)
    return create_response(UserOut.model_validate(user), "User created")


@router.get("/me", response_model=APIResponse[UserOut])
async def read_me(current_user: User = Depends(get_current_user)):
    return create_response(UserOut.model_validate(current_user))


@router.put("/me", response_model=APIResponse[UserOut])
async def update_me(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = auth_service.update_profile(db, current_user, data)
    return create_response(UserOut.model_validate(user))


@router.put("/change-password", response_model=APIResponse[None])
async def change_password(
    data: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    auth_service.change_password(db, current_user, data)
    return create_response(message="Password updated")
