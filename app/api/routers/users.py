"""
User API routes
"""
import logging
from fastapi import APIRouter, Depends, status

from app.core.auth import get_current_user
from app.models.user import (
    UserRegisterRequest,
    UserResponse,
    UserLoginRequest,
    UserLoginResponse,
)
from app.services.user_service import register_user, login_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
def register_user_endpoint(user_data: UserRegisterRequest):
    """Register a new user"""
    logger.info(f"User registration request: {user_data.email}")
    user_response = register_user(user_data)
    logger.info(f"✓ New user registered: {user_response.email} (ID: {user_response.id})")
    return user_response


@router.post("/login", response_model=UserLoginResponse)
def login_user_endpoint(login_data: UserLoginRequest):
    """Authenticate user login"""
    logger.info(f"Login attempt: {login_data.email}")
    return login_user(login_data)


@router.get("/me", response_model=UserResponse)
def get_me(current_user: UserResponse = Depends(get_current_user)):
    """Current user, including the subscription snapshot"""
    return current_user
