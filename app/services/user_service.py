"""
User service - business logic for user operations
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from pymongo.errors import DuplicateKeyError

from app.models.subscription import inert_subscription
from app.models.user import (
    UserRegisterRequest,
    UserResponse,
    UserLoginRequest,
    UserLoginResponse,
)
from app.db.mongodb import require_collection, USERS_COLLECTION
from app.utils.jwt import create_access_token
from app.utils.password import hash_password, verify_password
from app.utils.user_helpers import user_doc_to_response, parse_user_id

logger = logging.getLogger(__name__)


def register_user(user_data: UserRegisterRequest) -> UserResponse:
    """Register a new user with an inert (inactive, zero-credit) subscription"""
    collection = require_collection(USERS_COLLECTION)
    email = user_data.email.lower()

    if collection.find_one({"email": email}):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": "User with this email already exists"},
        )

    now = datetime.utcnow()
    user_doc = {
        "name": user_data.name.strip(),
        "email": email,
        "hashedPassword": hash_password(user_data.password),
        "phone": user_data.phone,
        "isActive": True,
        "isVerified": False,
        "roles": ["user"],
        "failedLoginAttempts": 0,
        "lastLogin": None,
        "dateCreated": now,
        "dateUpdated": now,
        "subscription": inert_subscription(),
        "payments": [],
        "interviewAttempts": [],
    }

    try:
        result = collection.insert_one(user_doc)
    except DuplicateKeyError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": "User with this email already exists"},
        )

    user_doc["_id"] = result.inserted_id
    logger.info(f"Created user {email} (ID: {result.inserted_id})")
    return user_doc_to_response(user_doc)


def get_user_doc(user_id: str, projection: Optional[dict] = None) -> dict:
    """
    Load the raw user document

    Raises:
        HTTPException: 400 on malformed id, 404 if the user does not exist
    """
    collection = require_collection(USERS_COLLECTION)
    user = collection.find_one({"_id": parse_user_id(user_id)}, projection)
    if not user:
        logger.warning(f"User not found: {user_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": "User not found"},
        )
    return user


def get_user_by_id(user_id: str) -> UserResponse:
    """Get user by ID"""
    return user_doc_to_response(get_user_doc(user_id))


def login_user(login_data: UserLoginRequest) -> UserLoginResponse:
    """Authenticate user login and issue an access token"""
    collection = require_collection(USERS_COLLECTION)

    user = collection.find_one({"email": login_data.email.lower()})
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid email or password"},
        )

    if not user.get("isActive", True):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "User account is inactive"},
        )

    if not verify_password(login_data.password, user.get("hashedPassword", "")):
        collection.update_one({"_id": user["_id"]}, {"$inc": {"failedLoginAttempts": 1}})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid email or password"},
        )

    collection.update_one(
        {"_id": user["_id"]},
        {"$set": {"lastLogin": datetime.utcnow(), "failedLoginAttempts": 0}},
    )

    logger.info(f"User logged in: {user.get('email')}")
    return UserLoginResponse(
        success=True,
        user=user_doc_to_response(user),
        message="Login successful",
        access_token=create_access_token({"sub": str(user["_id"])}),
    )


def promote_to_admin(email: str) -> Optional[UserResponse]:
    """Add the admin role to the user with this email. Returns None if no such user."""
    collection = require_collection(USERS_COLLECTION)
    result = collection.update_one(
        {"email": email.lower()},
        {"$addToSet": {"roles": "admin"}, "$set": {"dateUpdated": datetime.utcnow()}},
    )
    if result.matched_count == 0:
        return None
    return user_doc_to_response(collection.find_one({"email": email.lower()}))
