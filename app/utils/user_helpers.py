"""
User-related helper functions
"""

import logging

from bson import ObjectId
from fastapi import HTTPException, status

from app.models.subscription import SubscriptionState
from app.models.user import UserResponse

logger = logging.getLogger(__name__)


def parse_user_id(user_id: str) -> ObjectId:
    """
    Convert a user id string to ObjectId

    Raises:
        HTTPException: 400 if the id is not a valid ObjectId
    """
    try:
        return ObjectId(user_id)
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Invalid user ID format"},
        )


def user_doc_to_response(user_doc: dict) -> UserResponse:
    """
    Convert MongoDB user document to UserResponse

    Args:
        user_doc: MongoDB user document

    Returns:
        UserResponse object
    """
    return UserResponse(
        id=str(user_doc["_id"]),
        name=user_doc.get("name", ""),
        email=user_doc.get("email", ""),
        isActive=user_doc.get("isActive", True),
        isVerified=user_doc.get("isVerified", False),
        roles=user_doc.get("roles", ["user"]),
        phone=user_doc.get("phone"),
        dateCreated=user_doc.get("dateCreated"),
        dateUpdated=user_doc.get("dateUpdated"),
        lastLogin=user_doc.get("lastLogin"),
        subscription=SubscriptionState.from_doc(user_doc),
    )
