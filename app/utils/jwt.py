"""
JWT token generation and verification utilities
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from fastapi import HTTPException, status
from app.core.config import settings

logger = logging.getLogger(__name__)

_PLACEHOLDER_SECRET = "your-secret-key-change-in-production"


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token

    Args:
        data: Dictionary containing user data to encode in the token (e.g., {"sub": user_id})
        expires_delta: Optional timedelta for token expiration. If None, uses default from settings.

    Returns:
        Encoded JWT token string

    Raises:
        ValueError: If JWT_SECRET_KEY is not configured
    """
    if not settings.JWT_SECRET_KEY or settings.JWT_SECRET_KEY == _PLACEHOLDER_SECRET:
        error_msg = "JWT_SECRET_KEY is not properly configured. Please set it in your environment variables."
        logger.error(error_msg)
        raise ValueError(error_msg)

    to_encode = data.copy()
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": now, "type": "access"})

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str, token_type: str = "access") -> Dict[str, Any]:
    """
    Verify and decode a JWT token

    Args:
        token: JWT token string to verify
        token_type: Expected token type

    Returns:
        Decoded token payload as dictionary

    Raises:
        HTTPException: If token is invalid, expired, or wrong type
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": "Could not validate credentials"},
        headers={"WWW-Authenticate": "Bearer"},
    )

    # JWT has 3 base64 segments separated by dots
    token = (token or "").strip()
    if token.count(".") != 2:
        logger.error("JWT verification error: Not enough segments")
        raise credentials_exception

    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.error(f"JWT verification error: {e}")
        raise credentials_exception

    if payload.get("type") != token_type:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": f"Invalid token type. Expected {token_type}, got {payload.get('type')}"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload
