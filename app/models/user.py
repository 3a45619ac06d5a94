"""
User-related Pydantic models
"""
from pydantic import BaseModel, EmailStr
from typing import Optional, List
from datetime import datetime

from app.models.subscription import SubscriptionState


# Request Models
class UserRegisterRequest(BaseModel):
    name: str
    email: EmailStr
    password: str
    phone: Optional[str] = None


class UserLoginRequest(BaseModel):
    email: EmailStr
    password: str


# Response Models
class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    isActive: bool
    isVerified: bool
    roles: List[str]
    phone: Optional[str] = None
    dateCreated: Optional[datetime] = None
    dateUpdated: Optional[datetime] = None
    lastLogin: Optional[datetime] = None
    subscription: SubscriptionState = SubscriptionState()

    class Config:
        from_attributes = True

    @property
    def is_admin(self) -> bool:
        return any(role.lower() in ("admin", "superadmin") for role in self.roles)


class UserLoginResponse(BaseModel):
    success: bool
    user: Optional[UserResponse] = None
    message: str
    access_token: Optional[str] = None
    token_type: str = "bearer"
