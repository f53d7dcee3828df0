"""
Schemas for authentication and user accounts.
"""
import re
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from agricoventas.core.enums import UserType, SubscriptionType
from agricoventas.schemas.base import BaseSchema, TimestampedSchema

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def _check_password_strength(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", value):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"\d", value):
        raise ValueError("Password must contain at least one number")
    return value


class UserRegister(BaseSchema):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str
    phone: Optional[str] = Field(None, max_length=30)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    user_type: UserType = UserType.BUYER
    subscription_type: SubscriptionType = SubscriptionType.NORMAL

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        if not USERNAME_PATTERN.match(v):
            raise ValueError('Username may only contain letters, numbers, dots, dashes and underscores')
        return v

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return _check_password_strength(v)

    @field_validator('user_type')
    @classmethod
    def validate_user_type(cls, v):
        if v == UserType.ADMIN:
            raise ValueError('Admin accounts cannot be self-registered')
        return v


class UserLogin(BaseSchema):
    username: str
    password: str


class RefreshRequest(BaseSchema):
    refresh_token: Optional[str] = None


class ChangePassword(BaseSchema):
    current_password: str
    new_password: str

    @field_validator('new_password')
    @classmethod
    def validate_new_password(cls, v):
        return _check_password_strength(v)


class UserUpdate(BaseSchema):
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    subscription_type: Optional[SubscriptionType] = None
    # Admin only
    user_type: Optional[UserType] = None
    is_active: Optional[bool] = None


class UserSummary(BaseSchema):
    id: int
    username: str
    email: str


class UserRead(TimestampedSchema):
    id: int
    username: str
    email: str
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    user_type: UserType
    subscription_type: SubscriptionType
    profile_image: Optional[str] = None
    primary_location_id: Optional[int] = None
    is_active: bool
    last_login: Optional[datetime] = None


class AuthResponse(BaseSchema):
    user: UserRead
    token: str
