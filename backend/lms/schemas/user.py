from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from lms.core.localization.i18n_manager import I18nManager
from lms.schemas.auth import UserRole


class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    language: str = "en"
    timezone: Optional[str] = None
    role: UserRole
    is_active: bool = True
    email_verified: bool = False
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    language: Optional[str] = Field(None, max_length=10)
    timezone: Optional[str] = Field(None, max_length=100)

    @field_validator("language")
    @classmethod
    def language_is_locale(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not I18nManager.is_valid_locale(value):
            raise ValueError("Invalid language code")
        return value


def full_name(user: dict) -> str:
    return f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()


def to_user_response(user: dict) -> UserResponse:
    """Build the public user record, leaving out the password hash"""
    data = {key: value for key, value in user.items() if key != "password_hash"}
    data["full_name"] = full_name(user)
    return UserResponse(**data)
