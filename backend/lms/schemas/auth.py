from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional
from enum import Enum


class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8)
    password_confirmation: str
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirmation:
            raise ValueError("The password confirmation does not match")
        return self


class LoginRequest(BaseModel):
    login: str = Field(..., min_length=1, description="Username or email")
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class AuthUser(BaseModel):
    id: str
    username: str
    email: str
    full_name: str
    role: Optional[UserRole] = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: AuthUser


class RegisterResponse(BaseModel):
    message: str
    user: AuthUser


class MessageResponse(BaseModel):
    message: str
