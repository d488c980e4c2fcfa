from typing import Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

from .base import RequestModel
from .user import User


class RegisterRequest(RequestModel):
    username: str = Field(min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)
    display_name: Optional[str] = Field(default=None, min_length=2, max_length=255)


class LoginRequest(RequestModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: str = Field(min_length=1)

    @model_validator(mode="after")
    def require_identifier(self):
        if not self.username and not self.email:
            raise ValueError("username or email is required")
        return self


class AuthResponse(BaseModel):
    user: User
    token: Optional[str] = None
    message: str


class ForgotPasswordRequest(RequestModel):
    email: EmailStr


class ResetPasswordRequest(RequestModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=8)


class ChangePasswordRequest(RequestModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)


class VerifyEmailRequest(RequestModel):
    token: str = Field(min_length=1)


class ResendVerificationRequest(RequestModel):
    email: EmailStr
