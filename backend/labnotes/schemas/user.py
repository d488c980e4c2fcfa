from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from .base import ORMModel, RequestModel


class UserPublic(ORMModel):
    """Fields any signed-in user may see about another user."""
    id: int
    username: str
    display_name: Optional[str] = None
    role: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime


class User(UserPublic):
    email: EmailStr
    is_admin: bool
    is_verified: bool
    last_login: Optional[datetime] = None
    s3_enabled: bool = False
    s3_endpoint: Optional[str] = None
    s3_region: Optional[str] = None
    s3_bucket: Optional[str] = None


class UserUpdate(RequestModel):
    display_name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    s3_enabled: Optional[bool] = None
    s3_endpoint: Optional[str] = None
    s3_region: Optional[str] = None
    s3_bucket: Optional[str] = None
    s3_access_key: Optional[str] = None
    s3_secret_key: Optional[str] = None


class AdminUserCreate(RequestModel):
    username: str = Field(min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)
    display_name: Optional[str] = Field(default=None, max_length=255)
    role: Optional[str] = Field(default=None, max_length=50)
    is_admin: bool = False


class AdminUserUpdate(RequestModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8)
    display_name: Optional[str] = Field(default=None, max_length=255)
    role: Optional[str] = Field(default=None, max_length=50)
    is_admin: Optional[bool] = None
    is_verified: Optional[bool] = None


class Stats(ORMModel):
    users: int
    projects: int
    experiments: int
    notes: int
    reports: int
