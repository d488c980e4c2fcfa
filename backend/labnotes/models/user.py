from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    display_name = Column(String(255))
    role = Column(String(50), default="Researcher")  # label shown in the UI
    is_admin = Column(Boolean, default=False, nullable=False)
    is_verified = Column(Boolean, default=True, nullable=False)
    reset_password_token = Column(String(255), index=True)
    reset_password_expires = Column(DateTime)
    last_login = Column(DateTime)
    avatar_url = Column(Text)
    bio = Column(Text)

    # Per-user object storage; when disabled, files are kept inline in the database
    s3_enabled = Column(Boolean, default=False, nullable=False)
    s3_endpoint = Column(String(500))
    s3_region = Column(String(100))
    s3_bucket = Column(String(255))
    s3_access_key = Column(String(255))
    s3_secret_key = Column(String(255))

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")
    verification = relationship(
        "UserVerification",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    projects = relationship("Project", back_populates="owner", cascade="all, delete-orphan")
    collaborations = relationship("ProjectCollaborator", back_populates="user", cascade="all, delete-orphan")
    reports = relationship("Report", back_populates="author", cascade="all, delete-orphan")
    calendar_events = relationship("CalendarEvent", back_populates="creator", cascade="all, delete-orphan")


class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, index=True, nullable=False)  # sha256 hex
    expires_at = Column(DateTime, nullable=False)
    ip_address = Column(String(64))
    user_agent = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_used_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="sessions")


class UserVerification(Base):
    __tablename__ = "user_verifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    token = Column(String(255), unique=True, index=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="verification")
