import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import Settings, settings as default_settings
from ..core.logging import get_logger
from ..models.base import utcnow

logger = get_logger(__name__)


@lru_cache(maxsize=None)
def password_context(rounds: int) -> CryptContext:
    """bcrypt context for a cost factor, built once per distinct value"""
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


def _truncate(password: str) -> str:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")


def verify_password(plain_password: str, hashed_password: str, settings: Optional[Settings] = None) -> bool:
    """Verify a password against its hash"""
    if not plain_password or not hashed_password:
        return False
    try:
        cfg = settings or default_settings
        result = password_context(cfg.BCRYPT_ROUNDS).verify(_truncate(plain_password), hashed_password)
        logger.debug(f"Password verification: {'success' if result else 'failed'}")
        return result
    except ValueError as e:
        # Malformed hash in the database
        logger.error(f"Error during password verification: {e}")
        return False


def get_password_hash(password: str, settings: Optional[Settings] = None) -> str:
    """Generate password hash with the configured bcrypt cost"""
    cfg = settings or default_settings
    return password_context(cfg.BCRYPT_ROUNDS).hash(_truncate(password))


def create_access_token(
    user_id: int,
    is_admin: bool,
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None,
) -> tuple[str, datetime]:
    """
    Create a signed JWT for a user.

    Returns:
        (token, expires_at) where expires_at is naive UTC, ready for the session row.
    """
    cfg = settings or default_settings
    issued_at = utcnow()
    expire = issued_at + (expires_delta or timedelta(minutes=cfg.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(user_id),
        "user_id": user_id,
        "is_admin": bool(is_admin),
        "iat": issued_at.replace(tzinfo=timezone.utc),
        "exp": expire.replace(tzinfo=timezone.utc),
        # Two logins in the same second still produce distinct tokens
        "jti": secrets.token_hex(16),
    }
    encoded_jwt = jwt.encode(to_encode, cfg.SECRET_KEY, algorithm=cfg.ALGORITHM)
    logger.debug(f"Access token created for user: {user_id} | expires: {expire}")
    return encoded_jwt, expire


def decode_token(token: str, settings: Optional[Settings] = None) -> dict:
    """Decode JWT token; raises JWTError when invalid or expired."""
    cfg = settings or default_settings
    try:
        return jwt.decode(token, cfg.SECRET_KEY, algorithms=[cfg.ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        raise


def hash_token(token: str) -> str:
    """SHA-256 of an issued token; only this digest is stored server-side."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_url_token() -> str:
    """Random token for password reset and email verification links."""
    return secrets.token_urlsafe(32)
