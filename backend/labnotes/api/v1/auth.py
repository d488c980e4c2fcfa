"""
Authentication endpoints (register, login, logout, password and email flows).

Tokens are JWTs, but the user_sessions table decides whether a token is still
valid: logout, password reset and password change delete session rows.
"""
from datetime import timedelta

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.exc import IntegrityError

from ...core.config import Settings
from ...core.errors import AuthenticationError, ValidationError
from ...core.logging import get_logger
from ...core.security import (
    create_access_token,
    generate_url_token,
    get_password_hash,
    hash_token,
    verify_password,
)
from ...db.storage import Storage
from ...models import utcnow
from ..deps import (
    CurrentAuth,
    client_info,
    get_current_auth,
    get_current_user,
    get_mailer,
    get_settings,
    get_storage,
)
from ... import models, schemas

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent"
RESEND_VERIFICATION_MESSAGE = "If the account exists and is not verified, a new verification email has been sent"


def _issue_token(storage: Storage, settings: Settings, user: models.User, request: Request) -> str:
    """Sign a token for the user and record its session row."""
    token, expires_at = create_access_token(user.id, user.is_admin, settings=settings)
    ip_address, user_agent = client_info(request)
    storage.create_session(
        user_id=user.id,
        token_hash=hash_token(token),
        expires_at=expires_at,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return token


def _send_verification(
    storage: Storage,
    settings: Settings,
    user: models.User,
    background_tasks: BackgroundTasks,
    mailer,
) -> None:
    token = generate_url_token()
    expires_at = utcnow() + timedelta(hours=settings.VERIFICATION_TOKEN_EXPIRE_HOURS)
    storage.replace_verification(user.id, token, expires_at)
    background_tasks.add_task(mailer.send_verification_email, user.email, user.username, token)


@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: schemas.RegisterRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    mailer=Depends(get_mailer),
):
    """Register a new user; the first account becomes the administrator"""
    logger.info(f"Registration attempt | username: {payload.username}")

    if storage.get_user_by_email(payload.email):
        logger.warning(f"Registration failed - email already registered: {payload.email}")
        raise ValidationError("Email already registered")
    if storage.get_user_by_username(payload.username):
        logger.warning(f"Registration failed - username taken: {payload.username}")
        raise ValidationError("Username already taken")

    is_first_user = storage.count_users() == 0
    # The bootstrap administrator is never locked behind email verification
    needs_verification = settings.REQUIRE_EMAIL_VERIFICATION and not is_first_user

    try:
        user = storage.create_user(
            username=payload.username,
            email=payload.email,
            hashed_password=get_password_hash(payload.password, settings),
            display_name=payload.display_name or payload.username,
            role="Administrator" if is_first_user else "Researcher",
            is_admin=is_first_user,
            is_verified=not needs_verification,
        )
    except IntegrityError:
        logger.warning(f"Registration failed - duplicate user: {payload.username}")
        raise ValidationError("Username or email already registered")

    if needs_verification:
        _send_verification(storage, settings, user, background_tasks, mailer)
        logger.info(f"User registered, awaiting verification: {user.username}")
        return {
            "user": user,
            "token": None,
            "message": "Registration successful. Check your email to verify your account.",
        }

    token = _issue_token(storage, settings, user, request)
    logger.info(f"User registered successfully: {user.username} | admin: {user.is_admin}")
    return {"user": user, "token": token, "message": "Registration successful"}


@router.post("/login", response_model=schemas.AuthResponse)
def login(
    payload: schemas.LoginRequest,
    request: Request,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """Login with username or email and get an access token"""
    identifier = payload.username or payload.email
    logger.info(f"Login attempt for: {identifier}")

    user = None
    if payload.username:
        user = storage.get_user_by_username(payload.username)
    if user is None and payload.email:
        user = storage.get_user_by_email(payload.email)

    if user is None or not verify_password(payload.password, user.hashed_password, settings):
        logger.warning(f"Login failed - invalid credentials for: {identifier}")
        raise AuthenticationError("Invalid username or password")

    if settings.REQUIRE_EMAIL_VERIFICATION and not user.is_verified:
        logger.warning(f"Login failed - email not verified: {identifier}")
        raise AuthenticationError("Email address not verified")

    token = _issue_token(storage, settings, user, request)
    user = storage.update_user(user, last_login=utcnow())
    logger.info(f"Login successful for user: {user.username}")
    return {"user": user, "token": token, "message": "Login successful"}


@router.post("/logout", response_model=schemas.Message)
def logout(auth: CurrentAuth = Depends(get_current_auth), storage: Storage = Depends(get_storage)):
    """Revoke the session behind the current token"""
    storage.delete_session(auth.session)
    logger.info(f"User logged out: {auth.user.username}")
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=schemas.User)
def read_current_user(current_user: models.User = Depends(get_current_user)):
    """Get current user information"""
    return current_user


@router.post("/forgot-password", response_model=schemas.Message)
def forgot_password(
    payload: schemas.ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    mailer=Depends(get_mailer),
):
    """Email a single-use reset link; the response never reveals whether the email exists"""
    user = storage.get_user_by_email(payload.email)
    if user is None:
        logger.info("Password reset requested for unknown email")
        return {"message": FORGOT_PASSWORD_MESSAGE}

    token = generate_url_token()
    storage.update_user(
        user,
        reset_password_token=token,
        reset_password_expires=utcnow() + timedelta(hours=settings.RESET_TOKEN_EXPIRE_HOURS),
    )
    background_tasks.add_task(mailer.send_password_reset_email, user.email, user.username, token)
    logger.info(f"Password reset requested for user: {user.username}")
    return {"message": FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password", response_model=schemas.Message)
def reset_password(
    payload: schemas.ResetPasswordRequest,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """Set a new password with a reset token; signs the user out everywhere"""
    user = storage.get_user_by_reset_token(payload.token)
    if user is None:
        logger.warning("Password reset failed - unknown token")
        raise ValidationError("Invalid or expired reset token")

    if user.reset_password_expires is None or user.reset_password_expires <= utcnow():
        storage.update_user(user, reset_password_token=None, reset_password_expires=None)
        logger.warning(f"Password reset failed - expired token for user: {user.username}")
        raise ValidationError("Invalid or expired reset token")

    storage.update_user(
        user,
        hashed_password=get_password_hash(payload.password, settings),
        reset_password_token=None,
        reset_password_expires=None,
    )
    removed = storage.delete_user_sessions(user.id)
    logger.info(f"Password reset for user: {user.username} | sessions revoked: {removed}")
    return {"message": "Password has been reset. Please log in with your new password."}


@router.post("/change-password", response_model=schemas.Message)
def change_password(
    payload: schemas.ChangePasswordRequest,
    auth: CurrentAuth = Depends(get_current_auth),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """Change the password; every other session of the user is revoked"""
    user = auth.user
    if not verify_password(payload.current_password, user.hashed_password, settings):
        logger.warning(f"Password change failed - wrong current password: {user.username}")
        raise ValidationError("Current password is incorrect")

    storage.update_user(user, hashed_password=get_password_hash(payload.new_password, settings))
    removed = storage.delete_user_sessions(user.id, keep_token_hash=auth.token_hash)
    logger.info(f"Password changed for user: {user.username} | other sessions revoked: {removed}")
    return {"message": "Password changed successfully"}


@router.post("/verify-email", response_model=schemas.Message)
def verify_email(payload: schemas.VerifyEmailRequest, storage: Storage = Depends(get_storage)):
    verification = storage.get_verification_by_token(payload.token)
    if verification is None:
        raise ValidationError("Invalid or expired verification token")
    if verification.expires_at <= utcnow():
        storage.delete_verification(verification)
        raise ValidationError("Invalid or expired verification token")

    user = storage.get_user(verification.user_id)
    storage.update_user(user, is_verified=True)
    storage.delete_verification(verification)
    logger.info(f"Email verified for user: {user.username}")
    return {"message": "Email verified. You can now log in."}


@router.post("/resend-verification", response_model=schemas.Message)
def resend_verification(
    payload: schemas.ResendVerificationRequest,
    background_tasks: BackgroundTasks,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    mailer=Depends(get_mailer),
):
    user = storage.get_user_by_email(payload.email)
    if user is not None and not user.is_verified:
        _send_verification(storage, settings, user, background_tasks, mailer)
        logger.info(f"Verification email re-sent for user: {user.username}")
    return {"message": RESEND_VERIFICATION_MESSAGE}
