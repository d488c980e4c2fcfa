"""
Admin endpoints for user management and basic statistics.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError

from ...core.config import Settings
from ...core.errors import ValidationError
from ...core.logging import get_logger
from ...core.security import get_password_hash
from ...db.storage import Storage
from ..deps import get_current_admin_user, get_settings, get_storage, get_user_or_404
from ... import models, schemas

logger = get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/stats", response_model=schemas.Stats)
def admin_stats(
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_admin_user),
):
    return storage.stats()


@router.get("/users", response_model=List[schemas.User])
def admin_list_users(
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_admin_user),
):
    return storage.list_users()


@router.post("/users", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
def admin_create_user(
    payload: schemas.AdminUserCreate,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    current_user: models.User = Depends(get_current_admin_user),
):
    if storage.get_user_by_email(payload.email):
        raise ValidationError("Email already registered")
    if storage.get_user_by_username(payload.username):
        raise ValidationError("Username already taken")

    try:
        user = storage.create_user(
            username=payload.username,
            email=payload.email,
            hashed_password=get_password_hash(payload.password, settings),
            display_name=payload.display_name or payload.username,
            role=payload.role or ("Administrator" if payload.is_admin else "Researcher"),
            is_admin=payload.is_admin,
            is_verified=True,
        )
    except IntegrityError:
        raise ValidationError("Username or email already registered")
    logger.info(f"User created by admin | user: {user.username} | admin: {user.is_admin} | by: {current_user.email}")
    return user


@router.put("/users/{user_id}", response_model=schemas.User)
def admin_update_user(
    user_id: int,
    payload: schemas.AdminUserUpdate,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    current_user: models.User = Depends(get_current_admin_user),
):
    user = get_user_or_404(storage, user_id)
    data = payload.model_dump(exclude_unset=True)

    if data.get("email"):
        existing = storage.get_user_by_email(data["email"])
        if existing is not None and existing.id != user.id:
            raise ValidationError("Email already registered")
    if data.get("username"):
        existing = storage.get_user_by_username(data["username"])
        if existing is not None and existing.id != user.id:
            raise ValidationError("Username already taken")
    if user.id == current_user.id and data.get("is_admin") is False:
        raise ValidationError("You cannot remove your own administrator rights")

    password = data.pop("password", None)
    if password:
        data["hashed_password"] = get_password_hash(password, settings)
    # Required columns cannot be cleared
    for key in ("username", "email", "is_admin", "is_verified"):
        if key in data and data[key] is None:
            data.pop(key)

    user = storage.update_user(user, **data)
    if password:
        storage.delete_user_sessions(user.id)
    logger.info(f"User updated by admin | user: {user.username} | fields: {sorted(data)} | by: {current_user.email}")
    return user


@router.delete("/users/{user_id}", response_model=schemas.Message)
def admin_delete_user(
    user_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_admin_user),
):
    user = get_user_or_404(storage, user_id)
    if user.id == current_user.id:
        logger.warning(f"Admin attempted self-deletion: {current_user.email}")
        raise ValidationError("You cannot delete your own account")

    username = user.username
    storage.delete_user(user)
    logger.info(f"User deleted by admin | user: {username} | by: {current_user.email}")
    return {"message": "User deleted"}
