"""
User profile endpoints.
"""
from typing import Union

from fastapi import APIRouter, Depends

from ...core.errors import AuthorizationError, ValidationError
from ...core.logging import get_logger
from ...db.storage import Storage
from ..deps import get_current_user, get_storage, get_user_or_404
from ... import models, schemas

logger = get_logger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


def _serialize(user: models.User, viewer: models.User) -> Union[schemas.User, schemas.UserPublic]:
    """Private fields only for the user themselves and administrators."""
    if viewer.is_admin or viewer.id == user.id:
        return schemas.User.model_validate(user)
    return schemas.UserPublic.model_validate(user)


@router.get("")
def list_users(
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    """List users (public fields for everyone but administrators)"""
    return [_serialize(u, current_user) for u in storage.list_users()]


@router.get("/{user_id}")
def read_user(
    user_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    return _serialize(get_user_or_404(storage, user_id), current_user)


@router.patch("/{user_id}", response_model=schemas.User)
def update_user(
    user_id: int,
    payload: schemas.UserUpdate,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    """Update profile and object storage settings (self or administrator)"""
    user = get_user_or_404(storage, user_id)
    if current_user.id != user.id and not current_user.is_admin:
        logger.warning(f"Profile update denied | user: {current_user.email} | target: {user_id}")
        raise AuthorizationError("You can only update your own profile")

    data = payload.model_dump(exclude_unset=True)
    if data.get("email"):
        existing = storage.get_user_by_email(data["email"])
        if existing is not None and existing.id != user.id:
            raise ValidationError("Email already registered")
    elif "email" in data:
        data.pop("email")

    user = storage.update_user(user, **data)
    logger.info(f"Profile updated | user: {user.username} | fields: {sorted(data)} | by: {current_user.email}")
    return user
