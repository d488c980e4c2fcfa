"""
Shared API dependencies.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.errors import AuthenticationError, AuthorizationError, NotFoundError
from ..core.logging import get_logger
from ..core.permissions import AccessContext, Action, Actor, ResourceType, can_access
from ..core.security import decode_token, hash_token
from ..db.session import get_db
from ..db.storage import Storage
from ..models import utcnow
from .. import models

logger = get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


@dataclass
class CurrentAuth:
    user: models.User
    session: models.UserSession
    token_hash: str


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request, db: Session = Depends(get_db)) -> Storage:
    settings = request.app.state.settings
    return Storage(db, max_attempts=settings.DB_RETRY_ATTEMPTS, base_delay=settings.DB_RETRY_BASE_DELAY)


def get_mailer(request: Request):
    return request.app.state.mailer


def get_object_storage_factory(request: Request):
    return request.app.state.object_storage_factory


def get_broadcaster(request: Request):
    return request.app.state.broadcaster


def client_info(request: Request) -> tuple[Optional[str], Optional[str]]:
    """(ip address, user agent) of the caller, for the session row."""
    forwarded = request.headers.get("x-forwarded-for")
    ip = forwarded.split(",")[0].strip() if forwarded else (request.client.host if request.client else None)
    return ip, request.headers.get("user-agent")


def resolve_session(storage: Storage, settings: Settings, token: Optional[str]) -> CurrentAuth:
    """
    Validate a bearer token against the session table.

    The JWT must decode, its session row must exist and be unexpired, and the
    user must still exist. Any failure raises AuthenticationError.
    """
    if not token:
        raise AuthenticationError("Not authenticated")

    try:
        payload = decode_token(token, settings)
    except JWTError:
        raise AuthenticationError("Invalid or expired token")

    user_id = payload.get("user_id")
    if user_id is None:
        logger.warning("Token validation failed - no user id in payload")
        raise AuthenticationError("Invalid or expired token")

    token_hash = hash_token(token)
    user_session = storage.get_session_by_token_hash(token_hash)
    if user_session is None:
        logger.warning(f"Token without session rejected | user: {user_id}")
        raise AuthenticationError("Session not found or revoked")

    if user_session.expires_at <= utcnow():
        storage.delete_session(user_session)
        logger.info(f"Expired session removed | user: {user_id}")
        raise AuthenticationError("Session expired")

    user = storage.get_user(user_session.user_id)
    if user is None or user.id != user_id:
        raise AuthenticationError("User not found")

    storage.touch_session(user_session)
    return CurrentAuth(user=user, session=user_session, token_hash=token_hash)


def get_current_auth(
    token: Optional[str] = Depends(oauth2_scheme),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> CurrentAuth:
    """Current user and session from the bearer token"""
    auth = resolve_session(storage, settings, token)
    logger.debug(f"User authenticated: {auth.user.email}")
    return auth


def get_current_user(auth: CurrentAuth = Depends(get_current_auth)) -> models.User:
    return auth.user


def get_current_admin_user(current_user: models.User = Depends(get_current_user)) -> models.User:
    """Verify that current user is an administrator"""
    if not current_user.is_admin:
        logger.warning(f"Non-admin user attempted admin access: {current_user.email}")
        raise AuthorizationError("Administrator access required")
    return current_user


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------

def access_context(
    storage: Storage,
    user: models.User,
    resource_type: ResourceType,
    project: Optional[models.Project] = None,
    author_id: Optional[int] = None,
    attendee_ids: Iterable[int] = (),
) -> AccessContext:
    """Describe a resource for can_access, looking up the caller's collaborator role."""
    owner_id = None
    role = None
    if project is not None:
        owner_id = project.owner_id
        if not user.is_admin and project.owner_id != user.id:
            collaborator = storage.get_collaborator(project.id, user.id)
            role = collaborator.role if collaborator else None
    return AccessContext(
        resource_type=resource_type,
        owner_id=owner_id,
        collaborator_role=role,
        author_id=author_id,
        attendee_ids=tuple(attendee_ids or ()),
    )


def is_allowed(user: models.User, context: AccessContext, action: Action) -> bool:
    return can_access(Actor(user_id=user.id, is_admin=bool(user.is_admin)), context, action)


def authorize(user: models.User, context: AccessContext, action: Action) -> None:
    """Raise AuthorizationError (403) unless the user may perform the action."""
    if not is_allowed(user, context, action):
        logger.warning(
            f"Access denied | user: {user.email} | {context.resource_type.value}:{action.value}"
        )
        raise AuthorizationError()


def authorize_project(
    storage: Storage,
    user: models.User,
    project: models.Project,
    action: Action,
    resource_type: ResourceType = ResourceType.PROJECT,
    author_id: Optional[int] = None,
) -> None:
    authorize(user, access_context(storage, user, resource_type, project, author_id=author_id), action)


def get_project_or_404(storage: Storage, project_id: int) -> models.Project:
    project = storage.get_project(project_id)
    if project is None:
        raise NotFoundError("Project")
    return project


def get_experiment_or_404(storage: Storage, experiment_id: int) -> models.Experiment:
    experiment = storage.get_experiment(experiment_id)
    if experiment is None:
        raise NotFoundError("Experiment")
    return experiment


def get_note_or_404(storage: Storage, note_id: int) -> models.Note:
    note = storage.get_note(note_id)
    if note is None:
        raise NotFoundError("Note")
    return note


def get_attachment_or_404(storage: Storage, attachment_id: int) -> models.Attachment:
    attachment = storage.get_attachment(attachment_id)
    if attachment is None:
        raise NotFoundError("Attachment")
    return attachment


def get_user_or_404(storage: Storage, user_id: int) -> models.User:
    user = storage.get_user(user_id)
    if user is None:
        raise NotFoundError("User")
    return user


def readable_project_ids(storage: Storage, user: models.User) -> Optional[set[int]]:
    """Project ids the user can read; None means all (administrators)."""
    if user.is_admin:
        return None
    return storage.accessible_project_ids(user.id)
