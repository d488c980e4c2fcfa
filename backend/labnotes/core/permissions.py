"""
Access rules for projects and everything that lives inside them.

Every route asks one question, can_access(actor, resource, action), instead of
repeating ownership checks. The resource is described by an AccessContext built
from the target entity (see api/deps.py).
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Action(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ResourceType(str, Enum):
    PROJECT = "project"
    COLLABORATOR = "collaborator"
    EXPERIMENT = "experiment"
    NOTE = "note"
    ATTACHMENT = "attachment"
    REPORT = "report"
    CALENDAR_EVENT = "calendar_event"


class CollaboratorRole(str, Enum):
    VIEWER = "Viewer"
    EDITOR = "Editor"


ROLE_ACTIONS: dict[CollaboratorRole, frozenset[Action]] = {
    CollaboratorRole.VIEWER: frozenset({Action.READ}),
    CollaboratorRole.EDITOR: frozenset({Action.READ, Action.CREATE, Action.UPDATE}),
}

# Pairs that only the project owner (or an admin) may perform, whatever the collaborator role.
OWNER_ONLY: frozenset[tuple[ResourceType, Action]] = frozenset({
    (ResourceType.PROJECT, Action.UPDATE),
    (ResourceType.PROJECT, Action.DELETE),
    (ResourceType.COLLABORATOR, Action.CREATE),
    (ResourceType.COLLABORATOR, Action.UPDATE),
    (ResourceType.COLLABORATOR, Action.DELETE),
    (ResourceType.EXPERIMENT, Action.DELETE),
    (ResourceType.REPORT, Action.UPDATE),
    (ResourceType.REPORT, Action.DELETE),
    (ResourceType.CALENDAR_EVENT, Action.UPDATE),
    (ResourceType.CALENDAR_EVENT, Action.DELETE),
})

# Editors may remove what they wrote themselves.
AUTHOR_DELETABLE: frozenset[ResourceType] = frozenset({ResourceType.NOTE, ResourceType.ATTACHMENT})


@dataclass(frozen=True)
class Actor:
    user_id: int
    is_admin: bool = False


@dataclass(frozen=True)
class AccessContext:
    resource_type: ResourceType
    owner_id: Optional[int] = None
    collaborator_role: Optional[str] = None
    author_id: Optional[int] = None
    attendee_ids: tuple[int, ...] = field(default_factory=tuple)


def _role(value: Optional[str]) -> Optional[CollaboratorRole]:
    if value is None:
        return None
    try:
        return CollaboratorRole(value)
    except ValueError:
        return None


def can_access(actor: Actor, resource: AccessContext, action: Action) -> bool:
    if actor.is_admin:
        return True

    if resource.owner_id is not None and resource.owner_id == actor.user_id:
        return True

    if (
        resource.resource_type in (ResourceType.REPORT, ResourceType.CALENDAR_EVENT)
        and resource.author_id is not None
        and resource.author_id == actor.user_id
    ):
        return True

    if (
        action == Action.READ
        and resource.resource_type == ResourceType.CALENDAR_EVENT
        and actor.user_id in resource.attendee_ids
    ):
        return True

    role = _role(resource.collaborator_role)
    if role is None:
        return False

    if (
        action == Action.DELETE
        and role == CollaboratorRole.EDITOR
        and resource.resource_type in AUTHOR_DELETABLE
        and resource.author_id == actor.user_id
    ):
        return True

    if (resource.resource_type, action) in OWNER_ONLY:
        return False

    return action in ROLE_ACTIONS[role]
