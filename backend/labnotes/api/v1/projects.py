"""
Project and collaborator endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError

from ...core.errors import AuthorizationError, NotFoundError, ValidationError
from ...core.logging import get_logger
from ...core.permissions import Action, ResourceType
from ...db.storage import Storage
from ..deps import authorize_project, get_current_user, get_project_or_404, get_storage
from ... import models, schemas

logger = get_logger(__name__)

router = APIRouter(prefix="/api/projects", tags=["Projects"])


@router.post("", response_model=schemas.Project, status_code=status.HTTP_201_CREATED)
def create_project(
    payload: schemas.ProjectCreate,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    """Create a project owned by the caller"""
    project = storage.create_project(name=payload.name, description=payload.description, owner_id=current_user.id)
    logger.info(f"Project created | id: {project.id} | name: {project.name} | user: {current_user.email}")
    return project


@router.get("", response_model=List[schemas.Project])
def list_projects(
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    """Projects the caller owns or collaborates on (administrators see all)"""
    if current_user.is_admin:
        return storage.list_projects()
    return storage.list_projects_for_user(current_user.id)


@router.get("/user/{user_id}", response_model=List[schemas.Project])
def list_user_projects(
    user_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    """Projects owned by a user (self or administrator)"""
    if user_id != current_user.id and not current_user.is_admin:
        raise AuthorizationError("You can only list your own projects")
    return storage.list_projects_owned_by(user_id)


@router.get("/{project_id}", response_model=schemas.Project)
def get_project(
    project_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    project = get_project_or_404(storage, project_id)
    authorize_project(storage, current_user, project, Action.READ)
    return project


@router.put("/{project_id}", response_model=schemas.Project)
def update_project(
    project_id: int,
    payload: schemas.ProjectUpdate,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    project = get_project_or_404(storage, project_id)
    authorize_project(storage, current_user, project, Action.UPDATE)

    data = payload.model_dump(exclude_unset=True)
    if "name" in data and data["name"] is None:
        data.pop("name")
    project = storage.update_project(project, **data)
    logger.info(f"Project updated | id: {project.id} | fields: {sorted(data)} | user: {current_user.email}")
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    """Delete a project with its experiments, notes, attachments and collaborators"""
    project = get_project_or_404(storage, project_id)
    authorize_project(storage, current_user, project, Action.DELETE)
    storage.delete_project(project)
    logger.info(f"Project deleted | id: {project_id} | user: {current_user.email}")


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

@router.get("/{project_id}/collaborators", response_model=List[schemas.Collaborator])
def list_collaborators(
    project_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    project = get_project_or_404(storage, project_id)
    authorize_project(storage, current_user, project, Action.READ, ResourceType.COLLABORATOR)
    return storage.list_collaborators(project.id)


@router.post(
    "/{project_id}/collaborators",
    response_model=schemas.Collaborator,
    status_code=status.HTTP_201_CREATED,
)
def add_collaborator(
    project_id: int,
    payload: schemas.CollaboratorCreate,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    project = get_project_or_404(storage, project_id)
    authorize_project(storage, current_user, project, Action.CREATE, ResourceType.COLLABORATOR)

    if payload.user_id == project.owner_id:
        raise ValidationError("The project owner cannot be added as a collaborator")
    if storage.get_user(payload.user_id) is None:
        raise ValidationError("User does not exist")
    if storage.get_collaborator(project.id, payload.user_id) is not None:
        raise ValidationError("User is already a collaborator on this project")

    try:
        collaborator = storage.add_collaborator(project.id, payload.user_id, payload.role)
    except IntegrityError:
        raise ValidationError("User is already a collaborator on this project")
    logger.info(
        f"Collaborator added | project: {project.id} | user: {payload.user_id} | role: {payload.role} "
        f"| by: {current_user.email}"
    )
    return collaborator


@router.put("/{project_id}/collaborators/{user_id}", response_model=schemas.Collaborator)
def update_collaborator(
    project_id: int,
    user_id: int,
    payload: schemas.CollaboratorUpdate,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    project = get_project_or_404(storage, project_id)
    collaborator = storage.get_collaborator(project.id, user_id)
    if collaborator is None:
        raise NotFoundError("Collaborator")
    authorize_project(storage, current_user, project, Action.UPDATE, ResourceType.COLLABORATOR)

    collaborator = storage.update_collaborator_role(collaborator, payload.role)
    logger.info(f"Collaborator role changed | project: {project.id} | user: {user_id} | role: {payload.role}")
    return collaborator


@router.delete("/{project_id}/collaborators/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_collaborator(
    project_id: int,
    user_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    project = get_project_or_404(storage, project_id)
    collaborator = storage.get_collaborator(project.id, user_id)
    if collaborator is None:
        raise NotFoundError("Collaborator")
    authorize_project(storage, current_user, project, Action.DELETE, ResourceType.COLLABORATOR)

    storage.remove_collaborator(collaborator)
    logger.info(f"Collaborator removed | project: {project.id} | user: {user_id} | by: {current_user.email}")
