"""
Note endpoints. Note content is HTML; embedded images reference
/api/attachments/{id}/download.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from ...core.errors import ValidationError
from ...core.logging import get_logger
from ...core.permissions import Action, ResourceType
from ...db.storage import Storage
from ..deps import (
    authorize_project,
    get_current_user,
    get_experiment_or_404,
    get_note_or_404,
    get_project_or_404,
    get_storage,
    readable_project_ids,
)
from ... import models, schemas

logger = get_logger(__name__)

router = APIRouter(prefix="/api/notes", tags=["Notes"])


def check_experiment_in_project(storage: Storage, experiment_id: Optional[int], project_id: int) -> None:
    """A note's experiment must belong to the note's project."""
    if experiment_id is None:
        return
    experiment = storage.get_experiment(experiment_id)
    if experiment is None:
        raise ValidationError("Experiment does not exist")
    if experiment.project_id != project_id:
        raise ValidationError("Experiment does not belong to the note's project")


@router.post("", response_model=schemas.Note, status_code=status.HTTP_201_CREATED)
def create_note(
    payload: schemas.NoteCreate,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    project = get_project_or_404(storage, payload.project_id)
    authorize_project(storage, current_user, project, Action.CREATE, ResourceType.NOTE)
    check_experiment_in_project(storage, payload.experiment_id, project.id)

    note = storage.create_note(
        title=payload.title,
        content=payload.content,
        project_id=project.id,
        experiment_id=payload.experiment_id,
        author_id=current_user.id,
    )
    logger.info(f"Note created | id: {note.id} | project: {project.id} | user: {current_user.email}")
    return note


@router.get("", response_model=List[schemas.Note])
def list_notes(
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    return storage.list_notes(readable_project_ids(storage, current_user))


@router.get("/project/{project_id}", response_model=List[schemas.Note])
def list_project_notes(
    project_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    project = get_project_or_404(storage, project_id)
    authorize_project(storage, current_user, project, Action.READ, ResourceType.NOTE)
    return storage.list_notes_by_project(project.id)


@router.get("/experiment/{experiment_id}", response_model=List[schemas.Note])
def list_experiment_notes(
    experiment_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    experiment = get_experiment_or_404(storage, experiment_id)
    authorize_project(storage, current_user, experiment.project, Action.READ, ResourceType.NOTE)
    return storage.list_notes_by_experiment(experiment.id)


@router.get("/{note_id}", response_model=schemas.Note)
def get_note(
    note_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    note = get_note_or_404(storage, note_id)
    authorize_project(storage, current_user, note.project, Action.READ, ResourceType.NOTE, author_id=note.author_id)
    return note


@router.put("/{note_id}", response_model=schemas.Note)
def update_note(
    note_id: int,
    payload: schemas.NoteUpdate,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    note = get_note_or_404(storage, note_id)
    authorize_project(storage, current_user, note.project, Action.UPDATE, ResourceType.NOTE, author_id=note.author_id)

    data = payload.model_dump(exclude_unset=True)
    if "title" in data and data["title"] is None:
        data.pop("title")
    if "content" in data and data["content"] is None:
        data["content"] = ""
    if "experiment_id" in data:
        check_experiment_in_project(storage, data["experiment_id"], note.project_id)

    note = storage.update_note(note, **data)
    logger.info(f"Note updated | id: {note.id} | fields: {sorted(data)} | user: {current_user.email}")
    return note


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_note(
    note_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    """Delete a note and its attachments"""
    note = get_note_or_404(storage, note_id)
    authorize_project(storage, current_user, note.project, Action.DELETE, ResourceType.NOTE, author_id=note.author_id)
    storage.delete_note(note)
    logger.info(f"Note deleted | id: {note_id} | user: {current_user.email}")
