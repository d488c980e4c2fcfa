"""
Experiment endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, status

from ...core.logging import get_logger
from ...core.permissions import Action, ResourceType
from ...db.storage import Storage
from ..deps import (
    authorize_project,
    get_current_user,
    get_experiment_or_404,
    get_project_or_404,
    get_storage,
    readable_project_ids,
)
from ... import models, schemas

logger = get_logger(__name__)

router = APIRouter(prefix="/api/experiments", tags=["Experiments"])


@router.post("", response_model=schemas.Experiment, status_code=status.HTTP_201_CREATED)
def create_experiment(
    payload: schemas.ExperimentCreate,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    project = get_project_or_404(storage, payload.project_id)
    authorize_project(storage, current_user, project, Action.CREATE, ResourceType.EXPERIMENT)

    experiment = storage.create_experiment(
        name=payload.name,
        description=payload.description,
        project_id=project.id,
    )
    logger.info(f"Experiment created | id: {experiment.id} | project: {project.id} | user: {current_user.email}")
    return experiment


@router.get("", response_model=List[schemas.Experiment])
def list_experiments(
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    """Experiments in every project the caller can read"""
    return storage.list_experiments(readable_project_ids(storage, current_user))


@router.get("/project/{project_id}", response_model=List[schemas.Experiment])
def list_project_experiments(
    project_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    project = get_project_or_404(storage, project_id)
    authorize_project(storage, current_user, project, Action.READ, ResourceType.EXPERIMENT)
    return storage.list_experiments_by_project(project.id)


@router.get("/{experiment_id}", response_model=schemas.Experiment)
def get_experiment(
    experiment_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    experiment = get_experiment_or_404(storage, experiment_id)
    authorize_project(storage, current_user, experiment.project, Action.READ, ResourceType.EXPERIMENT)
    return experiment


@router.put("/{experiment_id}", response_model=schemas.Experiment)
def update_experiment(
    experiment_id: int,
    payload: schemas.ExperimentUpdate,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    experiment = get_experiment_or_404(storage, experiment_id)
    authorize_project(storage, current_user, experiment.project, Action.UPDATE, ResourceType.EXPERIMENT)

    data = payload.model_dump(exclude_unset=True)
    if "name" in data and data["name"] is None:
        data.pop("name")
    experiment = storage.update_experiment(experiment, **data)
    logger.info(f"Experiment updated | id: {experiment.id} | fields: {sorted(data)} | user: {current_user.email}")
    return experiment


@router.delete("/{experiment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_experiment(
    experiment_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    """Delete an experiment together with its notes and their attachments"""
    experiment = get_experiment_or_404(storage, experiment_id)
    authorize_project(storage, current_user, experiment.project, Action.DELETE, ResourceType.EXPERIMENT)
    storage.delete_experiment(experiment)
    logger.info(f"Experiment deleted | id: {experiment_id} | user: {current_user.email}")
