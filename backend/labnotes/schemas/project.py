from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .base import ORMModel, RequestModel
from .user import UserPublic

CollaboratorRoleName = Literal["Viewer", "Editor"]


class ProjectCreate(RequestModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None


class ProjectUpdate(RequestModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None


class Project(ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    owner_id: int
    created_at: datetime
    updated_at: datetime


class CollaboratorCreate(RequestModel):
    user_id: int
    role: CollaboratorRoleName = "Viewer"


class CollaboratorUpdate(RequestModel):
    role: CollaboratorRoleName


class Collaborator(ORMModel):
    id: int
    project_id: int
    user_id: int
    role: str
    created_at: datetime
    user: Optional[UserPublic] = None


class ExperimentCreate(RequestModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    project_id: int


class ExperimentUpdate(RequestModel):
    """The owning project is fixed at creation."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None


class Experiment(ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    project_id: int
    created_at: datetime
    updated_at: datetime
