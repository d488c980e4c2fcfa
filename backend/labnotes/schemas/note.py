from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import ORMModel, RequestModel


class NoteCreate(RequestModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = ""
    project_id: int
    experiment_id: Optional[int] = None


class NoteUpdate(RequestModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = None
    experiment_id: Optional[int] = None


class Note(ORMModel):
    id: int
    title: str
    content: str
    project_id: int
    experiment_id: Optional[int] = None
    author_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class Attachment(ORMModel):
    """Attachment metadata; the payload is only served by the download route."""
    id: int
    file_name: str
    file_size: int
    file_type: str
    note_id: int
    uploader_id: Optional[int] = None
    created_at: datetime
    stored_externally: bool = False


class AttachmentRename(RequestModel):
    file_name: str = Field(min_length=1, max_length=255)
