from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from .base import ORMModel, RequestModel

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class ReportOptions(RequestModel):
    """Rendering options for a generated report."""
    title: Optional[str] = Field(default=None, max_length=255)
    subtitle: Optional[str] = Field(default=None, max_length=255)
    custom_header: Optional[str] = Field(default=None, max_length=255)
    custom_footer: Optional[str] = Field(default=None, max_length=255)
    include_images: bool = True
    include_attachments: bool = True
    include_experiment_details: bool = True
    show_dates: bool = True
    show_authors: bool = True
    primary_color: str = Field(default="#4285F4", pattern=HEX_COLOR)
    accent_color: str = Field(default="#34A853", pattern=HEX_COLOR)
    font_family: Literal["helvetica", "times", "courier"] = "helvetica"
    orientation: Literal["portrait", "landscape"] = "portrait"
    page_size: Literal["a4", "letter"] = "a4"


class ReportCreate(RequestModel):
    project_id: int
    experiment_id: Optional[int] = None
    note_ids: list[int] = Field(min_length=1)
    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    options: ReportOptions = Field(default_factory=ReportOptions)


class Report(ORMModel):
    id: int
    title: str
    description: Optional[str] = None
    file_name: str
    file_size: int
    file_type: str
    project_id: Optional[int] = None
    experiment_id: Optional[int] = None
    author_id: int
    options: Optional[dict[str, Any]] = None
    created_at: datetime
    stored_externally: bool = False


class ReportEmailRequest(RequestModel):
    recipient: EmailStr
    subject: Optional[str] = Field(default=None, max_length=255)
    message: Optional[str] = None


class ReportEmailResult(BaseModel):
    message: str
    recipient: str
