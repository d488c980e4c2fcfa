from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator

from .base import ORMModel, RequestModel

Recurrence = Literal["none", "daily", "weekly", "monthly", "yearly"]
EventStatus = Literal["confirmed", "tentative", "cancelled"]


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored dates are naive UTC; aware inputs are converted."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class CalendarEventCreate(RequestModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=255)
    start_date: datetime
    end_date: datetime
    all_day: bool = False
    recurrence: Recurrence = "none"
    color: str = Field(default="#4285F4", pattern=r"^#[0-9A-Fa-f]{6}$")
    project_id: Optional[int] = None
    experiment_id: Optional[int] = None
    attendees: list[int] = Field(default_factory=list)
    status: EventStatus = "confirmed"

    @field_validator("start_date", "end_date")
    @classmethod
    def to_naive_utc(cls, v):
        return _naive_utc(v)

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class CalendarEventUpdate(RequestModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=255)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    all_day: Optional[bool] = None
    recurrence: Optional[Recurrence] = None
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    project_id: Optional[int] = None
    experiment_id: Optional[int] = None
    attendees: Optional[list[int]] = None
    status: Optional[EventStatus] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def to_naive_utc(cls, v):
        return _naive_utc(v)


class CalendarEvent(ORMModel):
    id: int
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: datetime
    end_date: datetime
    all_day: bool
    recurrence: str
    color: str
    project_id: Optional[int] = None
    experiment_id: Optional[int] = None
    creator_id: int
    attendees: list[int] = Field(default_factory=list)
    status: str
    created_at: datetime
    updated_at: datetime

    @field_validator("attendees", mode="before")
    @classmethod
    def default_attendees(cls, v):
        return v or []
