from .base import Base, utcnow
from .user import User, UserSession, UserVerification
from .project import Project, ProjectCollaborator, Experiment
from .note import Note, Attachment
from .report import Report
from .calendar import CalendarEvent

__all__ = [
    "Base",
    "utcnow",
    "User",
    "UserSession",
    "UserVerification",
    "Project",
    "ProjectCollaborator",
    "Experiment",
    "Note",
    "Attachment",
    "Report",
    "CalendarEvent",
]
