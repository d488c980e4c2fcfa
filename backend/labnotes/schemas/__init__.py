from .base import Message
from .user import User, UserPublic, UserUpdate, AdminUserCreate, AdminUserUpdate, Stats
from .auth import (
    RegisterRequest,
    LoginRequest,
    AuthResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    ChangePasswordRequest,
    VerifyEmailRequest,
    ResendVerificationRequest,
)
from .project import (
    Project,
    ProjectCreate,
    ProjectUpdate,
    Collaborator,
    CollaboratorCreate,
    CollaboratorUpdate,
    Experiment,
    ExperimentCreate,
    ExperimentUpdate,
)
from .note import Note, NoteCreate, NoteUpdate, Attachment, AttachmentRename
from .report import Report, ReportCreate, ReportOptions, ReportEmailRequest, ReportEmailResult
from .calendar import CalendarEvent, CalendarEventCreate, CalendarEventUpdate
from .search import SearchResults

__all__ = [
    "Message",
    "User",
    "UserPublic",
    "UserUpdate",
    "AdminUserCreate",
    "AdminUserUpdate",
    "Stats",
    "RegisterRequest",
    "LoginRequest",
    "AuthResponse",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "ChangePasswordRequest",
    "VerifyEmailRequest",
    "ResendVerificationRequest",
    "Project",
    "ProjectCreate",
    "ProjectUpdate",
    "Collaborator",
    "CollaboratorCreate",
    "CollaboratorUpdate",
    "Experiment",
    "ExperimentCreate",
    "ExperimentUpdate",
    "Note",
    "NoteCreate",
    "NoteUpdate",
    "Attachment",
    "AttachmentRename",
    "Report",
    "ReportCreate",
    "ReportOptions",
    "ReportEmailRequest",
    "ReportEmailResult",
    "CalendarEvent",
    "CalendarEventCreate",
    "CalendarEventUpdate",
    "SearchResults",
]
