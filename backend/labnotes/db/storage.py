"""
Database accessors.

Every public method runs through call_with_retry: transient connection failures
are retried with exponential backoff, and the session is rolled back after any
failed attempt so the next attempt (or the caller) starts from a clean state.
Mutating methods commit before returning.
"""
from datetime import datetime
from functools import wraps
from typing import Any, Iterable, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..core.logging import get_logger
from ..core.retry import call_with_retry
from ..models import (
    Attachment,
    CalendarEvent,
    Experiment,
    Note,
    Project,
    ProjectCollaborator,
    Report,
    User,
    UserSession,
    UserVerification,
    utcnow,
)

logger = get_logger(__name__)


def _retrying(method):
    @wraps(method)
    def wrapper(self: "Storage", *args, **kwargs):
        def attempt():
            try:
                return method(self, *args, **kwargs)
            except Exception:
                self.db.rollback()
                raise

        return call_with_retry(
            attempt,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            label=f"Storage.{method.__name__}",
        )
    return wrapper


def _like(query: str) -> str:
    escaped = query.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class Storage:
    def __init__(self, db: Session, max_attempts: int = 3, base_delay: float = 0.2):
        self.db = db
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def _apply(self, obj, fields: dict[str, Any]):
        for key, value in fields.items():
            setattr(obj, key, value)
        return self._save(obj)

    def _remove(self, obj) -> None:
        self.db.delete(obj)
        self.db.commit()

    # ------------------------------------------------------------------ users

    @_retrying
    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    @_retrying
    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(func.lower(User.username) == username.lower()).first()

    @_retrying
    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(func.lower(User.email) == email.lower()).first()

    @_retrying
    def get_user_by_reset_token(self, token: str) -> Optional[User]:
        return self.db.query(User).filter(User.reset_password_token == token).first()

    @_retrying
    def count_users(self) -> int:
        return self.db.query(func.count(User.id)).scalar() or 0

    @_retrying
    def list_users(self) -> list[User]:
        return self.db.query(User).order_by(User.id).all()

    @_retrying
    def create_user(self, **fields) -> User:
        if fields.get("email"):
            fields["email"] = fields["email"].lower()
        return self._save(User(**fields))

    @_retrying
    def update_user(self, user: User, **fields) -> User:
        if fields.get("email"):
            fields["email"] = fields["email"].lower()
        return self._apply(user, fields)

    @_retrying
    def delete_user(self, user: User) -> None:
        self._remove(user)

    # --------------------------------------------------------------- sessions

    @_retrying
    def create_session(
        self,
        user_id: int,
        token_hash: str,
        expires_at: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> UserSession:
        return self._save(UserSession(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
        ))

    @_retrying
    def get_session_by_token_hash(self, token_hash: str) -> Optional[UserSession]:
        return self.db.query(UserSession).filter(UserSession.token_hash == token_hash).first()

    @_retrying
    def touch_session(self, user_session: UserSession) -> UserSession:
        return self._apply(user_session, {"last_used_at": utcnow()})

    @_retrying
    def delete_session(self, user_session: UserSession) -> None:
        self._remove(user_session)

    @_retrying
    def delete_user_sessions(self, user_id: int, keep_token_hash: Optional[str] = None) -> int:
        """Delete a user's sessions, optionally sparing one. Returns how many were removed."""
        query = self.db.query(UserSession).filter(UserSession.user_id == user_id)
        if keep_token_hash is not None:
            query = query.filter(UserSession.token_hash != keep_token_hash)
        removed = query.delete(synchronize_session=False)
        self.db.commit()
        return removed

    @_retrying
    def count_user_sessions(self, user_id: int) -> int:
        return self.db.query(func.count(UserSession.id)).filter(UserSession.user_id == user_id).scalar() or 0

    # ----------------------------------------------------------- verification

    @_retrying
    def replace_verification(self, user_id: int, token: str, expires_at: datetime) -> UserVerification:
        self.db.query(UserVerification).filter(UserVerification.user_id == user_id).delete(
            synchronize_session=False
        )
        return self._save(UserVerification(user_id=user_id, token=token, expires_at=expires_at))

    @_retrying
    def get_verification_by_token(self, token: str) -> Optional[UserVerification]:
        return self.db.query(UserVerification).filter(UserVerification.token == token).first()

    @_retrying
    def delete_verification(self, verification: UserVerification) -> None:
        self._remove(verification)

    # --------------------------------------------------------------- projects

    @_retrying
    def get_project(self, project_id: int) -> Optional[Project]:
        return self.db.get(Project, project_id)

    @_retrying
    def list_projects(self) -> list[Project]:
        return self.db.query(Project).order_by(Project.created_at.desc(), Project.id.desc()).all()

    @_retrying
    def list_projects_for_user(self, user_id: int) -> list[Project]:
        """Projects the user owns or collaborates on."""
        shared = self.db.query(ProjectCollaborator.project_id).filter(ProjectCollaborator.user_id == user_id)
        return (
            self.db.query(Project)
            .filter(or_(Project.owner_id == user_id, Project.id.in_(shared)))
            .order_by(Project.created_at.desc(), Project.id.desc())
            .all()
        )

    @_retrying
    def list_projects_owned_by(self, user_id: int) -> list[Project]:
        return (
            self.db.query(Project)
            .filter(Project.owner_id == user_id)
            .order_by(Project.created_at.desc(), Project.id.desc())
            .all()
        )

    @_retrying
    def accessible_project_ids(self, user_id: int) -> set[int]:
        owned = {row[0] for row in self.db.query(Project.id).filter(Project.owner_id == user_id)}
        shared = {
            row[0]
            for row in self.db.query(ProjectCollaborator.project_id).filter(ProjectCollaborator.user_id == user_id)
        }
        return owned | shared

    @_retrying
    def create_project(self, name: str, owner_id: int, description: Optional[str] = None) -> Project:
        return self._save(Project(name=name, description=description, owner_id=owner_id))

    @_retrying
    def update_project(self, project: Project, **fields) -> Project:
        return self._apply(project, fields)

    @_retrying
    def delete_project(self, project: Project) -> None:
        """Removes the project with its experiments, notes, attachments and collaborators."""
        self._remove(project)

    # ---------------------------------------------------------- collaborators

    @_retrying
    def get_collaborator(self, project_id: int, user_id: int) -> Optional[ProjectCollaborator]:
        return (
            self.db.query(ProjectCollaborator)
            .filter(ProjectCollaborator.project_id == project_id, ProjectCollaborator.user_id == user_id)
            .first()
        )

    @_retrying
    def list_collaborators(self, project_id: int) -> list[ProjectCollaborator]:
        return (
            self.db.query(ProjectCollaborator)
            .filter(ProjectCollaborator.project_id == project_id)
            .order_by(ProjectCollaborator.id)
            .all()
        )

    @_retrying
    def collaborator_roles(self, user_id: int) -> dict[int, str]:
        rows = (
            self.db.query(ProjectCollaborator.project_id, ProjectCollaborator.role)
            .filter(ProjectCollaborator.user_id == user_id)
            .all()
        )
        return {project_id: role for project_id, role in rows}

    @_retrying
    def add_collaborator(self, project_id: int, user_id: int, role: str = "Viewer") -> ProjectCollaborator:
        return self._save(ProjectCollaborator(project_id=project_id, user_id=user_id, role=role))

    @_retrying
    def update_collaborator_role(self, collaborator: ProjectCollaborator, role: str) -> ProjectCollaborator:
        return self._apply(collaborator, {"role": role})

    @_retrying
    def remove_collaborator(self, collaborator: ProjectCollaborator) -> None:
        self._remove(collaborator)

    # ------------------------------------------------------------ experiments

    @_retrying
    def get_experiment(self, experiment_id: int) -> Optional[Experiment]:
        return self.db.get(Experiment, experiment_id)

    @_retrying
    def list_experiments(self, project_ids: Optional[Iterable[int]] = None) -> list[Experiment]:
        query = self.db.query(Experiment)
        if project_ids is not None:
            query = query.filter(Experiment.project_id.in_(list(project_ids)))
        return query.order_by(Experiment.created_at.desc(), Experiment.id.desc()).all()

    @_retrying
    def list_experiments_by_project(self, project_id: int) -> list[Experiment]:
        return (
            self.db.query(Experiment)
            .filter(Experiment.project_id == project_id)
            .order_by(Experiment.created_at.desc(), Experiment.id.desc())
            .all()
        )

    @_retrying
    def create_experiment(self, name: str, project_id: int, description: Optional[str] = None) -> Experiment:
        return self._save(Experiment(name=name, description=description, project_id=project_id))

    @_retrying
    def update_experiment(self, experiment: Experiment, **fields) -> Experiment:
        return self._apply(experiment, fields)

    @_retrying
    def delete_experiment(self, experiment: Experiment) -> None:
        self._remove(experiment)

    # ------------------------------------------------------------------ notes

    @_retrying
    def get_note(self, note_id: int) -> Optional[Note]:
        return self.db.get(Note, note_id)

    @_retrying
    def list_notes(self, project_ids: Optional[Iterable[int]] = None) -> list[Note]:
        query = self.db.query(Note)
        if project_ids is not None:
            query = query.filter(Note.project_id.in_(list(project_ids)))
        return query.order_by(Note.updated_at.desc(), Note.id.desc()).all()

    @_retrying
    def list_notes_by_project(self, project_id: int) -> list[Note]:
        return (
            self.db.query(Note)
            .filter(Note.project_id == project_id)
            .order_by(Note.updated_at.desc(), Note.id.desc())
            .all()
        )

    @_retrying
    def list_notes_by_experiment(self, experiment_id: int) -> list[Note]:
        return (
            self.db.query(Note)
            .filter(Note.experiment_id == experiment_id)
            .order_by(Note.updated_at.desc(), Note.id.desc())
            .all()
        )

    @_retrying
    def get_notes(self, note_ids: Iterable[int]) -> list[Note]:
        """Notes by id, in the order the ids were given; unknown ids are skipped."""
        ids = list(note_ids)
        found = {n.id: n for n in self.db.query(Note).filter(Note.id.in_(ids)).all()}
        return [found[i] for i in ids if i in found]

    @_retrying
    def create_note(
        self,
        title: str,
        project_id: int,
        author_id: Optional[int],
        content: str = "",
        experiment_id: Optional[int] = None,
    ) -> Note:
        return self._save(Note(
            title=title,
            content=content or "",
            project_id=project_id,
            experiment_id=experiment_id,
            author_id=author_id,
        ))

    @_retrying
    def update_note(self, note: Note, **fields) -> Note:
        return self._apply(note, fields)

    @_retrying
    def delete_note(self, note: Note) -> None:
        self._remove(note)

    # ------------------------------------------------------------ attachments

    @_retrying
    def get_attachment(self, attachment_id: int) -> Optional[Attachment]:
        return self.db.get(Attachment, attachment_id)

    @_retrying
    def list_attachments_by_note(self, note_id: int) -> list[Attachment]:
        return self.db.query(Attachment).filter(Attachment.note_id == note_id).order_by(Attachment.id).all()

    @_retrying
    def create_attachment(self, **fields) -> Attachment:
        return self._save(Attachment(**fields))

    @_retrying
    def update_attachment(self, attachment: Attachment, **fields) -> Attachment:
        return self._apply(attachment, fields)

    @_retrying
    def delete_attachment(self, attachment: Attachment) -> None:
        self._remove(attachment)

    # ---------------------------------------------------------------- reports

    @_retrying
    def get_report(self, report_id: int) -> Optional[Report]:
        return self.db.get(Report, report_id)

    @_retrying
    def list_reports(
        self,
        author_id: Optional[int] = None,
        project_ids: Optional[Iterable[int]] = None,
    ) -> list[Report]:
        """All reports, or those written by author_id or attached to one of project_ids."""
        query = self.db.query(Report)
        clauses = []
        if author_id is not None:
            clauses.append(Report.author_id == author_id)
        if project_ids is not None:
            ids = list(project_ids)
            if ids:
                clauses.append(Report.project_id.in_(ids))
        if author_id is not None or project_ids is not None:
            if not clauses:
                return []
            query = query.filter(or_(*clauses))
        return query.order_by(Report.created_at.desc(), Report.id.desc()).all()

    @_retrying
    def create_report(self, **fields) -> Report:
        return self._save(Report(**fields))

    @_retrying
    def delete_report(self, report: Report) -> None:
        self._remove(report)

    # -------------------------------------------------------- calendar events

    @_retrying
    def get_calendar_event(self, event_id: int) -> Optional[CalendarEvent]:
        return self.db.get(CalendarEvent, event_id)

    @_retrying
    def list_calendar_events(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[CalendarEvent]:
        """Events overlapping [start, end]; either bound may be open."""
        query = self.db.query(CalendarEvent)
        if end is not None:
            query = query.filter(CalendarEvent.start_date <= end)
        if start is not None:
            query = query.filter(CalendarEvent.end_date >= start)
        return query.order_by(CalendarEvent.start_date, CalendarEvent.id).all()

    @_retrying
    def create_calendar_event(self, **fields) -> CalendarEvent:
        return self._save(CalendarEvent(**fields))

    @_retrying
    def update_calendar_event(self, calendar_event: CalendarEvent, **fields) -> CalendarEvent:
        return self._apply(calendar_event, fields)

    @_retrying
    def delete_calendar_event(self, calendar_event: CalendarEvent) -> None:
        self._remove(calendar_event)

    # ----------------------------------------------------------------- search

    @_retrying
    def search(self, query: str, project_ids: Optional[Iterable[int]] = None, limit: int = 50) -> dict[str, list]:
        """Case-insensitive substring match over notes, projects and experiments."""
        pattern = _like(query)
        ids = list(project_ids) if project_ids is not None else None

        notes_q = self.db.query(Note).filter(or_(
            func.lower(Note.title).like(pattern, escape="\\"),
            func.lower(Note.content).like(pattern, escape="\\"),
        ))
        projects_q = self.db.query(Project).filter(or_(
            func.lower(Project.name).like(pattern, escape="\\"),
            func.lower(func.coalesce(Project.description, "")).like(pattern, escape="\\"),
        ))
        experiments_q = self.db.query(Experiment).filter(or_(
            func.lower(Experiment.name).like(pattern, escape="\\"),
            func.lower(func.coalesce(Experiment.description, "")).like(pattern, escape="\\"),
        ))
        if ids is not None:
            notes_q = notes_q.filter(Note.project_id.in_(ids))
            projects_q = projects_q.filter(Project.id.in_(ids))
            experiments_q = experiments_q.filter(Experiment.project_id.in_(ids))

        return {
            "notes": notes_q.order_by(Note.updated_at.desc(), Note.id.desc()).limit(limit).all(),
            "projects": projects_q.order_by(Project.id.desc()).limit(limit).all(),
            "experiments": experiments_q.order_by(Experiment.id.desc()).limit(limit).all(),
        }

    # ------------------------------------------------------------------ stats

    @_retrying
    def stats(self) -> dict[str, int]:
        return {
            "users": self.db.query(func.count(User.id)).scalar() or 0,
            "projects": self.db.query(func.count(Project.id)).scalar() or 0,
            "experiments": self.db.query(func.count(Experiment.id)).scalar() or 0,
            "notes": self.db.query(func.count(Note.id)).scalar() or 0,
            "reports": self.db.query(func.count(Report.id)).scalar() or 0,
        }
