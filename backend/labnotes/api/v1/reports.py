"""
Report endpoints: generate a PDF from a project's notes, list, download,
delete and email it.
"""
import re
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.concurrency import run_in_threadpool

from ...core.errors import NotFoundError, ValidationError
from ...core.logging import get_logger
from ...core.permissions import Action, ResourceType
from ...db.storage import Storage
from ...models import utcnow
from ...services.blobs import delete_blob, load_blob, store_blob
from ...services.report_pdf import build_report_pdf
from ...utils.html_text import attachment_id_from_src
from ..deps import (
    access_context,
    authorize,
    authorize_project,
    get_current_user,
    get_mailer,
    get_object_storage_factory,
    get_project_or_404,
    get_storage,
    is_allowed,
    readable_project_ids,
)
from .attachments import content_disposition
from ... import models, schemas

logger = get_logger(__name__)

router = APIRouter(prefix="/api/reports", tags=["Reports"])


def _safe_filename(text: str) -> str:
    text = re.sub(r"[^a-zA-Z0-9_-]+", "_", text).strip("_")
    return text[:80] or "report"


def _get_report_or_404(storage: Storage, report_id: int) -> models.Report:
    report = storage.get_report(report_id)
    if report is None:
        raise NotFoundError("Report")
    return report


def _authorize_report(storage: Storage, user: models.User, report: models.Report, action: Action) -> None:
    context = access_context(storage, user, ResourceType.REPORT, report.project, author_id=report.author_id)
    authorize(user, context, action)


def _make_image_loader(storage: Storage, user: models.User, project_id: int, object_storage_factory):
    """Resolve /api/attachments/{id}/download references the user may read within the project."""

    def load(src: str) -> Optional[bytes]:
        attachment_id = attachment_id_from_src(src)
        if attachment_id is None:
            return None
        attachment = storage.get_attachment(attachment_id)
        if attachment is None or attachment.note.project_id != project_id:
            return None
        context = access_context(storage, user, ResourceType.ATTACHMENT, attachment.note.project)
        if not is_allowed(user, context, Action.READ):
            return None
        try:
            return load_blob(attachment, object_storage_factory(attachment.uploader))
        except NotFoundError:
            return None
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Could not fetch attachment {attachment_id} for report: {e}")
            return None

    return load


@router.post("", response_model=schemas.Report, status_code=status.HTTP_201_CREATED)
def create_report(
    payload: schemas.ReportCreate,
    storage: Storage = Depends(get_storage),
    object_storage_factory=Depends(get_object_storage_factory),
    current_user: models.User = Depends(get_current_user),
):
    """Generate and store a PDF report for notes of one project"""
    project = get_project_or_404(storage, payload.project_id)
    authorize_project(storage, current_user, project, Action.CREATE, ResourceType.REPORT)

    experiment = None
    if payload.experiment_id is not None:
        experiment = storage.get_experiment(payload.experiment_id)
        if experiment is None or experiment.project_id != project.id:
            raise ValidationError("Experiment does not belong to the project")

    note_ids = list(dict.fromkeys(payload.note_ids))
    notes = storage.get_notes(note_ids)
    if len(notes) != len(note_ids):
        raise ValidationError("One or more notes do not exist")
    for note in notes:
        if note.project_id != project.id:
            raise ValidationError("All notes must belong to the selected project")
        if experiment is not None and note.experiment_id != experiment.id:
            raise ValidationError("All notes must belong to the selected experiment")

    options = payload.options
    title = payload.title or options.title or f"{project.name} Report"
    if not options.title:
        options = options.model_copy(update={"title": title})

    pdf = build_report_pdf(
        project,
        experiment,
        notes,
        options,
        image_loader=_make_image_loader(storage, current_user, project.id, object_storage_factory),
    )
    file_name = f"{_safe_filename(title)}_{utcnow():%Y%m%d_%H%M%S}.pdf"
    location = store_blob(pdf, file_name, "application/pdf", object_storage_factory(current_user))

    report = storage.create_report(
        title=title,
        description=payload.description,
        file_name=file_name,
        file_size=len(pdf),
        file_type="application/pdf",
        project_id=project.id,
        experiment_id=experiment.id if experiment else None,
        author_id=current_user.id,
        options=options.model_dump(),
        **location,
    )
    logger.info(
        f"Report generated | id: {report.id} | project: {project.id} | notes: {len(notes)} "
        f"| size: {len(pdf)} | user: {current_user.email}"
    )
    return report


@router.get("", response_model=List[schemas.Report])
def list_reports(
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    """The caller's reports plus reports of projects they can read (administrators see all)"""
    project_ids = readable_project_ids(storage, current_user)
    if project_ids is None:
        return storage.list_reports()
    return storage.list_reports(author_id=current_user.id, project_ids=project_ids)


@router.get("/{report_id}", response_model=schemas.Report)
def get_report(
    report_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    report = _get_report_or_404(storage, report_id)
    _authorize_report(storage, current_user, report, Action.READ)
    return report


@router.get("/{report_id}/download")
def download_report(
    report_id: int,
    storage: Storage = Depends(get_storage),
    object_storage_factory=Depends(get_object_storage_factory),
    current_user: models.User = Depends(get_current_user),
):
    report = _get_report_or_404(storage, report_id)
    _authorize_report(storage, current_user, report, Action.READ)

    data = load_blob(report, object_storage_factory(report.author))
    return Response(
        content=data,
        media_type=report.file_type,
        headers={"Content-Disposition": content_disposition(report.file_name)},
    )


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_report(
    report_id: int,
    storage: Storage = Depends(get_storage),
    object_storage_factory=Depends(get_object_storage_factory),
    current_user: models.User = Depends(get_current_user),
):
    report = _get_report_or_404(storage, report_id)
    _authorize_report(storage, current_user, report, Action.DELETE)

    delete_blob(report, object_storage_factory(report.author))
    storage.delete_report(report)
    logger.info(f"Report deleted | id: {report_id} | user: {current_user.email}")


def _readable_report_pdf(storage: Storage, user: models.User, report_id: int, object_storage_factory):
    report = _get_report_or_404(storage, report_id)
    _authorize_report(storage, user, report, Action.READ)
    return report, load_blob(report, object_storage_factory(report.author))


@router.post("/{report_id}/email", response_model=schemas.ReportEmailResult)
async def email_report(
    report_id: int,
    payload: schemas.ReportEmailRequest,
    storage: Storage = Depends(get_storage),
    object_storage_factory=Depends(get_object_storage_factory),
    mailer=Depends(get_mailer),
    current_user: models.User = Depends(get_current_user),
):
    """Send the report PDF to a recipient as an email attachment"""
    report, data = await run_in_threadpool(
        _readable_report_pdf, storage, current_user, report_id, object_storage_factory
    )
    sent = await mailer.send_report_email(
        to_email=payload.recipient,
        sender_name=current_user.display_name or current_user.username,
        report_title=report.title,
        pdf_bytes=data,
        filename=report.file_name,
        subject=payload.subject,
        message=payload.message,
    )
    if not sent:
        logger.error(f"Report email failed | id: {report.id} | user: {current_user.email}")
        raise HTTPException(status_code=500, detail="Failed to send email")

    logger.info(f"Report emailed | id: {report.id} | user: {current_user.email}")
    return {"message": "Report sent", "recipient": payload.recipient}
