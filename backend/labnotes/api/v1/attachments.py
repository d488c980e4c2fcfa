"""
Attachment endpoints: upload, metadata, download, rename, delete.

Uploads are stored inline (base64) unless the uploader has object storage
enabled, in which case the bytes go to their bucket and only the key is kept.
"""
from typing import List
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status

from ...core.config import Settings
from ...core.errors import PayloadTooLargeError, ValidationError
from ...core.logging import get_logger
from ...core.permissions import Action, ResourceType
from ...db.storage import Storage
from ...services.blobs import delete_blob, load_blob, store_blob
from ..deps import (
    authorize_project,
    get_attachment_or_404,
    get_current_user,
    get_note_or_404,
    get_object_storage_factory,
    get_settings,
    get_storage,
)
from ... import models, schemas

logger = get_logger(__name__)

router = APIRouter(tags=["Attachments"])


def content_disposition(file_name: str, inline: bool = False) -> str:
    disposition = "inline" if inline else "attachment"
    ascii_name = file_name.encode("ascii", "ignore").decode("ascii").replace('"', "") or "download"
    return f"{disposition}; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(file_name)}"


def _read_upload(file: UploadFile, max_size: int) -> bytes:
    data = file.file.read(max_size + 1)
    if len(data) > max_size:
        raise PayloadTooLargeError(max_size)
    if not data:
        raise ValidationError("Uploaded file is empty")
    return data


def _create_attachment(
    note: models.Note,
    file: UploadFile,
    storage: Storage,
    settings: Settings,
    object_storage_factory,
    current_user: models.User,
) -> models.Attachment:
    authorize_project(storage, current_user, note.project, Action.CREATE, ResourceType.ATTACHMENT)

    data = _read_upload(file, settings.MAX_UPLOAD_SIZE)
    file_name = file.filename or "upload"
    file_type = file.content_type or "application/octet-stream"
    location = store_blob(data, file_name, file_type, object_storage_factory(current_user))

    attachment = storage.create_attachment(
        file_name=file_name,
        file_size=len(data),
        file_type=file_type,
        note_id=note.id,
        uploader_id=current_user.id,
        **location,
    )
    logger.info(
        f"Attachment uploaded | id: {attachment.id} | note: {note.id} | size: {len(data)} "
        f"| external: {attachment.stored_externally} | user: {current_user.email}"
    )
    return attachment


@router.post("/api/attachments", response_model=schemas.Attachment, status_code=status.HTTP_201_CREATED)
def upload_attachment(
    file: UploadFile = File(...),
    note_id: int = Form(...),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    object_storage_factory=Depends(get_object_storage_factory),
    current_user: models.User = Depends(get_current_user),
):
    note = get_note_or_404(storage, note_id)
    return _create_attachment(note, file, storage, settings, object_storage_factory, current_user)


@router.post(
    "/api/notes/{note_id}/attachments",
    response_model=schemas.Attachment,
    status_code=status.HTTP_201_CREATED,
)
def upload_note_attachment(
    note_id: int,
    file: UploadFile = File(...),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    object_storage_factory=Depends(get_object_storage_factory),
    current_user: models.User = Depends(get_current_user),
):
    note = get_note_or_404(storage, note_id)
    return _create_attachment(note, file, storage, settings, object_storage_factory, current_user)


@router.get("/api/attachments/note/{note_id}", response_model=List[schemas.Attachment])
def list_note_attachments(
    note_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    note = get_note_or_404(storage, note_id)
    authorize_project(storage, current_user, note.project, Action.READ, ResourceType.ATTACHMENT)
    return storage.list_attachments_by_note(note.id)


@router.get("/api/attachments/{attachment_id}", response_model=schemas.Attachment)
def get_attachment(
    attachment_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    attachment = get_attachment_or_404(storage, attachment_id)
    authorize_project(
        storage, current_user, attachment.note.project, Action.READ, ResourceType.ATTACHMENT,
        author_id=attachment.uploader_id,
    )
    return attachment


@router.get("/api/attachments/{attachment_id}/download")
def download_attachment(
    attachment_id: int,
    storage: Storage = Depends(get_storage),
    object_storage_factory=Depends(get_object_storage_factory),
    current_user: models.User = Depends(get_current_user),
):
    attachment = get_attachment_or_404(storage, attachment_id)
    authorize_project(
        storage, current_user, attachment.note.project, Action.READ, ResourceType.ATTACHMENT,
        author_id=attachment.uploader_id,
    )

    data = load_blob(attachment, object_storage_factory(attachment.uploader))
    logger.debug(f"Attachment downloaded | id: {attachment.id} | user: {current_user.email}")
    return Response(
        content=data,
        media_type=attachment.file_type,
        headers={
            "Content-Disposition": content_disposition(
                attachment.file_name, inline=attachment.file_type.startswith("image/")
            )
        },
    )


@router.patch("/api/attachments/{attachment_id}", response_model=schemas.Attachment)
def rename_attachment(
    attachment_id: int,
    payload: schemas.AttachmentRename,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    attachment = get_attachment_or_404(storage, attachment_id)
    authorize_project(
        storage, current_user, attachment.note.project, Action.UPDATE, ResourceType.ATTACHMENT,
        author_id=attachment.uploader_id,
    )
    attachment = storage.update_attachment(attachment, file_name=payload.file_name)
    logger.info(f"Attachment renamed | id: {attachment.id} | user: {current_user.email}")
    return attachment


@router.delete("/api/attachments/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_attachment(
    attachment_id: int,
    storage: Storage = Depends(get_storage),
    object_storage_factory=Depends(get_object_storage_factory),
    current_user: models.User = Depends(get_current_user),
):
    attachment = get_attachment_or_404(storage, attachment_id)
    authorize_project(
        storage, current_user, attachment.note.project, Action.DELETE, ResourceType.ATTACHMENT,
        author_id=attachment.uploader_id,
    )

    delete_blob(attachment, object_storage_factory(attachment.uploader))
    storage.delete_attachment(attachment)
    logger.info(f"Attachment deleted | id: {attachment_id} | user: {current_user.email}")
