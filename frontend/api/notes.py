"""
Note and attachment API endpoints.
"""
from typing import Dict, List, Optional

import streamlit as st

from api.client import download, fetch, handle_http_error, send
from config.settings import settings
from core.logging import get_logger

logger = get_logger(__name__)


def get_notes(project_id: int, experiment_id: Optional[int] = None) -> List[Dict]:
    """Notes of a project, or of one experiment when experiment_id is given."""
    path = f"/api/notes/experiment/{experiment_id}" if experiment_id else f"/api/notes/project/{project_id}"
    try:
        return fetch(path)
    except Exception as e:
        st.error(handle_http_error(e, "Fetch notes", logger))
    return []


def create_note(project_id: int, title: str, content: str, experiment_id: Optional[int] = None) -> Optional[Dict]:
    logger.info(f"Note creation | project: {project_id} | title: {title}")
    try:
        return send(
            "POST", "/api/notes",
            json={"title": title, "content": content, "project_id": project_id, "experiment_id": experiment_id},
        )
    except Exception as e:
        st.error(handle_http_error(e, "Note creation", logger))
    return None


def update_note(note_id: int, **fields) -> Optional[Dict]:
    try:
        return send("PUT", f"/api/notes/{note_id}", json=fields)
    except Exception as e:
        st.error(handle_http_error(e, "Update note", logger))
    return None


def delete_note(note_id: int) -> bool:
    try:
        send("DELETE", f"/api/notes/{note_id}")
        return True
    except Exception as e:
        st.error(handle_http_error(e, "Delete note", logger))
    return False


def get_attachments(note_id: int) -> List[Dict]:
    try:
        return fetch(f"/api/attachments/note/{note_id}")
    except Exception as e:
        st.error(handle_http_error(e, "Fetch attachments", logger))
    return []


def upload_attachment(note_id: int, uploaded_file) -> Optional[Dict]:
    """
    Upload a file to a note.

    Args:
        note_id: Note ID
        uploaded_file: Streamlit UploadedFile object
    """
    if uploaded_file.size > settings.MAX_UPLOAD_SIZE:
        st.error(f"File too large. Max size is {settings.MAX_UPLOAD_SIZE / (1024 * 1024):.0f} MB.")
        return None
    logger.info(f"Attachment upload | note: {note_id} | file: {uploaded_file.name}")
    try:
        with st.spinner(f"Uploading '{uploaded_file.name}'..."):
            files = {"file": (uploaded_file.name, uploaded_file.getvalue(), uploaded_file.type)}
            return send("POST", f"/api/notes/{note_id}/attachments", timeout=120.0, files=files)
    except Exception as e:
        st.error(handle_http_error(e, "File upload", logger))
    return None


def download_attachment(attachment_id: int) -> Optional[bytes]:
    try:
        return download(f"/api/attachments/{attachment_id}/download", timeout=120.0)
    except Exception as e:
        st.error(handle_http_error(e, "Download attachment", logger))
    return None


def rename_attachment(attachment_id: int, file_name: str) -> bool:
    try:
        send("PATCH", f"/api/attachments/{attachment_id}", json={"file_name": file_name})
        return True
    except Exception as e:
        st.error(handle_http_error(e, "Rename attachment", logger))
    return False


def delete_attachment(attachment_id: int) -> bool:
    try:
        send("DELETE", f"/api/attachments/{attachment_id}")
        return True
    except Exception as e:
        st.error(handle_http_error(e, "Delete attachment", logger))
    return False
