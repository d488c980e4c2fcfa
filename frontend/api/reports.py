"""
Report API endpoints.
"""
from typing import Dict, List, Optional

import streamlit as st

from api.client import download, fetch, handle_http_error, send
from core.logging import get_logger

logger = get_logger(__name__)


def get_reports() -> List[Dict]:
    try:
        return fetch("/api/reports")
    except Exception as e:
        st.error(handle_http_error(e, "Fetch reports", logger))
    return []


def generate_report(
    project_id: int,
    note_ids: List[int],
    title: Optional[str] = None,
    description: Optional[str] = None,
    experiment_id: Optional[int] = None,
    options: Optional[Dict] = None,
) -> Optional[Dict]:
    """
    Render the selected notes to PDF on the backend and store the result.

    Args:
        project_id: Project the notes belong to
        note_ids: Notes in the order they should appear
        title: Report title; the backend defaults to "<project> Report"
        description: Free text stored with the report
        experiment_id: Optional experiment the report is about
        options: Rendering options (colors, page size, which sections to show)

    Returns:
        Report metadata or None
    """
    logger.info(f"Report generation | project: {project_id} | notes: {len(note_ids)}")
    payload = {
        "project_id": project_id,
        "note_ids": note_ids,
        "title": title or None,
        "description": description or None,
        "experiment_id": experiment_id,
        "options": options or {},
    }
    try:
        with st.spinner("Generating PDF..."):
            report = send("POST", "/api/reports", timeout=300.0, json=payload)
        st.success(f"Report '{report['title']}' generated.")
        return report
    except Exception as e:
        st.error(handle_http_error(e, "Report generation", logger))
    return None


def download_report(report_id: int) -> Optional[bytes]:
    try:
        return download(f"/api/reports/{report_id}/download", timeout=120.0)
    except Exception as e:
        st.error(handle_http_error(e, "Download report", logger))
    return None


def email_report(report_id: int, recipient: str, subject: str = "", message: str = "") -> bool:
    logger.info(f"Emailing report | report: {report_id}")
    try:
        with st.spinner(f"Sending to {recipient}..."):
            send(
                "POST", f"/api/reports/{report_id}/email", timeout=120.0,
                json={"recipient": recipient, "subject": subject or None, "message": message or None},
            )
        st.success(f"Report sent to {recipient}.")
        return True
    except Exception as e:
        st.error(handle_http_error(e, "Email report", logger))
    return False


def delete_report(report_id: int) -> bool:
    try:
        send("DELETE", f"/api/reports/{report_id}")
        return True
    except Exception as e:
        st.error(handle_http_error(e, "Delete report", logger))
    return False
