"""
Calendar event API endpoints.
"""
from datetime import datetime
from typing import Dict, List, Optional

import streamlit as st

from api.client import fetch, handle_http_error, send
from core.logging import get_logger

logger = get_logger(__name__)


def get_events(start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Dict]:
    """Events visible to the current user overlapping [start, end]."""
    params = {
        "start_date": start.isoformat() if start else None,
        "end_date": end.isoformat() if end else None,
    }
    try:
        return fetch("/api/calendar-events", params=params)
    except Exception as e:
        st.error(handle_http_error(e, "Fetch calendar", logger))
    return []


def create_event(payload: Dict) -> Optional[Dict]:
    logger.info(f"Calendar event creation | title: {payload.get('title')}")
    try:
        return send("POST", "/api/calendar-events", json=payload)
    except Exception as e:
        st.error(handle_http_error(e, "Create event", logger))
    return None


def update_event(event_id: int, payload: Dict) -> Optional[Dict]:
    try:
        return send("PUT", f"/api/calendar-events/{event_id}", json=payload)
    except Exception as e:
        st.error(handle_http_error(e, "Update event", logger))
    return None


def delete_event(event_id: int) -> bool:
    try:
        send("DELETE", f"/api/calendar-events/{event_id}")
        return True
    except Exception as e:
        st.error(handle_http_error(e, "Delete event", logger))
    return False
