"""
Search API endpoint.
"""
from typing import Dict, Optional

import streamlit as st

from api.client import fetch, handle_http_error
from core.logging import get_logger

logger = get_logger(__name__)


def search(query: str, limit: int = 50) -> Optional[Dict]:
    """
    Case-insensitive substring search over the notes, projects and experiments
    the current user can read.

    Args:
        query: Text to look for
        limit: Maximum hits per category

    Returns:
        ``{"notes": [...], "projects": [...], "experiments": [...]}`` or None
    """
    logger.info(f"Search initiated | query: '{query}'")
    try:
        return fetch("/api/search", params={"q": query, "limit": limit})
    except Exception as e:
        st.error(handle_http_error(e, "Search", logger))
    return None
