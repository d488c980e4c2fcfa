"""
User directory and profile API endpoints.
"""
from typing import Dict, List, Optional

import streamlit as st

from api.client import fetch, handle_http_error, send
from core.auth import update_user_state
from core.logging import get_logger

logger = get_logger(__name__)


def get_users() -> List[Dict]:
    """
    Every user, with private fields only for admins.

    Returns:
        List of user dictionaries
    """
    try:
        return fetch("/api/users")
    except Exception as e:
        st.error(handle_http_error(e, "Fetch users", logger))
    return []


def user_label(user: Dict) -> str:
    name = user.get("display_name")
    return f"{name} ({user['username']})" if name else user["username"]


def update_profile(user_id: int, **fields) -> Optional[Dict]:
    """PATCH the current user's profile and refresh the cached copy in session state."""
    try:
        user = send("PATCH", f"/api/users/{user_id}", json=fields)
        update_user_state(user)
        st.success("Profile updated.")
        return user
    except Exception as e:
        st.error(handle_http_error(e, "Update profile", logger))
    return None
