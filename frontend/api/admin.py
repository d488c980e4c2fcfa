"""
Admin API client.
"""

from typing import Dict, List, Optional

import streamlit as st

from api.client import fetch, handle_http_error, send
from core.logging import get_logger

logger = get_logger(__name__)


def admin_get_stats() -> Optional[Dict]:
    try:
        return fetch("/api/admin/stats")
    except Exception as e:
        st.error(handle_http_error(e, "Admin stats", logger))
        return None


def admin_list_users() -> List[Dict]:
    try:
        return fetch("/api/admin/users")
    except Exception as e:
        st.error(handle_http_error(e, "Admin list users", logger))
        return []


def admin_create_user(
    username: str,
    email: str,
    password: str,
    display_name: Optional[str] = None,
    is_admin: bool = False,
) -> Optional[Dict]:
    payload = {"username": username, "email": email, "password": password, "is_admin": is_admin}
    if display_name:
        payload["display_name"] = display_name
    try:
        return send("POST", "/api/admin/users", json=payload)
    except Exception as e:
        st.error(handle_http_error(e, "Admin create user", logger))
        return None


def admin_update_user(
    user_id: int,
    *,
    email: Optional[str] = None,
    password: Optional[str] = None,
    display_name: Optional[str] = None,
    is_admin: Optional[bool] = None,
    is_verified: Optional[bool] = None,
) -> Optional[Dict]:
    payload: Dict[str, object] = {}
    if email is not None:
        payload["email"] = email
    if password:
        payload["password"] = password
    if display_name is not None:
        payload["display_name"] = display_name
    if is_admin is not None:
        payload["is_admin"] = bool(is_admin)
    if is_verified is not None:
        payload["is_verified"] = bool(is_verified)
    if not payload:
        return None
    try:
        return send("PUT", f"/api/admin/users/{int(user_id)}", json=payload)
    except Exception as e:
        st.error(handle_http_error(e, "Admin update user", logger))
        return None


def admin_delete_user(user_id: int) -> bool:
    try:
        send("DELETE", f"/api/admin/users/{int(user_id)}")
        return True
    except Exception as e:
        st.error(handle_http_error(e, "Admin delete user", logger))
        return False
