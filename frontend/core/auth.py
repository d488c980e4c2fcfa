"""
Authentication state helpers.
"""
import streamlit as st
from core.logging import get_logger
from core.session import clear_session_state

logger = get_logger(__name__)


def set_auth_state(token: str, user: dict):
    """Remember the bearer token and the user it belongs to"""
    st.session_state["token"] = token
    st.session_state["user"] = user
    logger.info(f"Authentication state set | user: {user.get('username')} | admin: {user.get('is_admin')}")


def update_user_state(user: dict):
    st.session_state["user"] = user


def clear_auth_state():
    """Clear authentication state"""
    username = (st.session_state.get("user") or {}).get("username", "unknown")
    logger.info(f"Clearing authentication state | user: {username}")
    clear_session_state()


def get_auth_headers():
    """Get authorization headers for API requests"""
    token = st.session_state.get("token")
    if token:
        return {"Authorization": f"Bearer {token}"}
    return {}
