"""
Authentication API endpoints.
"""
from typing import Optional

import streamlit as st

from api.client import get_client, handle_http_error, invalidate_cache, send
from core.auth import clear_auth_state, set_auth_state
from core.logging import get_logger

logger = get_logger(__name__)


def _start_session(data: dict):
    set_auth_state(data["token"], data["user"])
    invalidate_cache()


def register_user(username: str, email: str, password: str, display_name: Optional[str] = None):
    """
    Register a new user and sign in when the backend hands back a token.

    Args:
        username: Login name
        email: User email
        password: User password
        display_name: Optional name shown to collaborators
    """
    logger.info(f"Registration attempt | username: {username}")
    payload = {"username": username, "email": email, "password": password}
    if display_name:
        payload["display_name"] = display_name
    try:
        with get_client(headers={}) as client:
            response = client.post("/api/auth/register", json=payload)
            response.raise_for_status()
            data = response.json()
        logger.info(f"Registration successful | username: {username}")
        if data.get("token"):
            _start_session(data)
            st.rerun()
        st.success(data.get("message") or "Registration successful! Please check your email, then log in.")
    except Exception as e:
        st.error(handle_http_error(e, "Registration", logger))


def login_user(identifier: str, password: str):
    """
    Login with a username or an email address.

    Args:
        identifier: Username or email
        password: User password
    """
    logger.info(f"Login attempt | identifier: {identifier}")
    field = "email" if "@" in identifier else "username"
    try:
        with get_client(headers={}) as client:
            response = client.post("/api/auth/login", json={field: identifier, "password": password})
            response.raise_for_status()
            data = response.json()
        _start_session(data)
        logger.info(f"Login successful | user: {data['user']['username']}")
        st.rerun()
    except Exception as e:
        st.error(handle_http_error(e, "Login", logger))


def logout_user():
    """Revoke the session on the backend, then clear local state"""
    try:
        send("POST", "/api/auth/logout")
    except Exception as e:
        # The local session is dropped either way
        logger.warning(handle_http_error(e, "Logout", logger))
    clear_auth_state()
    st.rerun()


def request_password_reset(email: str):
    try:
        with get_client(headers={}) as client:
            response = client.post("/api/auth/forgot-password", json={"email": email})
            response.raise_for_status()
        st.success(response.json()["message"])
    except Exception as e:
        st.error(handle_http_error(e, "Password reset request", logger))


def reset_password(token: str, password: str) -> bool:
    try:
        with get_client(headers={}) as client:
            response = client.post("/api/auth/reset-password", json={"token": token, "password": password})
            response.raise_for_status()
        st.success("Password updated. You can now log in.")
        return True
    except Exception as e:
        st.error(handle_http_error(e, "Password reset", logger))
    return False


def verify_email(token: str):
    try:
        with get_client(headers={}) as client:
            response = client.post("/api/auth/verify-email", json={"token": token})
            response.raise_for_status()
        st.success("Email verified. You can now log in.")
    except Exception as e:
        st.error(handle_http_error(e, "Email verification", logger))


def resend_verification(email: str):
    try:
        with get_client(headers={}) as client:
            response = client.post("/api/auth/resend-verification", json={"email": email})
            response.raise_for_status()
        st.success(response.json()["message"])
    except Exception as e:
        st.error(handle_http_error(e, "Resend verification", logger))


def change_password(current_password: str, new_password: str) -> bool:
    try:
        send(
            "POST", "/api/auth/change-password",
            json={"current_password": current_password, "new_password": new_password},
        )
        st.success("Password changed. Your other sessions were signed out.")
        return True
    except Exception as e:
        st.error(handle_http_error(e, "Change password", logger))
    return False
