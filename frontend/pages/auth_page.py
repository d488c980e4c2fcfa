"""
Authentication page (login, registration, password reset, email verification).
"""
import streamlit as st
from core.logging import get_logger
from api.auth import (
    login_user,
    register_user,
    request_password_reset,
    resend_verification,
    reset_password,
    verify_email,
)

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 8


def _is_valid_email(value: str) -> bool:
    value = (value or "").strip()
    if "@" not in value:
        return False
    local, _, domain = value.partition("@")
    if not local or "." not in domain:
        return False
    if domain.startswith(".") or domain.endswith("."):
        return False
    return True


def render_auth_page():
    """Render the signed-out pages"""
    logger.debug("Rendering authentication page")

    # Links from the reset and verification emails
    params = st.query_params
    if params.get("reset_token"):
        render_reset_password(params["reset_token"])
        return
    if params.get("verify_token"):
        render_verify_email(params["verify_token"])
        return

    st.sidebar.title("Lab Notebook")
    menu = st.sidebar.radio("Account", ["Login", "Register", "Forgot password", "Reset password"])

    if menu == "Login":
        render_login()
    elif menu == "Register":
        render_register()
    elif menu == "Forgot password":
        render_forgot_password()
    else:
        render_reset_password()


def render_login():
    """Render login form"""
    st.subheader("Login")
    identifier = st.text_input("Username or email", key="login_identifier")
    password = st.text_input("Password", type="password", key="login_password")

    if st.button("Login", type="primary"):
        if identifier and password:
            login_user(identifier.strip(), password)
        else:
            st.warning("Please enter your username (or email) and password.")

    with st.expander("Didn't get the verification email?"):
        email = st.text_input("Email", key="resend_email")
        if st.button("Resend verification email"):
            if _is_valid_email(email):
                resend_verification(email.strip())
            else:
                st.warning("Please enter a valid email address.")


def render_register():
    """Render registration form"""
    st.subheader("Register")
    username = st.text_input("Username", key="register_username")
    email = st.text_input("Email", key="register_email")
    display_name = st.text_input("Display name (optional)", key="register_display_name")
    password = st.text_input("Password", type="password", key="register_password")
    confirm = st.text_input("Confirm password", type="password", key="register_confirm")

    if st.button("Register", type="primary"):
        if not (username and email and password):
            st.warning("Username, email and password are required.")
        elif not _is_valid_email(email):
            st.warning("Please enter a valid email address.")
        elif len(password) < MIN_PASSWORD_LENGTH:
            st.warning(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        elif password != confirm:
            st.warning("Passwords do not match.")
        else:
            register_user(username.strip(), email.strip(), password, display_name.strip() or None)


def render_forgot_password():
    st.subheader("Forgot password")
    st.caption("We'll email you a link to choose a new password.")
    email = st.text_input("Email", key="forgot_email")
    if st.button("Send reset link", type="primary"):
        if _is_valid_email(email):
            request_password_reset(email.strip())
        else:
            st.warning("Please enter a valid email address.")


def render_reset_password(token: str = ""):
    st.subheader("Choose a new password")
    token = st.text_input("Reset token", value=token, key="reset_token")
    password = st.text_input("New password", type="password", key="reset_password")
    confirm = st.text_input("Confirm new password", type="password", key="reset_confirm")
    if st.button("Reset password", type="primary"):
        if not token:
            st.warning("The reset token is required.")
        elif len(password) < MIN_PASSWORD_LENGTH:
            st.warning(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        elif password != confirm:
            st.warning("Passwords do not match.")
        elif reset_password(token.strip(), password):
            st.query_params.clear()


def render_verify_email(token: str):
    st.subheader("Email verification")
    if st.button("Verify my email", type="primary"):
        verify_email(token)
        st.query_params.clear()
