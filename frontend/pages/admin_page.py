"""
Admin panel page (admin only).

Accessible at /admin via Streamlit st.navigation url_path.
"""

from __future__ import annotations

import streamlit as st

from core.logging import get_logger
from core.session import get_current_user, is_admin
from api.admin import (
    admin_create_user,
    admin_delete_user,
    admin_get_stats,
    admin_list_users,
    admin_update_user,
)

logger = get_logger(__name__)


def render_admin_page():
    """
    Admin dashboard page.
    Accessible at /admin. This function enforces role-based access.
    """
    st.title("Admin Panel")
    if not st.session_state.get("token"):
        st.error("Please login first.")
        return
    if not is_admin():
        st.error("Not authorized. Admin role required.")
        return

    st.caption("User management and notebook statistics.")

    stats = admin_get_stats() or {}
    for col, (label, key) in zip(
        st.columns(5),
        [("Users", "users"), ("Projects", "projects"), ("Experiments", "experiments"),
         ("Notes", "notes"), ("Reports", "reports")],
    ):
        with col:
            st.metric(label, stats.get(key, 0))

    st.subheader("Users")
    render_create_user()

    users = admin_list_users()
    if not users:
        st.info("No users found.")
        return
    me = get_current_user().get("id")
    for u in users:
        render_user(u, is_self=u["id"] == me)


def render_create_user():
    with st.expander("Create user", expanded=False):
        username = st.text_input("Username", key="admin_create_username")
        email = st.text_input("Email", key="admin_create_email")
        display_name = st.text_input("Display name", key="admin_create_display_name")
        password = st.text_input("Password", type="password", key="admin_create_password")
        make_admin = st.checkbox("Administrator", key="admin_create_is_admin")
        if st.button("Create", type="primary", key="admin_create_btn"):
            if not (username and email and password):
                st.warning("Username, email and password are required.")
            else:
                created = admin_create_user(username, email, password, display_name or None, make_admin)
                if created:
                    st.success(f"Created user {created.get('username')}")
                    st.rerun()


def render_user(u, is_self: bool):
    flags = ["admin" if u.get("is_admin") else "", "" if u.get("is_verified") else "unverified"]
    suffix = ", ".join(f for f in flags if f)
    with st.expander(f"User {u['id']} | {u['username']} | {u.get('email')}" + (f" ({suffix})" if suffix else "")):
        st.write(f"Role: {u.get('role')} | Last login: {u.get('last_login') or 'never'}")

        new_email = st.text_input("Email", value=u.get("email", ""), key=f"admin_u_email_{u['id']}")
        new_name = st.text_input("Display name", value=u.get("display_name") or "", key=f"admin_u_name_{u['id']}")
        new_admin = st.checkbox(
            "Administrator", value=bool(u.get("is_admin")), key=f"admin_u_admin_{u['id']}", disabled=is_self
        )
        new_verified = st.checkbox("Verified", value=bool(u.get("is_verified")), key=f"admin_u_verified_{u['id']}")
        new_password = st.text_input("New password (optional)", type="password", key=f"admin_u_pass_{u['id']}")

        c1, c2 = st.columns(2)
        with c1:
            if st.button("Update", key=f"admin_u_update_{u['id']}", use_container_width=True):
                updated = admin_update_user(
                    u["id"],
                    email=new_email,
                    display_name=new_name,
                    is_admin=None if is_self else new_admin,
                    is_verified=new_verified,
                    password=new_password or None,
                )
                if updated:
                    logger.info(f"Admin updated user {u['id']}")
                    st.success("Updated.")
                    st.rerun()
        with c2:
            if st.button("Delete", key=f"admin_u_delete_{u['id']}", use_container_width=True, disabled=is_self):
                if admin_delete_user(u["id"]):
                    logger.info(f"Admin deleted user {u['id']}")
                    st.success("Deleted.")
                    st.rerun()
