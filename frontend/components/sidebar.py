"""
Sidebar component.
"""
import streamlit as st
from api.auth import change_password, logout_user
from api.client import invalidate_cache
from api.users import update_profile
from core.session import get_current_user


def render_sidebar():
    """Render the sidebar with user info, account actions and logout"""
    st.sidebar.title("Lab Notebook")

    user = get_current_user()
    st.sidebar.write(f"Welcome, {user.get('display_name') or user.get('username')}!")
    if user.get("role"):
        st.sidebar.caption(user["role"])

    if st.sidebar.button("Refresh data"):
        invalidate_cache()
        st.rerun()

    with st.sidebar.expander("Change password"):
        current = st.text_input("Current password", type="password", key="cp_current")
        new = st.text_input("New password", type="password", key="cp_new")
        if st.button("Update password", key="cp_submit"):
            if current and new:
                change_password(current, new)
            else:
                st.warning("Both fields are required.")

    with st.sidebar.expander("Profile"):
        display_name = st.text_input("Display name", value=user.get("display_name") or "", key="pf_name")
        email = st.text_input("Email", value=user.get("email") or "", key="pf_email")
        bio = st.text_area("Bio", value=user.get("bio") or "", key="pf_bio")
        avatar_url = st.text_input("Avatar URL", value=user.get("avatar_url") or "", key="pf_avatar")
        if st.button("Save profile", key="pf_submit"):
            fields = {
                "display_name": display_name.strip(),
                "email": email.strip(),
                "bio": bio,
                "avatar_url": avatar_url.strip(),
            }
            # Unchanged fields are not sent; display name and email cannot be cleared
            changes = {
                key: value or None
                for key, value in fields.items()
                if value != (user.get(key) or "") and (value or key not in ("display_name", "email"))
            }
            if not changes:
                st.info("Nothing to update.")
            elif update_profile(user["id"], **changes):
                st.rerun()

    if st.sidebar.button("Logout"):
        logout_user()
