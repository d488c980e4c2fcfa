"""
Lab Notebook Frontend - Main Application Entry Point
"""
import streamlit as st
from core.logging import get_logger
from core.session import get_current_user, init_session_state, is_admin, is_authenticated
from config.settings import settings
from pages.auth_page import render_auth_page
from pages.dashboard import render_dashboard
from pages.admin_page import render_admin_page

logger = get_logger(__name__)
logger.info("Frontend application starting...")


def main():
    """Main application entry point"""
    st.set_page_config(
        page_title=settings.PAGE_TITLE,
        page_icon=settings.PAGE_ICON,
        layout=settings.LAYOUT
    )

    init_session_state()

    if not is_authenticated():
        logger.debug("User not authenticated - showing login/register")
        render_auth_page()
        return

    user = get_current_user()
    logger.debug(f"Authenticated user session | user: {user.get('username')} | admin: {user.get('is_admin')}")

    pages = {
        "Notebook": [
            st.Page(render_dashboard, title="Dashboard", icon="🧪", default=True),
        ],
    }
    if is_admin():
        pages["Admin"] = [st.Page(render_admin_page, title="Admin Panel", icon="🛡️", url_path="admin")]

    nav = st.navigation(pages, position="sidebar", expanded=True)
    nav.run()


if __name__ == "__main__":
    main()
