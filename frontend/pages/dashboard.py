"""
Main dashboard page.
"""
import streamlit as st
from core.logging import get_logger
from components.sidebar import render_sidebar
from pages.tabs.projects_tab import render_projects_tab
from pages.tabs.notes_tab import render_notes_tab
from pages.tabs.reports_tab import render_reports_tab
from pages.tabs.calendar_tab import render_calendar_tab
from pages.tabs.search_tab import render_search_tab

logger = get_logger(__name__)


def render_dashboard():
    """Render the main dashboard"""
    logger.debug(f"Rendering dashboard for user: {(st.session_state.get('user') or {}).get('username')}")

    render_sidebar()

    st.title("Dashboard")

    projects_tab, notes_tab, reports_tab, calendar_tab, search_tab = st.tabs([
        "📁 Projects",
        "📝 Notebook",
        "📄 Reports",
        "📅 Calendar",
        "🔍 Search",
    ])

    with projects_tab:
        render_projects_tab()

    with notes_tab:
        render_notes_tab()

    with reports_tab:
        render_reports_tab()

    with calendar_tab:
        render_calendar_tab()

    with search_tab:
        render_search_tab()
