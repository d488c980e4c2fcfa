"""
Session state management utilities.
"""
import streamlit as st

_DEFAULTS = {
    "token": None,
    "user": None,
    "selected_project_id": None,
    "selected_experiment_id": None,
    "last_search_query": "",
    "search_results": None,
}


def init_session_state():
    """Initialize session state variables"""
    for key, value in _DEFAULTS.items():
        if key not in st.session_state:
            st.session_state[key] = value


def clear_session_state():
    """Clear all session state"""
    for key in list(st.session_state.keys()):
        del st.session_state[key]


def is_authenticated() -> bool:
    """Check if user is authenticated"""
    return st.session_state.get("token") is not None


def get_current_user() -> dict:
    """The signed-in user as returned by the backend, or an empty dict."""
    return st.session_state.get("user") or {}


def is_admin() -> bool:
    return bool(get_current_user().get("is_admin"))
