"""
Project / experiment selectors shared by the dashboard tabs.
"""
from typing import Dict, List, Optional

import streamlit as st

from api.projects import get_experiments, get_projects


def select_project(key: str, projects: Optional[List[Dict]] = None) -> Optional[Dict]:
    """Selectbox over the readable projects; the choice is shared across tabs."""
    projects = get_projects() if projects is None else projects
    if not projects:
        st.info("You don't have any projects yet. Create one in the Projects tab.")
        return None

    ids = [p["id"] for p in projects]
    selected = st.session_state.get("selected_project_id")
    index = ids.index(selected) if selected in ids else 0
    project_id = st.selectbox(
        "Project",
        options=ids,
        index=index,
        format_func=lambda pid: next(p["name"] for p in projects if p["id"] == pid),
        key=key,
    )
    st.session_state["selected_project_id"] = project_id
    return next(p for p in projects if p["id"] == project_id)


def select_experiment(project_id: int, key: str, allow_none: bool = True) -> Optional[Dict]:
    experiments = get_experiments(project_id)
    options: List[Optional[int]] = ([None] if allow_none else []) + [e["id"] for e in experiments]
    if not options:
        return None
    by_id = {e["id"]: e for e in experiments}
    experiment_id = st.selectbox(
        "Experiment",
        options=options,
        format_func=lambda eid: "(none)" if eid is None else by_id[eid]["name"],
        key=key,
    )
    return by_id.get(experiment_id)
