"""
Project, collaborator and experiment API endpoints.
"""
from typing import Dict, List, Optional

import streamlit as st

from api.client import fetch, handle_http_error, send
from core.logging import get_logger

logger = get_logger(__name__)

COLLABORATOR_ROLES = ["Viewer", "Editor"]


def get_projects() -> List[Dict]:
    """
    Projects the current user owns or collaborates on (all projects for admins).

    Returns:
        List of project dictionaries
    """
    try:
        return fetch("/api/projects")
    except Exception as e:
        st.error(handle_http_error(e, "Fetch projects", logger))
    return []


def create_project(name: str, description: str = "") -> Optional[Dict]:
    logger.info(f"Project creation | name: {name}")
    try:
        project = send("POST", "/api/projects", json={"name": name, "description": description or None})
        st.success(f"Project '{project['name']}' created.")
        return project
    except Exception as e:
        st.error(handle_http_error(e, "Project creation", logger))
    return None


def update_project(project_id: int, name: str, description: str) -> Optional[Dict]:
    try:
        return send("PUT", f"/api/projects/{project_id}", json={"name": name, "description": description})
    except Exception as e:
        st.error(handle_http_error(e, "Update project", logger))
    return None


def delete_project(project_id: int) -> bool:
    """
    Delete a project with its experiments, notes and collaborators.

    Args:
        project_id: Project ID to delete

    Returns:
        True if successful, False otherwise
    """
    logger.info(f"Deleting project | project: {project_id}")
    try:
        send("DELETE", f"/api/projects/{project_id}")
        return True
    except Exception as e:
        st.error(handle_http_error(e, "Delete project", logger))
    return False


def get_collaborators(project_id: int) -> List[Dict]:
    try:
        return fetch(f"/api/projects/{project_id}/collaborators")
    except Exception as e:
        st.error(handle_http_error(e, "Fetch collaborators", logger))
    return []


def add_collaborator(project_id: int, user_id: int, role: str) -> bool:
    try:
        send("POST", f"/api/projects/{project_id}/collaborators", json={"user_id": user_id, "role": role})
        return True
    except Exception as e:
        st.error(handle_http_error(e, "Add collaborator", logger))
    return False


def update_collaborator(project_id: int, user_id: int, role: str) -> bool:
    try:
        send("PUT", f"/api/projects/{project_id}/collaborators/{user_id}", json={"role": role})
        return True
    except Exception as e:
        st.error(handle_http_error(e, "Change collaborator role", logger))
    return False


def remove_collaborator(project_id: int, user_id: int) -> bool:
    try:
        send("DELETE", f"/api/projects/{project_id}/collaborators/{user_id}")
        return True
    except Exception as e:
        st.error(handle_http_error(e, "Remove collaborator", logger))
    return False


def get_experiments(project_id: int) -> List[Dict]:
    try:
        return fetch(f"/api/experiments/project/{project_id}")
    except Exception as e:
        st.error(handle_http_error(e, "Fetch experiments", logger))
    return []


def create_experiment(project_id: int, name: str, description: str = "") -> Optional[Dict]:
    try:
        return send(
            "POST", "/api/experiments",
            json={"name": name, "description": description or None, "project_id": project_id},
        )
    except Exception as e:
        st.error(handle_http_error(e, "Experiment creation", logger))
    return None


def update_experiment(experiment_id: int, name: str, description: str) -> Optional[Dict]:
    try:
        return send("PUT", f"/api/experiments/{experiment_id}", json={"name": name, "description": description})
    except Exception as e:
        st.error(handle_http_error(e, "Update experiment", logger))
    return None


def delete_experiment(experiment_id: int) -> bool:
    try:
        send("DELETE", f"/api/experiments/{experiment_id}")
        return True
    except Exception as e:
        st.error(handle_http_error(e, "Delete experiment", logger))
    return False
