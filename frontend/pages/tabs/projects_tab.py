"""
Projects tab: projects, their collaborators and experiments.
"""
import streamlit as st
import time
from api.projects import (
    COLLABORATOR_ROLES,
    add_collaborator,
    create_experiment,
    create_project,
    delete_experiment,
    delete_project,
    get_collaborators,
    get_experiments,
    get_projects,
    remove_collaborator,
    update_collaborator,
    update_experiment,
    update_project,
)
from api.users import get_users, user_label
from core.session import get_current_user, is_admin


def render_projects_tab():
    """Render the projects list tab"""
    render_create_project()

    st.subheader("Your Projects")
    projects = get_projects()
    if not projects:
        st.info("You don't have any projects yet. Create one!")
        return

    users = {u["id"]: u for u in get_users()}
    for project in projects:
        render_project_card(project, users)


def render_create_project():
    with st.expander("➕ New project"):
        name = st.text_input("Project name", key="new_project_name")
        description = st.text_area("Description", key="new_project_description")
        if st.button("Create Project", type="primary"):
            if name.strip():
                if create_project(name.strip(), description):
                    st.rerun()
            else:
                st.warning("Project name cannot be empty.")


def render_project_card(project, users):
    """Render a single project card"""
    owner = users.get(project["owner_id"])
    can_manage = is_admin() or project["owner_id"] == get_current_user().get("id")

    with st.expander(f"**{project['name']}** (ID: {project['id']})"):
        st.write(f"**Description:** {project.get('description') or 'None'}")
        st.caption(f"Owner: {user_label(owner) if owner else project['owner_id']} | Updated: {project['updated_at']}")

        experiments_col, people_col = st.columns(2)
        with experiments_col:
            render_experiments(project)
        with people_col:
            render_collaborators(project, users, can_manage)

        if can_manage:
            render_edit_section(project)
            render_delete_section(project)


def render_edit_section(project):
    st.markdown("#### ✏️ Edit")
    name = st.text_input("Name", value=project["name"], key=f"edit_name_{project['id']}")
    description = st.text_area(
        "Description", value=project.get("description") or "", key=f"edit_desc_{project['id']}"
    )
    if st.button("Save", key=f"save_project_{project['id']}"):
        if update_project(project["id"], name.strip(), description):
            st.rerun()


def render_experiments(project):
    st.markdown("#### 🧪 Experiments")
    experiments = get_experiments(project["id"])
    for experiment in experiments:
        with st.container(border=True):
            st.write(f"**{experiment['name']}**")
            if experiment.get("description"):
                st.caption(experiment["description"])
            if st.toggle("Edit", key=f"exp_edit_toggle_{experiment['id']}"):
                name = st.text_input("Name", value=experiment["name"], key=f"exp_name_{experiment['id']}")
                description = st.text_area(
                    "Description", value=experiment.get("description") or "", key=f"exp_desc_{experiment['id']}"
                )
                save_col, delete_col = st.columns(2)
                with save_col:
                    if st.button("Save", key=f"exp_save_{experiment['id']}"):
                        if update_experiment(experiment["id"], name.strip(), description):
                            st.rerun()
                with delete_col:
                    if st.button("🗑️ Delete", key=f"exp_delete_{experiment['id']}"):
                        if delete_experiment(experiment["id"]):
                            st.rerun()
    if not experiments:
        st.caption("No experiments yet.")

    name = st.text_input("New experiment", key=f"new_exp_{project['id']}")
    if st.button("Add experiment", key=f"add_exp_{project['id']}"):
        if name.strip():
            if create_experiment(project["id"], name.strip()):
                st.rerun()
        else:
            st.warning("Experiment name cannot be empty.")


def render_collaborators(project, users, can_manage):
    st.markdown("#### 👥 Collaborators")
    collaborators = get_collaborators(project["id"])
    for collaborator in collaborators:
        member = collaborator.get("user") or users.get(collaborator["user_id"]) or {"username": collaborator["user_id"]}
        label_col, role_col, remove_col = st.columns([2, 2, 1])
        with label_col:
            st.write(user_label(member))
        with role_col:
            if can_manage:
                role = st.selectbox(
                    "Role",
                    options=COLLABORATOR_ROLES,
                    index=COLLABORATOR_ROLES.index(collaborator["role"]),
                    key=f"collab_role_{project['id']}_{collaborator['user_id']}",
                    label_visibility="collapsed",
                )
                if role != collaborator["role"]:
                    if update_collaborator(project["id"], collaborator["user_id"], role):
                        st.rerun()
            else:
                st.write(collaborator["role"])
        with remove_col:
            if can_manage and st.button("✗", key=f"collab_remove_{project['id']}_{collaborator['user_id']}"):
                if remove_collaborator(project["id"], collaborator["user_id"]):
                    st.rerun()
    if not collaborators:
        st.caption("Not shared with anyone.")

    if not can_manage:
        return
    taken = {c["user_id"] for c in collaborators} | {project["owner_id"]}
    candidates = [u for u in users.values() if u["id"] not in taken]
    if not candidates:
        return
    user_id = st.selectbox(
        "Add collaborator",
        options=[u["id"] for u in candidates],
        format_func=lambda uid: user_label(users[uid]),
        key=f"collab_new_user_{project['id']}",
    )
    role = st.selectbox("As", options=COLLABORATOR_ROLES, key=f"collab_new_role_{project['id']}")
    if st.button("Share", key=f"collab_add_{project['id']}"):
        if add_collaborator(project["id"], user_id, role):
            st.rerun()


def render_delete_section(project):
    """Render delete button and confirmation"""
    st.divider()
    col1, col2 = st.columns([3, 1])
    with col2:
        if st.button("🗑️ Delete", key=f"delete_project_{project['id']}", type="secondary"):
            st.session_state[f'confirm_delete_{project["id"]}'] = True
            st.rerun()

    if st.session_state.get(f'confirm_delete_{project["id"]}', False):
        st.warning(f"⚠️ Are you sure you want to delete **{project['name']}**?")
        st.write("This will permanently delete:")
        st.write("- All experiments and notes, with their attachments")
        st.write("- All collaborator access")

        confirm_col1, confirm_col2, _ = st.columns([1, 1, 2])
        with confirm_col1:
            if st.button("✓ Yes, Delete", key=f"confirm_yes_{project['id']}", type="primary"):
                if delete_project(project['id']):
                    st.success(f"Project '{project['name']}' deleted successfully!")
                    st.session_state.pop(f'confirm_delete_{project["id"]}', None)
                    time.sleep(1)
                    st.rerun()
        with confirm_col2:
            if st.button("✗ Cancel", key=f"confirm_no_{project['id']}"):
                st.session_state.pop(f'confirm_delete_{project["id"]}', None)
                st.rerun()
