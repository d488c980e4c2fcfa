"""
Notebook tab: notes of a project (optionally narrowed to one experiment) and their attachments.
"""
import streamlit as st
from api.notes import (
    create_note,
    delete_attachment,
    delete_note,
    download_attachment,
    get_attachments,
    get_notes,
    rename_attachment,
    update_note,
    upload_attachment,
)
from api.projects import get_experiments
from components.project_picker import select_experiment, select_project


def render_notes_tab():
    project = select_project("notes_project")
    if not project:
        return
    experiment = select_experiment(project["id"], key=f"notes_experiment_{project['id']}")
    experiment_id = experiment["id"] if experiment else None

    render_new_note(project["id"], experiment_id)

    notes = get_notes(project["id"], experiment_id)
    if not notes:
        st.info("No notes here yet.")
        return
    experiments = {e["id"]: e for e in get_experiments(project["id"])}
    for note in notes:
        render_note(note, experiments)


def render_new_note(project_id, experiment_id):
    with st.expander("➕ New note"):
        title = st.text_input("Title", key="new_note_title")
        content = st.text_area("Content (HTML)", height=200, key="new_note_content")
        if st.button("Save note", type="primary"):
            if not title.strip():
                st.warning("Note title cannot be empty.")
            elif create_note(project_id, title.strip(), content, experiment_id):
                st.rerun()


def render_note(note, experiments):
    experiment = experiments.get(note.get("experiment_id"))
    header = f"**{note['title']}**"
    if experiment:
        header += f" · {experiment['name']}"
    with st.expander(header):
        st.caption(f"Updated {note['updated_at']}")
        st.html(note.get("content") or "<p><em>Empty note</em></p>")

        if st.toggle("Edit", key=f"note_edit_{note['id']}"):
            render_note_editor(note, experiments)

        render_attachments(note)


def render_note_editor(note, experiments):
    title = st.text_input("Title", value=note["title"], key=f"note_title_{note['id']}")
    content = st.text_area("Content (HTML)", value=note.get("content") or "", height=200, key=f"note_body_{note['id']}")
    options = [None] + list(experiments)
    current = note.get("experiment_id")
    experiment_id = st.selectbox(
        "Experiment",
        options=options,
        index=options.index(current) if current in options else 0,
        format_func=lambda eid: "(none)" if eid is None else experiments[eid]["name"],
        key=f"note_exp_{note['id']}",
    )

    save_col, delete_col = st.columns(2)
    with save_col:
        if st.button("Save", key=f"note_save_{note['id']}", type="primary"):
            if update_note(note["id"], title=title.strip(), content=content, experiment_id=experiment_id):
                st.rerun()
    with delete_col:
        if st.button("🗑️ Delete note", key=f"note_delete_{note['id']}"):
            if delete_note(note["id"]):
                st.rerun()


def render_attachments(note):
    st.markdown("**📎 Attachments**")
    for attachment in get_attachments(note["id"]):
        render_attachment(attachment)

    uploaded = st.file_uploader("Attach a file", key=f"upload_{note['id']}")
    if uploaded is not None and st.button("Upload", key=f"upload_btn_{note['id']}"):
        if upload_attachment(note["id"], uploaded):
            st.rerun()


def render_attachment(attachment):
    size_kb = attachment["file_size"] / 1024
    name_col, download_col, rename_col, delete_col = st.columns([3, 1, 2, 1])
    with name_col:
        st.write(f"{attachment['file_name']} ({size_kb:.1f} KB)")
    with download_col:
        if st.button("⬇️", key=f"att_fetch_{attachment['id']}"):
            st.session_state[f"att_data_{attachment['id']}"] = download_attachment(attachment["id"])
        data = st.session_state.get(f"att_data_{attachment['id']}")
        if data:
            st.download_button(
                "Save", data=data, file_name=attachment["file_name"], mime=attachment["file_type"],
                key=f"att_save_{attachment['id']}",
            )
    with rename_col:
        new_name = st.text_input(
            "Rename", value=attachment["file_name"], key=f"att_name_{attachment['id']}", label_visibility="collapsed"
        )
        if new_name.strip() and new_name != attachment["file_name"]:
            if rename_attachment(attachment["id"], new_name.strip()):
                st.rerun()
    with delete_col:
        if st.button("🗑️", key=f"att_delete_{attachment['id']}"):
            if delete_attachment(attachment["id"]):
                st.rerun()
