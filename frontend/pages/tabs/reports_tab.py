"""
Reports tab: generate PDF reports from notes, download, email and delete them.
"""
import streamlit as st
from api.notes import get_notes
from api.reports import delete_report, download_report, email_report, generate_report, get_reports
from components.project_picker import select_experiment, select_project


def render_reports_tab():
    render_generate_report()
    st.subheader("Reports")
    reports = get_reports()
    if not reports:
        st.info("No reports yet.")
        return
    for report in reports:
        render_report_card(report)


def render_generate_report():
    with st.expander("➕ Generate report"):
        project = select_project("report_project")
        if not project:
            return
        experiment = select_experiment(project["id"], key=f"report_experiment_{project['id']}")
        experiment_id = experiment["id"] if experiment else None
        notes = get_notes(project["id"], experiment_id)
        if not notes:
            st.info("There are no notes to include.")
            return

        titles = {n["id"]: n["title"] for n in notes}
        note_ids = st.multiselect(
            "Notes (in report order)", options=list(titles), default=list(titles), format_func=titles.get,
            key=f"report_notes_{project['id']}_{experiment_id}",
        )
        title = st.text_input("Title", placeholder=f"{project['name']} Report", key="report_title")
        description = st.text_area("Description", key="report_description")
        options = render_report_options()

        if st.button("Generate PDF", type="primary"):
            if not note_ids:
                st.warning("Select at least one note.")
            elif generate_report(project["id"], note_ids, title, description, experiment_id, options):
                st.rerun()


def render_report_options():
    st.markdown("**Layout**")
    col1, col2, col3 = st.columns(3)
    with col1:
        page_size = st.selectbox("Page size", ["a4", "letter"], key="report_page_size")
        orientation = st.selectbox("Orientation", ["portrait", "landscape"], key="report_orientation")
    with col2:
        font_family = st.selectbox("Font", ["helvetica", "times", "courier"], key="report_font")
        primary_color = st.color_picker("Primary color", "#4285F4", key="report_primary")
    with col3:
        include_images = st.checkbox("Include images", value=True, key="report_images")
        show_dates = st.checkbox("Show dates", value=True, key="report_dates")
        show_authors = st.checkbox("Show authors", value=True, key="report_authors")
    subtitle = st.text_input("Subtitle", key="report_subtitle")
    footer = st.text_input("Footer text", key="report_footer")
    return {
        "page_size": page_size,
        "orientation": orientation,
        "font_family": font_family,
        "primary_color": primary_color.upper(),
        "include_images": include_images,
        "show_dates": show_dates,
        "show_authors": show_authors,
        "subtitle": subtitle or None,
        "custom_footer": footer or None,
    }


def render_report_card(report):
    size_kb = report["file_size"] / 1024
    with st.expander(f"**{report['title']}** ({size_kb:.0f} KB)"):
        st.caption(f"Created {report['created_at']}")
        if report.get("description"):
            st.write(report["description"])

        if st.button("Prepare download", key=f"report_fetch_{report['id']}"):
            st.session_state[f"report_pdf_{report['id']}"] = download_report(report["id"])
        pdf = st.session_state.get(f"report_pdf_{report['id']}")
        if pdf:
            st.download_button(
                "⬇️ Download PDF", data=pdf, file_name=report["file_name"], mime="application/pdf",
                key=f"report_save_{report['id']}",
            )

        recipient = st.text_input("Email to", key=f"report_to_{report['id']}")
        message = st.text_area("Message", key=f"report_msg_{report['id']}")
        if st.button("📧 Send", key=f"report_send_{report['id']}"):
            if recipient.strip():
                email_report(report["id"], recipient.strip(), message=message)
            else:
                st.warning("Enter a recipient address.")

        if st.button("🗑️ Delete report", key=f"report_delete_{report['id']}"):
            if delete_report(report["id"]):
                st.session_state.pop(f"report_pdf_{report['id']}", None)
                st.rerun()
