"""
Calendar tab: a plain list of upcoming events with create/edit/delete.
"""
from datetime import date, datetime, time, timedelta

import streamlit as st
from api.calendar import create_event, delete_event, get_events, update_event
from api.projects import get_projects
from api.users import get_users, user_label
from core.session import get_current_user, is_admin

STATUSES = ["confirmed", "tentative", "cancelled"]
RECURRENCES = ["none", "daily", "weekly", "monthly", "yearly"]


def render_calendar_tab():
    today = date.today()
    start_col, end_col = st.columns(2)
    with start_col:
        start = st.date_input("From", value=today, key="cal_from")
    with end_col:
        end = st.date_input("To", value=today + timedelta(days=30), key="cal_to")

    users = {u["id"]: u for u in get_users()}
    projects = {p["id"]: p for p in get_projects()}
    render_new_event(users, projects)

    events = get_events(datetime.combine(start, time.min), datetime.combine(end, time.max))
    if not events:
        st.info("No events in this range.")
        return
    for event in events:
        render_event(event, users, projects)


def _event_form(prefix, users, projects, event=None):
    event = event or {}
    start = datetime.fromisoformat(event["start_date"]) if event else datetime.combine(date.today(), time(9))
    end = datetime.fromisoformat(event["end_date"]) if event else start + timedelta(hours=1)

    title = st.text_input("Title", value=event.get("title", ""), key=f"{prefix}_title")
    location = st.text_input("Location", value=event.get("location") or "", key=f"{prefix}_location")
    description = st.text_area("Description", value=event.get("description") or "", key=f"{prefix}_desc")
    all_day = st.checkbox("All day", value=event.get("all_day", False), key=f"{prefix}_all_day")

    col1, col2 = st.columns(2)
    with col1:
        start_day = st.date_input("Start date", value=start.date(), key=f"{prefix}_start_day")
        start_time = st.time_input("Start time", value=start.time(), key=f"{prefix}_start_time", disabled=all_day)
        status = st.selectbox(
            "Status", STATUSES, index=STATUSES.index(event.get("status", "confirmed")), key=f"{prefix}_status"
        )
    with col2:
        end_day = st.date_input("End date", value=end.date(), key=f"{prefix}_end_day")
        end_time = st.time_input("End time", value=end.time(), key=f"{prefix}_end_time", disabled=all_day)
        recurrence = st.selectbox(
            "Repeats", RECURRENCES, index=RECURRENCES.index(event.get("recurrence", "none")), key=f"{prefix}_rec"
        )

    project_options = [None] + list(projects)
    project_id = st.selectbox(
        "Project",
        options=project_options,
        index=project_options.index(event.get("project_id")) if event.get("project_id") in project_options else 0,
        format_func=lambda pid: "(none)" if pid is None else projects[pid]["name"],
        key=f"{prefix}_project",
    )
    attendees = st.multiselect(
        "Attendees",
        options=list(users),
        default=[a for a in event.get("attendees", []) if a in users],
        format_func=lambda uid: user_label(users[uid]),
        key=f"{prefix}_attendees",
    )
    color = st.color_picker("Color", event.get("color", "#4285F4"), key=f"{prefix}_color")

    if all_day:
        start_at, end_at = datetime.combine(start_day, time.min), datetime.combine(end_day, time(23, 59))
    else:
        start_at, end_at = datetime.combine(start_day, start_time), datetime.combine(end_day, end_time)
    return {
        "title": title.strip(),
        "location": location or None,
        "description": description or None,
        "all_day": all_day,
        "start_date": start_at.isoformat(),
        "end_date": end_at.isoformat(),
        "status": status,
        "recurrence": recurrence,
        "project_id": project_id,
        "attendees": attendees,
        "color": color.upper(),
    }


def _check(payload) -> bool:
    if not payload["title"]:
        st.warning("Event title cannot be empty.")
        return False
    if payload["end_date"] < payload["start_date"]:
        st.warning("The event cannot end before it starts.")
        return False
    return True


def render_new_event(users, projects):
    with st.expander("➕ New event"):
        payload = _event_form("cal_new", users, projects)
        if st.button("Create event", type="primary") and _check(payload):
            if create_event(payload):
                st.rerun()


def render_event(event, users, projects):
    creator = users.get(event["creator_id"])
    when = event["start_date"][:10] if event.get("all_day") else f"{event['start_date'][:16]} → {event['end_date'][:16]}"
    with st.expander(f"{when} · **{event['title']}** ({event['status']})"):
        if event.get("location"):
            st.write(f"📍 {event['location']}")
        if event.get("description"):
            st.write(event["description"])
        st.caption(f"Created by {user_label(creator) if creator else event['creator_id']}")
        if event.get("project_id") in projects:
            st.caption(f"Project: {projects[event['project_id']]['name']}")
        if event.get("attendees"):
            st.caption("Attendees: " + ", ".join(user_label(users[a]) for a in event["attendees"] if a in users))

        if not (is_admin() or event["creator_id"] == get_current_user().get("id")):
            return
        if st.toggle("Edit", key=f"cal_edit_{event['id']}"):
            payload = _event_form(f"cal_{event['id']}", users, projects, event)
            save_col, delete_col = st.columns(2)
            with save_col:
                if st.button("Save", key=f"cal_save_{event['id']}", type="primary") and _check(payload):
                    if update_event(event["id"], payload):
                        st.rerun()
            with delete_col:
                if st.button("🗑️ Delete", key=f"cal_delete_{event['id']}"):
                    if delete_event(event["id"]):
                        st.rerun()
