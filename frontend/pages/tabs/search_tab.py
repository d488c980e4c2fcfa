"""
Search tab component.
"""
import streamlit as st
from api.search import search


def render_search_tab():
    st.subheader("Search")
    query = st.text_input(
        "Search notes, projects and experiments",
        value=st.session_state.get("last_search_query", ""),
        key="search_query",
    )
    if st.button("Search", type="primary") or (query and query != st.session_state.get("last_search_query")):
        st.session_state["last_search_query"] = query
        st.session_state["search_results"] = search(query) if query.strip() else None

    results = st.session_state.get("search_results")
    if not results:
        return
    if not any(results.values()):
        st.info("Nothing matched.")
        return

    if results["projects"]:
        st.markdown("#### 📁 Projects")
        for project in results["projects"]:
            st.write(f"**{project['name']}** · {project.get('description') or ''}")
    if results["experiments"]:
        st.markdown("#### 🧪 Experiments")
        for experiment in results["experiments"]:
            st.write(f"**{experiment['name']}** · {experiment.get('description') or ''}")
    if results["notes"]:
        st.markdown("#### 📝 Notes")
        for note in results["notes"]:
            with st.expander(note["title"]):
                st.html(note.get("content") or "")
