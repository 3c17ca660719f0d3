"""
CourseGrid - Curriculum Progress Grid

Streamlit application for tracking completed courses over a prerequisite
grid. Completing a course unlocks its dependents; un-completing it also
un-completes every course that relied on it.

Usage:
    streamlit run app.py
"""

import logging

import streamlit as st

from coursegrid.grid import (
    CompletionStore,
    CurriculumError,
    PrerequisiteEngine,
    load_graph,
)
from coursegrid.schemas import ItemStatus
from coursegrid.utils import configure_logging, load_settings
from coursegrid.viewer import (
    get_status_indicator,
    render_progress_header,
    render_requirements,
    term_label,
)


logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

st.set_page_config(
    page_title="CourseGrid",
    page_icon="🎓",
    layout="wide",
    initial_sidebar_state="expanded",
)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "settings" not in st.session_state:
        st.session_state.settings = load_settings()
        configure_logging(st.session_state.settings.log_level)

    if "engine" not in st.session_state:
        settings = st.session_state.settings
        try:
            graph = load_graph(settings.curriculum_path)
        except (FileNotFoundError, CurriculumError) as e:
            logger.error(f"Could not load curriculum: {e}")
            st.session_state.engine = None
            st.session_state.load_error = str(e)
        else:
            store = CompletionStore(settings.progress_db, key=settings.storage_key)
            engine = PrerequisiteEngine(graph, store)
            engine.initialize()
            st.session_state.engine = engine

    if "last_retracted" not in st.session_state:
        st.session_state.last_retracted = []


# -----------------------------------------------------------------------------
# Dialog: Missing Prerequisites
# -----------------------------------------------------------------------------

@st.dialog("Missing prerequisites")
def show_missing_prerequisites(item_id: str):
    """List the unmet prerequisites of a locked course."""
    engine = st.session_state.engine
    item = engine.graph.get(item_id)
    missing = engine.missing_prerequisites(item_id)
    st.markdown(render_requirements(item.name, missing), unsafe_allow_html=True)
    if st.button("Close", use_container_width=True):
        st.rerun()


# -----------------------------------------------------------------------------
# Sidebar: Progress and Reset
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with progress summary and reset control."""
    st.sidebar.title("🎓 CourseGrid")

    engine = st.session_state.engine
    if not engine:
        st.sidebar.error("Curriculum not loaded.")
        return

    summary = engine.progress_summary()
    st.sidebar.markdown(render_progress_header(summary), unsafe_allow_html=True)
    st.sidebar.progress(summary.completion_percent / 100)

    st.sidebar.divider()
    st.sidebar.subheader("By term")
    for term in summary.terms:
        st.sidebar.markdown(f"{term_label(term.term)}: {term.completed}/{term.total}")

    st.sidebar.divider()
    st.sidebar.subheader("Reset")
    confirmed = st.sidebar.checkbox(
        "I understand this erases all my progress and cannot be undone",
        key="reset_confirmed",
    )
    if st.sidebar.button("Reset progress", disabled=not confirmed, use_container_width=True):
        engine.reset(confirmed)
        st.session_state.last_retracted = []
        del st.session_state["reset_confirmed"]
        st.rerun()


# -----------------------------------------------------------------------------
# Main Content: Grid
# -----------------------------------------------------------------------------

def handle_click(item_id: str):
    """Toggle an unlocked course or explain why a locked one is unavailable."""
    engine = st.session_state.engine
    if engine.get_status(item_id) == ItemStatus.LOCKED:
        show_missing_prerequisites(item_id)
        return

    result = engine.toggle(item_id)
    st.session_state.last_retracted = result.retracted
    st.rerun()


def render_grid_view():
    """Render one column per term with a button per course."""
    engine = st.session_state.engine
    if not engine:
        st.error(f"Could not load the curriculum: {st.session_state.get('load_error', '')}")
        st.info("Set COURSEGRID_CURRICULUM to a YAML or JSON curriculum file.")
        return

    st.title(engine.graph.title)

    # Shown once, on the rerun that follows the toggle
    retracted = st.session_state.last_retracted
    st.session_state.last_retracted = []
    if retracted:
        names = [engine.graph.name_of(i) or i for i in retracted]
        st.warning(f"Also un-completed: {', '.join(names)}")

    statuses = engine.derive_all()
    terms = engine.graph.terms()
    columns = st.columns(len(terms)) if terms else []

    for column, term in zip(columns, terms):
        with column:
            st.markdown(f"**{term_label(term)}**")
            for item in engine.graph.items_for_term(term):
                status = statuses[item.id]
                label = f"{get_status_indicator(status)} {item.name}"
                if st.button(
                    label,
                    key=f"item_{item.id}",
                    type="primary" if status == ItemStatus.COMPLETED else "secondary",
                    help=item.id,
                    use_container_width=True,
                ):
                    handle_click(item.id)


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()
    render_grid_view()


if __name__ == "__main__":
    main()
