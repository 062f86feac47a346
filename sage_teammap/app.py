"""SAGE Team Map - Interactive map of where the team members are.

Shows every team member with a location as a marker on a world map. Clicking
a marker (or a roster entry) selects the member, opens the popup card and
flies the map to them.

Run: streamlit run sage_teammap/app.py

Environment:
    SUPABASE_URL / SUPABASE_ANON_KEY: hosted team directory (read-only)
    TEAMMAP_MEMBERS_FILE: JSON roster used when no URL is set
    TEAMMAP_LOG_LEVEL: logging level (default INFO)
"""

import logging
import traceback

import streamlit as st

from sage_teammap.constants import AppConfig, LogConfig, MapConfig
from sage_teammap.core.directory import DirectoryError, DirectorySettings, TeamDirectory, create_directory
from sage_teammap.core.surface import MapContainer
from sage_teammap.ui import (
    TeamMapView,
    get_team_map_view,
    render_member_detail,
    render_roster,
    render_team_map,
)

logging.basicConfig(level=LogConfig.LEVEL, format=LogConfig.FORMAT)
logger = logging.getLogger(__name__)

LAYOUT_PAGE = "Full page"
LAYOUT_EMBED = "Embedded section"
MAP_SLOT = "team_map"


# =============================================================================
# SESSION STATE
# =============================================================================


def init_session_state() -> None:
    """Initialize session state with the directory and sidebar choices."""
    if "directory" not in st.session_state:
        st.session_state.directory = create_directory(DirectorySettings.from_env())

    if "engine" not in st.session_state:
        st.session_state.engine = MapConfig.DEFAULT_ENGINE

    if "layout" not in st.session_state:
        st.session_state.layout = LAYOUT_PAGE


# =============================================================================
# SIDEBAR
# =============================================================================


def render_sidebar() -> dict[str, bool]:
    """Engine, layout and refresh controls. Returns requested actions."""
    with st.sidebar:
        st.header("🗺️ Map")
        st.radio(
            "Rendering engine",
            options=MapConfig.ENGINES,
            format_func=lambda engine: MapConfig.ENGINE_DISPLAY_NAMES[engine],
            key="engine",
            help="Switching engine tears down the current map and builds a fresh one",
        )
        st.radio("Layout", options=[LAYOUT_PAGE, LAYOUT_EMBED], key="layout")
        st.divider()
        refresh = st.button("🔄 Refresh team", width="stretch")
        return {"refresh": refresh}


# =============================================================================
# MAIN
# =============================================================================


def main() -> None:
    """Application entry point."""
    st.set_page_config(page_title=AppConfig.TITLE, page_icon=AppConfig.ICON, layout=AppConfig.LAYOUT)

    try:
        init_session_state()
    except DirectoryError as e:
        logger.error(f"[DIRECTORY] {e}")
        st.error(f"⚠️ {e}")
        return

    try:
        _run_app_ui()
    except Exception as e:
        error_msg = f"{type(e).__name__}: {e}"
        full_traceback = traceback.format_exc()
        logger.error(f"[UI] UI error caught: {error_msg}\n{full_traceback}")

        st.error(f"⚠️ [UI] Something went wrong: {error_msg}")

        if st.button("🔄 Reset and Continue", type="primary"):
            st.rerun()


def _run_app_ui() -> None:
    """Run the main application UI. Separated for error handling wrapper."""
    directory: TeamDirectory = st.session_state.directory
    actions = render_sidebar()

    view = get_team_map_view(slot=MAP_SLOT, directory=directory, engine=st.session_state.engine)
    logger.info(f"[MAIN] Render cycle starting: {view!r}")

    if actions["refresh"]:
        result = view.refresh()
        if result.ok:
            st.toast(f"✅ Loaded {len(result.members)} team members")

    if st.session_state.layout == LAYOUT_EMBED:
        _render_embedded(view=view)
    else:
        _render_page(view=view)


def _render_page(view: TeamMapView) -> None:
    """Full-page map with roster and detail panel."""
    st.title(f"{AppConfig.ICON} {AppConfig.TITLE}")
    st.caption(AppConfig.SUBTITLE)

    container = MapContainer(key=MAP_SLOT, height_px=MapConfig.PAGE_HEIGHT_PX)
    col_map, col_side = st.columns([4, 1])
    with col_map:
        render_team_map(view=view, container=container)
    with col_side:
        render_member_detail(view=view)
        st.divider()
        render_roster(view=view)


def _render_embedded(view: TeamMapView) -> None:
    """Map section as embedded on the landing page."""
    st.markdown(f"**{AppConfig.BADGE}**")
    st.subheader(AppConfig.TITLE)
    st.caption(AppConfig.SUBTITLE)

    container = MapContainer(key=MAP_SLOT, height_px=MapConfig.EMBED_HEIGHT_PX)
    with st.container(border=True):
        render_team_map(view=view, container=container)


if __name__ == "__main__":
    main()
