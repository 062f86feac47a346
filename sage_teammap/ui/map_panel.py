"""Streamlit rendering of the team map.

Renders one TeamMapView:
- Map slot: loading / error / empty messages, otherwise the deck component
- Popup card for the marker whose popup is open
- Roster list whose entries select members (inbound selection)
- Detail card of the selected member (outbound selection)

Each Streamlit session keeps its own views in st.session_state, keyed by slot.
"""

import logging
import traceback

import streamlit as st
from streamlit_deckgl import st_deckgl  # type: ignore[import-untyped]

from sage_teammap.constants import EventConfig, MapConfig, PopupConfig
from sage_teammap.core.directory import TeamDirectory
from sage_teammap.core.surface import MapContainer, MapSurface
from sage_teammap.model.marker_content import build_popup_html
from sage_teammap.model.message import (
    DirectoryErrorMessage,
    EmptyDirectoryMessage,
    MapLoadingMessage,
    MapResetMessage,
    MemberNotOnMapMessage,
)
from sage_teammap.ui.team_map_view import TeamMapView

logger = logging.getLogger(__name__)

VIEWS_KEY = "team_map_views"


# =============================================================================
# SESSION STATE
# =============================================================================


def get_team_map_view(slot: str, directory: TeamDirectory, engine: str = MapConfig.DEFAULT_ENGINE) -> TeamMapView:
    """Return the view stored for slot, creating it on first use.

    Switching engine unmounts the old view (destroying its surface) and creates
    a fresh one that keeps the loaded roster.
    """
    views: dict[str, TeamMapView] = st.session_state.setdefault(VIEWS_KEY, {})
    view = views.get(slot)
    if view is not None and view.engine == engine:
        return view

    new_view = TeamMapView(directory=directory, engine=engine, probe_basemap=MapConfig.PROBE_BASEMAP)
    if view is not None:
        logger.info(f"[VIEW] Switching slot {slot} from {view.engine} to {engine}")
        view.unmount()
        if view.directory_state.loaded:
            new_view.directory_state = view.directory_state
    views[slot] = new_view
    return new_view


def drop_team_map_view(slot: str) -> None:
    """Unmount and forget the view of slot (no-op if none)."""
    views: dict[str, TeamMapView] = st.session_state.get(VIEWS_KEY, {})
    view = views.pop(slot, None)
    if view is not None:
        view.unmount()


# =============================================================================
# MAP SLOT
# =============================================================================


def render_team_map(view: TeamMapView, container: MapContainer) -> None:
    """Render the map slot. Errors reset the view instead of breaking the page."""
    try:
        _render_team_map_inner(view=view, container=container)
    except Exception as e:
        error_msg = f"{type(e).__name__}: {e}"
        full_traceback = traceback.format_exc()
        logger.error(f"[RENDER] Team map error caught: {error_msg}\n{full_traceback}")

        st.error(f"⚠️ [RENDER] Something went wrong: {error_msg}")

        # Fresh surface on the next run; roster is kept
        view.unmount()
        MapResetMessage().display()

        if st.button("🔄 Reset and Continue", type="primary", key=f"{container.key}_reset"):
            st.rerun()


def _render_team_map_inner(view: TeamMapView, container: MapContainer) -> None:
    state = view.directory_state

    # A fetch left in flight by an earlier run is retried, never shown as empty
    if state.needs_load or state.is_loading:
        MapLoadingMessage().display()
        with st.spinner("Loading team members..."):
            view.refresh()
        st.rerun()  # Raises StopExecution, never returns

    if state.error is not None:
        DirectoryErrorMessage(detail=str(state.error)).display()
        if st.button("🔄 Retry", key=f"{container.key}_retry"):
            view.refresh()
            st.rerun()
        return

    surface = view.mount(container)
    view.tick()

    if not surface.marker_ids:
        EmptyDirectoryMessage(total_members=len(state.members)).display()

    logger.info(f"[RENDER] Team map: {view!r}")

    col_map, col_popup = st.columns([3, 1])
    with col_map:
        _render_deck(view=view, surface=surface)
    with col_popup:
        _render_popup_card(surface=surface)


def _render_deck(view: TeamMapView, surface: MapSurface) -> None:
    """Render the deck component and route its events to the view."""
    # Remount on every camera command so the new view state is applied
    key = f"{surface.component_key}_cam{surface.camera.revision}"
    view.event_detector.bind(key)
    event = st_deckgl(surface.to_deck(), key=key, height=surface.container.height_px, events=EventConfig.EVENTS)

    marker_event = view.event_detector.detect(event)
    if marker_event is None:
        return
    view.handle_marker_event(marker_event)  # Selection transitions rerun the script


def _render_popup_card(surface: MapSurface) -> None:
    """Card with the open popup, styled like the marker popup."""
    if surface.open_popup_id is None:
        st.caption("Click a marker to see details.")
        return

    marker = surface.get_marker(surface.open_popup_id)
    if marker is None:
        surface.close_popup()
        return

    st.markdown(
        f'<div style="max-width: {PopupConfig.MAX_WIDTH_PX}px;">{marker.popup_html}</div>',
        unsafe_allow_html=True,
    )
    if st.button("✖️ Close", key=f"{surface.component_key}_close_popup", width="stretch"):
        surface.close_popup()
        st.rerun()


# =============================================================================
# ROSTER AND DETAIL
# =============================================================================


def render_roster(view: TeamMapView) -> None:
    """List of members; clicking one selects it and flies the map there."""
    members = view.members
    if not members:
        return

    st.subheader(f"👥 Team ({len(members)})")
    for member in members:
        label = f"{member.name} · {member.role}" if member.role else member.name
        is_selected = member.id == view.selected_id
        if st.button(
            label,
            key=f"roster_{view.engine}_{member.id}",
            type="primary" if is_selected else "secondary",
            width="stretch",
            help=member.location or None,
        ):
            if not view.is_on_map(member.id):
                MemberNotOnMapMessage(name=member.name).display()
            view.select(member.id)  # Triggers st.rerun() via listener


def render_member_detail(view: TeamMapView) -> None:
    """Detail card of the selected member."""
    member = view.selected_member
    if member is None:
        st.caption("No team member selected.")
        return

    st.markdown(build_popup_html(member), unsafe_allow_html=True)
    if member.has_coordinates:
        lat, lon = member.lat_lon
        st.caption(f"📍 {lat:.4f}, {lon:.4f}")
