"""TeamMapView - one mounted team map.

Bundles everything that lives exactly as long as one mounted map:
- SurfaceLifecycle (the map engine instance)
- MarkerSynchronizer + SyncScheduler (roster -> markers)
- SelectionStateMachine + CameraController (marker/roster clicks -> camera)
- DirectoryState (roster and loading/error state)

Nothing here is module-global: each Streamlit session/slot stores its own view
in st.session_state, so two maps (or two tests) never share a surface.

Public API used by the UI layer:
    mount(container) / unmount()
    refresh()  or  begin_fetch() + apply_fetch(ticket, result)
    select(member_id)       inbound selection (roster, other widgets)
    selected_member         outbound last-value selection signal
    handle_marker_event(e)  hover/click events from the deck
    tick()                  run deferred lifecycle calls
"""

import logging

from sage_teammap.constants import MapConfig
from sage_teammap.core.directory import DirectoryState, FetchResult, TeamDirectory
from sage_teammap.core.lifecycle import SurfaceLifecycle
from sage_teammap.core.marker_sync import MarkerSynchronizer, SyncReport, SyncScheduler
from sage_teammap.core.surface import MapContainer, MapSurface
from sage_teammap.model.team_member import TeamMember
from sage_teammap.ui.deck_events import MarkerEvent, MarkerEventDetector, MarkerEventKind
from sage_teammap.ui.selection import CameraController, SelectionStateMachine

logger = logging.getLogger(__name__)


class TeamMapView:
    """Mounted team map view.

    Example:
        view = TeamMapView(directory=directory, engine="tile")
        view.mount(MapContainer(key="team_map", height_px=700))
        view.refresh()
        view.select("member-1")
        view.selected_member  # TeamMember or None
        view.unmount()
    """

    def __init__(
        self,
        directory: TeamDirectory,
        engine: str = MapConfig.DEFAULT_ENGINE,
        probe_basemap: bool = False,
        add_ui_listener: bool = True,
    ) -> None:
        """Initialize view (nothing is mounted yet).

        Args:
            directory: Roster source
            engine: Rendering engine name (MapConfig.ENGINES)
            probe_basemap: Check basemap reachability when the surface is created
            add_ui_listener: Rerun Streamlit after selections (False for tests)
        """
        self.directory = directory
        self.directory_state = DirectoryState()
        self.lifecycle = SurfaceLifecycle(engine=engine, probe_basemap=probe_basemap)
        self.camera = CameraController(lifecycle=self.lifecycle)
        self.selection, self.selection_context = SelectionStateMachine.create(
            camera=self.camera, add_ui_listener=add_ui_listener
        )
        self.synchronizer = MarkerSynchronizer(lifecycle=self.lifecycle, on_select=self.select)
        self.scheduler = SyncScheduler(synchronizer=self.synchronizer)
        self.event_detector = MarkerEventDetector()
        self.mounted = False
        self._fetch_ticket = 0

    # =========================================================================
    # MOUNT / UNMOUNT
    # =========================================================================

    @property
    def engine(self) -> str:
        return self.lifecycle.engine

    @property
    def surface(self) -> MapSurface | None:
        return self.lifecycle.surface

    def mount(self, container: MapContainer) -> MapSurface:
        """Create the surface (idempotent) and synchronize any pending roster.

        A repeated mount with a differently sized container resizes the surface.
        """
        if self.mounted and self.lifecycle.surface is not None:
            self.lifecycle.handle_resize(container)
            return self.lifecycle.surface

        surface = self.lifecycle.create(container)
        self.mounted = True
        if self.directory_state.loaded:
            self.scheduler.request(self.directory_state.members)
        else:
            self.scheduler.flush()
        return surface

    def unmount(self) -> None:
        """Abandon in-flight fetches and destroy the surface."""
        self._fetch_ticket += 1
        self.mounted = False
        self.scheduler.reset()
        self.event_detector.clear()
        self.lifecycle.destroy()
        logger.info("[VIEW] Unmounted")

    def tick(self) -> int:
        """Run due deferred calls (one-shot invalidate)."""
        return self.lifecycle.run_deferred()

    # =========================================================================
    # DATA
    # =========================================================================

    @property
    def members(self) -> list[TeamMember]:
        return self.directory_state.members

    def begin_fetch(self) -> int:
        """Start a fetch. Returns the ticket its result must be applied with."""
        self._fetch_ticket += 1
        self.directory_state.begin_loading()
        return self._fetch_ticket

    def apply_fetch(self, ticket: int, result: FetchResult) -> bool:
        """Apply a fetch result unless the view was unmounted or a newer fetch started."""
        if ticket != self._fetch_ticket:
            logger.info(f"[VIEW] Dropping stale fetch result (ticket {ticket}, current {self._fetch_ticket})")
            return False
        self.directory_state.resolve(result)
        if not result.ok:
            logger.warning(f"[VIEW] Fetch failed: {result.error}")
            return True
        if self.mounted:
            self.scheduler.request(self.directory_state.members)
        return True

    def refresh(self) -> FetchResult:
        """Fetch the roster now and apply it."""
        ticket = self.begin_fetch()
        try:
            result = self.directory.fetch_team_members()
        except Exception as e:
            logger.exception(f"[VIEW] Team directory raised: {type(e).__name__}: {e}")
            result = FetchResult.failure(f"Team directory error: {type(e).__name__}: {e}")
        self.apply_fetch(ticket, result)
        return result

    def sync_now(self) -> SyncReport | None:
        """Request a pass with the current roster (e.g., after a manual reset)."""
        return self.scheduler.request(self.directory_state.members)

    # =========================================================================
    # SELECTION
    # =========================================================================

    def select(self, member_id: str) -> None:
        """Select a member and fly to it. The only inbound selection entry point."""
        self.selection.try_select(member_id)

    @property
    def selected_id(self) -> str | None:
        return self.selection.selected_id

    @property
    def selected_member(self) -> TeamMember | None:
        """Currently selected member (None if nothing selected or no longer in roster)."""
        if self.selected_id is None:
            return None
        return self.directory_state.get(self.selected_id)

    def is_on_map(self, member_id: str) -> bool:
        surface = self.lifecycle.surface
        return surface is not None and surface.get_marker(member_id) is not None

    # =========================================================================
    # MARKER EVENTS
    # =========================================================================

    def handle_marker_event(self, event: MarkerEvent) -> None:
        """Route a deck event to the marker it targets."""
        surface = self.lifecycle.surface
        if surface is None or not self.lifecycle.is_ready:
            logger.debug(f"[VIEW] Ignoring {event.kind.value} event, surface not ready")
            return

        if event.kind is MarkerEventKind.LEAVE:
            surface.hover(None)
            return

        marker = surface.get_marker(event.member_id) if event.member_id else None
        if marker is None:
            logger.debug(f"[VIEW] Event for unknown marker {event.member_id}")
            return

        if event.kind is MarkerEventKind.HOVER:
            surface.hover(marker.member_id)
        elif event.kind is MarkerEventKind.CLICK:
            marker.click()

    def __repr__(self) -> str:
        return (
            f"TeamMapView(engine={self.engine}, mounted={self.mounted}, "
            f"members={len(self.members)}, selected={self.selected_id})"
        )
