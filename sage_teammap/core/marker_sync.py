"""Marker synchronization - rebuild the surface markers from the roster.

Every pass is a full teardown and rebuild:
1. Skip if the surface is not ready (the pass stays pending)
2. Remove every rendered marker
3. For each member with valid coordinates: build glyph, popup, tooltip,
   hover and click handlers, then register the marker under the member id
4. Exactly one renderable member: jump the camera to it at the focus zoom

After a pass the set of marker ids equals the set of ids of members with
valid coordinates. Duplicate ids are rejected explicitly: the earliest record
(roster order) keeps its marker and later ones are reported.

SyncScheduler serializes passes. Requests arriving while a pass runs, or
before the surface is ready, are coalesced so only the latest roster is
synchronized.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from sage_teammap.constants import MapConfig
from sage_teammap.core.lifecycle import SurfaceLifecycle
from sage_teammap.core.surface import MapSurface
from sage_teammap.model.marker import MemberMarker
from sage_teammap.model.marker_content import build_glyph, build_popup_html, build_tooltip
from sage_teammap.model.team_member import TeamMember

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Outcome of one synchronization pass.

    Attributes:
        rendered_ids: Member ids with a marker after the pass, in roster order
        excluded_ids: Members without valid coordinates
        duplicate_ids: Ids that appeared more than once (later records dropped)
        removed: Markers torn down at the start of the pass
        skipped: Reason the pass did nothing, None if it ran
    """

    rendered_ids: list[str] = field(default_factory=list)
    excluded_ids: list[str] = field(default_factory=list)
    duplicate_ids: list[str] = field(default_factory=list)
    removed: int = 0
    skipped: str | None = None

    @property
    def ran(self) -> bool:
        return self.skipped is None


def dedupe_members(members: Sequence[TeamMember]) -> tuple[list[TeamMember], list[str]]:
    """Keep the first record per id. Returns (unique members, duplicate ids)."""
    seen: set[str] = set()
    unique: list[TeamMember] = []
    duplicates: list[str] = []
    for member in members:
        if member.id in seen:
            if member.id not in duplicates:
                duplicates.append(member.id)
            continue
        seen.add(member.id)
        unique.append(member)
    return unique, duplicates


class MarkerSynchronizer:
    """Reconciles the roster with the markers of the lifecycle's surface.

    Attributes:
        lifecycle: Owner of the surface; passes only run when it is ready
        on_select: Selection entry point called with the member id on marker click
    """

    def __init__(self, lifecycle: SurfaceLifecycle, on_select: Callable[[str], None]) -> None:
        self.lifecycle = lifecycle
        self.on_select = on_select

    def sync(self, members: Sequence[TeamMember]) -> SyncReport:
        """Run one full-rebuild pass."""
        surface = self.lifecycle.surface
        if surface is None or not self.lifecycle.is_ready:
            logger.debug("[SYNC] Surface not ready, deferring")
            return SyncReport(skipped="surface_not_ready")

        removed = surface.clear_markers()

        if not members:
            logger.info(f"[SYNC] Empty roster, removed {removed} markers")
            return SyncReport(removed=removed)

        unique, duplicates = dedupe_members(members)
        if duplicates:
            logger.warning(f"[SYNC] Duplicate member ids rejected (first record kept): {duplicates}")

        report = SyncReport(duplicate_ids=duplicates, removed=removed)
        renderable: list[TeamMember] = []
        for member in unique:
            if not member.has_coordinates:
                report.excluded_ids.append(member.id)
                continue
            surface.add_marker(self._build_marker(member=member, surface=surface))
            renderable.append(member)
            report.rendered_ids.append(member.id)

        if report.excluded_ids:
            logger.info(f"[SYNC] {len(report.excluded_ids)} members without valid coordinates: {report.excluded_ids}")

        if len(renderable) == 1:
            lat, lon = renderable[0].lat_lon
            surface.set_view(lat=lat, lon=lon, zoom=MapConfig.FOCUS_ZOOM)

        logger.info(f"[SYNC] Rendered {len(report.rendered_ids)} markers (removed {removed})")
        return report

    def _build_marker(self, member: TeamMember, surface: MapSurface) -> MemberMarker:
        """Marker with content and the click handler for one member."""
        lat, lon = member.lat_lon

        def handle_click(member_id: str) -> None:
            surface.open_popup(member_id)
            self.on_select(member_id)

        return MemberMarker(
            member_id=member.id,
            lat=lat,
            lon=lon,
            name=member.name,
            role=member.role,
            glyph=build_glyph(member),
            popup_html=build_popup_html(member),
            tooltip=build_tooltip(member),
            on_click=handle_click,
        )


class SyncScheduler:
    """Serializes synchronization passes with latest-wins coalescing.

    Example:
        scheduler = SyncScheduler(synchronizer)
        scheduler.request(members)  # runs now if the surface is ready
        lifecycle.create(container)
        scheduler.flush()  # runs the pending roster
    """

    def __init__(self, synchronizer: MarkerSynchronizer) -> None:
        self.synchronizer = synchronizer
        self.passes_run = 0
        self.last_report: SyncReport | None = None
        self._pending: list[TeamMember] | None = None
        self._running = False

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def request(self, members: Sequence[TeamMember]) -> SyncReport | None:
        """Queue a roster (replacing any queued one) and try to flush."""
        self._pending = list(members)
        return self.flush()

    def flush(self) -> SyncReport | None:
        """Run pending passes until none are left. Returns the last report."""
        if self._running:
            logger.debug("[SYNC] Pass in progress, request coalesced")
            return None
        if self._pending is None:
            return None
        if not self.synchronizer.lifecycle.is_ready:
            logger.debug("[SYNC] Surface not ready, keeping pending roster")
            return None

        self._running = True
        try:
            while self._pending is not None:
                members, self._pending = self._pending, None
                self.last_report = self.synchronizer.sync(members)
                self.passes_run += 1
        finally:
            self._running = False
        return self.last_report

    def reset(self) -> None:
        """Drop any pending roster (on unmount)."""
        self._pending = None
        self.last_report = None
