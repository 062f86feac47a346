"""Tests for marker synchronization.

Tests: MarkerSynchronizer, SyncScheduler, dedupe_members
Focus: Marker ids always equal the ids of members with valid coordinates,
       full rebuild idempotence, readiness gating, latest-wins coalescing
"""

from dataclasses import replace

import pytest

from sage_teammap.constants import MapConfig
from sage_teammap.core.lifecycle import SurfaceLifecycle
from sage_teammap.core.marker_sync import MarkerSynchronizer, SyncReport, SyncScheduler, dedupe_members
from sage_teammap.core.surface import MapContainer
from sage_teammap.model.team_member import TeamMember


@pytest.fixture
def selected() -> list[str]:
    """Records every member id passed to the selection entry point."""
    return []


@pytest.fixture
def synchronizer(ready_lifecycle: SurfaceLifecycle, selected: list[str]) -> MarkerSynchronizer:
    return MarkerSynchronizer(lifecycle=ready_lifecycle, on_select=selected.append)


def _renderable_ids(members: list[TeamMember]) -> set[str]:
    return {m.id for m in members if m.has_coordinates}


class TestSyncCorrespondence:
    """After a pass, marker ids equal ids of members with coordinates."""

    def test_markers_match_renderable_members(
        self, synchronizer: MarkerSynchronizer, roster: list[TeamMember]
    ) -> None:
        report = synchronizer.sync(roster)

        surface = synchronizer.lifecycle.surface
        assert surface is not None
        assert surface.marker_ids == _renderable_ids(roster)
        assert report.rendered_ids == ["m-ada", "m-grace"]
        assert report.excluded_ids == ["m-remote"]

    def test_member_without_latitude_never_rendered(
        self, synchronizer: MarkerSynchronizer, member_no_location: TeamMember
    ) -> None:
        synchronizer.sync([member_no_location])
        assert synchronizer.lifecycle.surface.marker_ids == set()  # type: ignore[union-attr]

    def test_sync_is_idempotent(self, synchronizer: MarkerSynchronizer, roster: list[TeamMember]) -> None:
        synchronizer.sync(roster)
        first = synchronizer.lifecycle.surface.marker_ids  # type: ignore[union-attr]
        report = synchronizer.sync(roster)
        assert synchronizer.lifecycle.surface.marker_ids == first  # type: ignore[union-attr]
        assert len(synchronizer.lifecycle.surface.markers) == len(first)  # type: ignore[union-attr]
        assert report.removed == len(first)

    def test_roster_change_drops_stale_markers(
        self, synchronizer: MarkerSynchronizer, roster: list[TeamMember], member_ada: TeamMember
    ) -> None:
        synchronizer.sync(roster)
        synchronizer.sync([member_ada])
        assert synchronizer.lifecycle.surface.marker_ids == {"m-ada"}  # type: ignore[union-attr]

    def test_empty_roster_removes_leftover_markers(
        self, synchronizer: MarkerSynchronizer, roster: list[TeamMember]
    ) -> None:
        synchronizer.sync(roster)
        report = synchronizer.sync([])
        assert report.ran
        assert report.removed == 2
        assert synchronizer.lifecycle.surface.marker_ids == set()  # type: ignore[union-attr]

    def test_marker_fields_match_member(
        self, synchronizer: MarkerSynchronizer, member_ada: TeamMember, member_grace: TeamMember
    ) -> None:
        synchronizer.sync([member_ada, member_grace])
        surface = synchronizer.lifecycle.surface
        ada = surface.get_marker("m-ada")  # type: ignore[union-attr]
        grace = surface.get_marker("m-grace")  # type: ignore[union-attr]
        assert ada is not None and grace is not None
        assert (ada.lat, ada.lon) == member_ada.lat_lon
        assert ada.glyph.text == "AL"
        assert grace.glyph.image_url == member_grace.profile_image_url
        assert "Grace Hopper" in grace.tooltip.html


class TestDuplicates:
    """Duplicate ids keep the first record."""

    def test_dedupe_keeps_first(self, member_ada: TeamMember) -> None:
        moved = replace(member_ada, latitude=10.0)
        unique, duplicates = dedupe_members([member_ada, moved, member_ada])
        assert unique == [member_ada]
        assert duplicates == ["m-ada"]

    def test_duplicate_reported_and_first_rendered(
        self, synchronizer: MarkerSynchronizer, member_ada: TeamMember, member_grace: TeamMember
    ) -> None:
        moved = replace(member_ada, latitude=10.0)
        report = synchronizer.sync([member_ada, member_grace, moved])
        assert report.duplicate_ids == ["m-ada"]
        marker = synchronizer.lifecycle.surface.get_marker("m-ada")  # type: ignore[union-attr]
        assert marker is not None and marker.lat == member_ada.latitude


class TestSingleMemberFraming:
    """Camera jumps to a lone renderable member."""

    def test_single_member_centers_at_focus_zoom(
        self, synchronizer: MarkerSynchronizer, member_philadelphia: TeamMember
    ) -> None:
        synchronizer.sync([member_philadelphia])
        camera = synchronizer.lifecycle.surface.camera  # type: ignore[union-attr]
        assert camera.lat_lon == (40.0, -75.0)
        assert camera.zoom == MapConfig.FOCUS_ZOOM
        assert camera.transition_duration_ms == 0

    def test_single_renderable_among_unlocated(
        self, synchronizer: MarkerSynchronizer, member_philadelphia: TeamMember, member_no_location: TeamMember
    ) -> None:
        synchronizer.sync([member_no_location, member_philadelphia])
        camera = synchronizer.lifecycle.surface.camera  # type: ignore[union-attr]
        assert camera.lat_lon == (40.0, -75.0)

    def test_several_members_keep_camera(self, synchronizer: MarkerSynchronizer, roster: list[TeamMember]) -> None:
        synchronizer.sync(roster)
        camera = synchronizer.lifecycle.surface.camera  # type: ignore[union-attr]
        assert camera.lat_lon == (MapConfig.DEFAULT_CENTER_LAT, MapConfig.DEFAULT_CENTER_LON)
        assert camera.zoom == MapConfig.DEFAULT_ZOOM


class TestMarkerClick:
    """Click handler wiring."""

    def test_click_opens_popup_and_selects(
        self, synchronizer: MarkerSynchronizer, roster: list[TeamMember], selected: list[str]
    ) -> None:
        synchronizer.sync(roster)
        surface = synchronizer.lifecycle.surface
        surface.get_marker("m-grace").click()  # type: ignore[union-attr]
        assert surface.open_popup_id == "m-grace"  # type: ignore[union-attr]
        assert selected == ["m-grace"]


class TestReadinessGating:
    """No pass runs against a missing or torn-down surface."""

    def test_sync_before_create_is_skipped(self, lifecycle: SurfaceLifecycle, roster: list[TeamMember]) -> None:
        report = MarkerSynchronizer(lifecycle=lifecycle, on_select=lambda member_id: None).sync(roster)
        assert not report.ran
        assert report.skipped == "surface_not_ready"

    def test_sync_after_destroy_is_skipped(
        self, synchronizer: MarkerSynchronizer, roster: list[TeamMember]
    ) -> None:
        synchronizer.lifecycle.destroy()
        assert not synchronizer.sync(roster).ran


class TestSyncScheduler:
    """Serialized passes with latest-wins coalescing."""

    def test_request_before_ready_waits_for_flush(
        self, lifecycle: SurfaceLifecycle, container: MapContainer, roster: list[TeamMember]
    ) -> None:
        scheduler = SyncScheduler(MarkerSynchronizer(lifecycle=lifecycle, on_select=lambda member_id: None))
        assert scheduler.request(roster) is None
        assert scheduler.has_pending
        assert scheduler.passes_run == 0

        lifecycle.create(container)
        report = scheduler.flush()

        assert report is not None and report.ran
        assert not scheduler.has_pending
        assert lifecycle.surface.marker_ids == _renderable_ids(roster)  # type: ignore[union-attr]

    def test_requests_before_ready_coalesce_to_latest(
        self,
        lifecycle: SurfaceLifecycle,
        container: MapContainer,
        roster: list[TeamMember],
        member_philadelphia: TeamMember,
    ) -> None:
        scheduler = SyncScheduler(MarkerSynchronizer(lifecycle=lifecycle, on_select=lambda member_id: None))
        scheduler.request(roster)
        scheduler.request([member_philadelphia])

        lifecycle.create(container)
        scheduler.flush()

        assert scheduler.passes_run == 1
        assert lifecycle.surface.marker_ids == {"m-philly"}  # type: ignore[union-attr]

    def test_request_during_pass_runs_after_it(
        self, ready_lifecycle: SurfaceLifecycle, roster: list[TeamMember], member_philadelphia: TeamMember
    ) -> None:
        """A roster arriving while a pass runs is coalesced and applied right after it."""
        synchronizer = MarkerSynchronizer(lifecycle=ready_lifecycle, on_select=lambda member_id: None)
        scheduler = SyncScheduler(synchronizer)
        original_sync = synchronizer.sync

        def sync_with_arrival(members: list[TeamMember]) -> SyncReport:
            report = original_sync(members)
            if scheduler.passes_run == 0:
                assert scheduler.request([member_philadelphia]) is None
            return report

        synchronizer.sync = sync_with_arrival  # type: ignore[method-assign]
        scheduler.request(roster)

        assert scheduler.passes_run == 2
        assert ready_lifecycle.surface.marker_ids == {"m-philly"}  # type: ignore[union-attr]

    def test_reset_drops_pending(self, lifecycle: SurfaceLifecycle, roster: list[TeamMember]) -> None:
        scheduler = SyncScheduler(MarkerSynchronizer(lifecycle=lifecycle, on_select=lambda member_id: None))
        scheduler.request(roster)
        scheduler.reset()
        assert not scheduler.has_pending
        assert scheduler.flush() is None
