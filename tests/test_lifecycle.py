"""Tests for SurfaceLifecycle.

Tests: create/destroy guard, readiness, deferred one-shot invalidate, resize
Focus: At most one live surface per lifecycle, no calls after destroy
"""

from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from sage_teammap.constants import MapConfig
from sage_teammap.core.lifecycle import SurfaceLifecycle
from sage_teammap.core.surface import MapContainer

if TYPE_CHECKING:
    from conftest import FakeClock


class TestCreate:
    """Creation and idempotence."""

    def test_create_makes_ready_surface(self, lifecycle: SurfaceLifecycle, container: MapContainer) -> None:
        assert not lifecycle.is_ready
        surface = lifecycle.create(container)
        assert lifecycle.is_ready
        assert lifecycle.surface is surface
        assert surface.engine == MapConfig.ENGINE_TILE

    def test_create_twice_keeps_single_instance(
        self, lifecycle: SurfaceLifecycle, container: MapContainer
    ) -> None:
        first = lifecycle.create(container)
        second = lifecycle.create(container)
        assert first is second
        assert lifecycle.instances_created == 1
        assert lifecycle.live_instances == 1

    def test_unknown_engine_rejected(self) -> None:
        with pytest.raises(ValueError):
            SurfaceLifecycle(engine="canvas")

    def test_probe_runs_only_when_enabled(self, clock: "FakeClock", container: MapContainer) -> None:
        with patch("sage_teammap.core.surface.MapSurface.probe_basemap", return_value=False) as probe:
            SurfaceLifecycle(probe_basemap=False, clock=clock).create(container)
            probe.assert_not_called()
            lifecycle = SurfaceLifecycle(probe_basemap=True, clock=clock)
            lifecycle.create(container)
            probe.assert_called_once()
        assert lifecycle.is_ready  # unreachable basemap does not block readiness


class TestDeferredInvalidate:
    """One-shot size invalidation after creation."""

    def test_invalidate_runs_once_after_delay(
        self, lifecycle: SurfaceLifecycle, container: MapContainer, clock: "FakeClock"
    ) -> None:
        surface = lifecycle.create(container)
        assert lifecycle.pending_calls == ["invalidate_size"]
        assert lifecycle.run_deferred() == 0

        clock.advance(MapConfig.INVALIDATE_DELAY_S)
        assert lifecycle.run_deferred() == 1
        assert surface.size_revision == 1

        clock.advance(10)
        assert lifecycle.run_deferred() == 0
        assert surface.size_revision == 1

    def test_destroy_cancels_pending_invalidate(
        self, lifecycle: SurfaceLifecycle, container: MapContainer, clock: "FakeClock"
    ) -> None:
        lifecycle.create(container)
        lifecycle.destroy()
        assert lifecycle.pending_calls == []
        clock.advance(10)
        assert lifecycle.run_deferred() == 0


class TestDestroy:
    """Teardown."""

    def test_destroy_releases_surface(self, ready_lifecycle: SurfaceLifecycle) -> None:
        surface = ready_lifecycle.surface
        ready_lifecycle.destroy()
        assert ready_lifecycle.surface is None
        assert not ready_lifecycle.is_ready
        assert ready_lifecycle.live_instances == 0
        assert surface is not None and surface.is_removed

    def test_destroy_without_surface_is_noop(self, lifecycle: SurfaceLifecycle) -> None:
        lifecycle.destroy()
        lifecycle.destroy()
        assert lifecycle.surface is None

    def test_create_after_destroy_is_independent(
        self, ready_lifecycle: SurfaceLifecycle, container: MapContainer
    ) -> None:
        old = ready_lifecycle.surface
        ready_lifecycle.destroy()
        new = ready_lifecycle.create(container)
        assert new is not old
        assert new.marker_ids == set()
        assert ready_lifecycle.instances_created == 2
        assert ready_lifecycle.live_instances == 1


class TestResize:
    """Container size changes."""

    def test_resize_to_new_container(self, ready_lifecycle: SurfaceLifecycle) -> None:
        embed = MapContainer(key="team_map", height_px=MapConfig.EMBED_HEIGHT_PX)
        ready_lifecycle.handle_resize(embed)
        assert ready_lifecycle.surface.container == embed  # type: ignore[union-attr]
        assert ready_lifecycle.surface.size_revision == 1  # type: ignore[union-attr]

    def test_same_container_is_noop(self, ready_lifecycle: SurfaceLifecycle, container: MapContainer) -> None:
        ready_lifecycle.handle_resize(container)
        assert ready_lifecycle.surface.size_revision == 0  # type: ignore[union-attr]

    def test_resize_without_surface_is_noop(self, lifecycle: SurfaceLifecycle, container: MapContainer) -> None:
        lifecycle.handle_resize(container)
        assert lifecycle.surface is None
