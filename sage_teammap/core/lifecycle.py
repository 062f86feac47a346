"""SurfaceLifecycle - create, guard and destroy the map surface of one view.

Rules:
- create() is idempotent: a second call while a surface exists returns it
- The surface is marked ready only after the engine is attached and the
  default camera is set; synchronization is gated on is_ready
- A one-shot invalidate runs shortly after creation to pick up container
  dimensions that were not committed when the engine attached
- destroy() cancels pending timers and releases the surface; a later create()
  builds a fully independent instance

Timers are cooperative: run_deferred() is called at the start of each render
cycle and runs whatever is due. Nothing here starts a thread.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from sage_teammap.constants import MapConfig
from sage_teammap.core.surface import CameraState, MapContainer, MapSurface, create_surface

logger = logging.getLogger(__name__)


@dataclass
class DeferredCall:
    """One-shot call due at a monotonic timestamp."""

    name: str
    due_at: float
    fn: Callable[[], None]


class SurfaceLifecycle:
    """Owns the single MapSurface of a mounted view.

    Example:
        lifecycle = SurfaceLifecycle(engine="tile")
        surface = lifecycle.create(container=MapContainer(key="team_map", height_px=700))
        ...
        lifecycle.run_deferred()  # each render cycle
        ...
        lifecycle.destroy()  # on unmount
    """

    def __init__(
        self,
        engine: str = MapConfig.DEFAULT_ENGINE,
        probe_basemap: bool = False,
        invalidate_delay_s: float = MapConfig.INVALIDATE_DELAY_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize lifecycle manager.

        Args:
            engine: Rendering engine name (MapConfig.ENGINES)
            probe_basemap: If True, check basemap reachability on create
            invalidate_delay_s: Delay of the one-shot resize pass after create
            clock: Monotonic clock (injectable for tests)
        """
        if engine not in MapConfig.ENGINES:
            raise ValueError(f"Unknown map engine '{engine}', expected one of {MapConfig.ENGINES}")
        self.engine = engine
        self.probe_basemap = probe_basemap
        self.invalidate_delay_s = invalidate_delay_s
        self.clock = clock
        self.instances_created = 0
        self._surface: MapSurface | None = None
        self._ready = False
        self._deferred: list[DeferredCall] = []

    @property
    def surface(self) -> MapSurface | None:
        return self._surface

    @property
    def is_ready(self) -> bool:
        return self._ready and self._surface is not None and not self._surface.is_removed

    @property
    def live_instances(self) -> int:
        return 0 if self._surface is None or self._surface.is_removed else 1

    @property
    def pending_calls(self) -> list[str]:
        return [call.name for call in self._deferred]

    def create(self, container: MapContainer) -> MapSurface:
        """Create the surface bound to container (no-op if one already exists)."""
        if self._surface is not None:
            logger.debug(f"[SURFACE] create() ignored, surface already exists for {self._surface.container.key}")
            return self._surface

        surface = create_surface(engine=self.engine, container=container, camera=CameraState.default())
        self._surface = surface
        self.instances_created += 1
        logger.info(f"[SURFACE] Created {surface!r}")

        self._schedule(name="invalidate_size", delay_s=self.invalidate_delay_s, fn=self._invalidate_once)

        if self.probe_basemap:
            # Missing tiles degrade the map, they do not stop it from initializing
            surface.probe_basemap()

        self._ready = True
        return surface

    def destroy(self) -> None:
        """Release the surface and cancel its timers (no-op without a surface)."""
        self._deferred.clear()
        self._ready = False
        if self._surface is None:
            logger.debug("[SURFACE] destroy() ignored, no surface")
            return
        surface = self._surface
        self._surface = None
        surface.remove()
        logger.info(f"[SURFACE] Destroyed {surface!r}")

    def handle_resize(self, container: MapContainer) -> None:
        """Container changed size: rebind and invalidate."""
        if self._surface is None:
            return
        if container == self._surface.container:
            return
        logger.info(f"[SURFACE] Resize {self._surface.container} -> {container}")
        self._surface.resize(container)

    def run_deferred(self, now: float | None = None) -> int:
        """Run due one-shot calls. Returns number of calls run."""
        now = self.clock() if now is None else now
        due = [call for call in self._deferred if call.due_at <= now]
        if not due:
            return 0
        self._deferred = [call for call in self._deferred if call.due_at > now]
        for call in due:
            logger.debug(f"[SURFACE] Running deferred {call.name}")
            call.fn()
        return len(due)

    def _schedule(self, name: str, delay_s: float, fn: Callable[[], None]) -> None:
        self._deferred.append(DeferredCall(name=name, due_at=self.clock() + delay_s, fn=fn))

    def _invalidate_once(self) -> None:
        if self._surface is None or self._surface.is_removed:
            return
        self._surface.invalidate_size()
