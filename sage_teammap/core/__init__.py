"""Core map engine classes.

- directory: Team directory sources and the reactive roster state
- surface: MapSurface engines (tile, vector) with marker registry and camera
- lifecycle: SurfaceLifecycle (create/destroy guard, deferred invalidate)
- marker_sync: MarkerSynchronizer (full rebuild) and SyncScheduler
"""

from sage_teammap.core.directory import (
    DirectoryError,
    DirectorySettings,
    DirectoryState,
    FetchResult,
    FileTeamDirectory,
    RestTeamDirectory,
    create_directory,
)
from sage_teammap.core.lifecycle import SurfaceLifecycle
from sage_teammap.core.marker_sync import MarkerSynchronizer, SyncReport, SyncScheduler
from sage_teammap.core.surface import (
    CameraState,
    MapContainer,
    MapSurface,
    SurfaceRemovedError,
    TileSurface,
    VectorSurface,
    create_surface,
)

__all__ = [
    "DirectoryError",
    "DirectorySettings",
    "DirectoryState",
    "FetchResult",
    "FileTeamDirectory",
    "RestTeamDirectory",
    "create_directory",
    "SurfaceLifecycle",
    "MarkerSynchronizer",
    "SyncReport",
    "SyncScheduler",
    "CameraState",
    "MapContainer",
    "MapSurface",
    "SurfaceRemovedError",
    "TileSurface",
    "VectorSurface",
    "create_surface",
]
