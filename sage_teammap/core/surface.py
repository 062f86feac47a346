"""MapSurface - the mutable map engine instance bound to one container.

A surface owns:
- The marker registry (member_id -> MemberMarker), mutated only by the marker
  synchronizer and by user interaction (hover, popup)
- The camera (center, zoom, fly-to transition)
- Size state (invalidate_size bumps a revision so the deck component remounts
  with fresh container dimensions)

Two engines share this contract:
- TileSurface: raster OpenStreetMap tiles through a Mapbox GL style dict
- VectorSurface: CARTO vector basemap

Rendering output is a pdk.Deck. Layer z-order (back to front):
    base markers -> raised markers (hovered)
Within each group: circle/ring -> portrait icons -> initials text.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace

import pydeck as pdk
import requests

from sage_teammap.constants import BasemapConfig, MapConfig, MarkerConfig, PopupConfig
from sage_teammap.model.marker import MemberMarker

logger = logging.getLogger(__name__)


class SurfaceRemovedError(RuntimeError):
    """Operation on a surface that has already been removed."""


@dataclass(frozen=True)
class MapContainer:
    """Container handle the surface is bound to.

    Attributes:
        key: Stable identifier of the map slot (Streamlit component key prefix)
        height_px: Slot height
        width_px: Slot width, None while layout is not committed yet
    """

    key: str
    height_px: int
    width_px: int | None = None

    @property
    def has_layout(self) -> bool:
        return self.width_px is not None


@dataclass
class CameraState:
    """Camera of a surface.

    transition_duration_ms > 0 means the last command was an animated fly-to.
    revision increments on every camera command so renderers can tell a new
    command from a rerun of the old one.
    """

    lat: float = MapConfig.DEFAULT_CENTER_LAT
    lon: float = MapConfig.DEFAULT_CENTER_LON
    zoom: float = MapConfig.DEFAULT_ZOOM
    pitch: float = 0.0
    bearing: float = 0.0
    transition_duration_ms: int = 0
    revision: int = 0

    @classmethod
    def default(cls) -> "CameraState":
        return cls()

    @property
    def lat_lon(self) -> tuple[float, float]:
        return (self.lat, self.lon)

    def to_view_state(self) -> pdk.ViewState:
        """Create Pydeck ViewState, with transition for fly-to commands."""
        kwargs = {}
        if self.transition_duration_ms > 0:
            kwargs["transition_duration"] = self.transition_duration_ms
        return pdk.ViewState(
            latitude=self.lat,
            longitude=self.lon,
            zoom=self.zoom,
            pitch=self.pitch,
            bearing=self.bearing,
            max_zoom=MapConfig.MAX_ZOOM,
            **kwargs,
        )


class MapSurface(ABC):
    """Mutable map engine instance.

    Example:
        surface = TileSurface(container=MapContainer(key="team_map", height_px=700))
        surface.add_marker(marker)
        surface.fly_to(lat=40.0, lon=-75.0, zoom=6, duration_s=1.5)
        st_deckgl(surface.to_deck(), key=surface.component_key)
    """

    engine: str = ""

    def __init__(self, container: MapContainer, camera: CameraState | None = None) -> None:
        self.container = container
        self.camera = camera or CameraState.default()
        self.size_revision = 0
        self.open_popup_id: str | None = None
        self.hovered_id: str | None = None
        self._markers: dict[str, MemberMarker] = {}
        self._removed = False

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def is_removed(self) -> bool:
        return self._removed

    @property
    def marker_ids(self) -> set[str]:
        return set(self._markers)

    @property
    def markers(self) -> list[MemberMarker]:
        """Markers in insertion order."""
        return list(self._markers.values())

    @property
    def component_key(self) -> str:
        """Component key; changes on invalidate so the deck remounts at the new size."""
        return f"{self.container.key}_{self.engine}_{self.size_revision}"

    def get_marker(self, member_id: str) -> MemberMarker | None:
        return self._markers.get(member_id)

    def _check_alive(self) -> None:
        if self._removed:
            raise SurfaceRemovedError(f"{type(self).__name__} for {self.container.key} was removed")

    # =========================================================================
    # MARKER REGISTRY
    # =========================================================================

    def add_marker(self, marker: MemberMarker) -> None:
        """Register marker. Replaces an existing marker with the same id."""
        self._check_alive()
        if marker.member_id in self._markers:
            logger.warning(f"[SURFACE] Replacing existing marker {marker.member_id}")
        self._markers[marker.member_id] = marker

    def remove_marker(self, member_id: str) -> MemberMarker | None:
        self._check_alive()
        marker = self._markers.pop(member_id, None)
        if marker is not None:
            marker.on_click = None
            if self.open_popup_id == member_id:
                self.open_popup_id = None
            if self.hovered_id == member_id:
                self.hovered_id = None
        return marker

    def clear_markers(self) -> int:
        """Remove every marker. Returns number removed."""
        self._check_alive()
        count = len(self._markers)
        for member_id in list(self._markers):
            self.remove_marker(member_id)
        return count

    # =========================================================================
    # INTERACTION STATE
    # =========================================================================

    def open_popup(self, member_id: str) -> None:
        """Open the popup bound to a marker (closes any other popup)."""
        self._check_alive()
        if member_id not in self._markers:
            logger.debug(f"[SURFACE] No marker {member_id} to open popup for")
            return
        self.open_popup_id = member_id

    def close_popup(self) -> None:
        self.open_popup_id = None

    def hover(self, member_id: str | None) -> None:
        """Move the pointer to a marker (or off all markers)."""
        self._check_alive()
        if member_id == self.hovered_id:
            return
        if self.hovered_id is not None:
            previous = self._markers.get(self.hovered_id)
            if previous is not None:
                previous.pointer_leave()
        self.hovered_id = None
        if member_id is not None:
            marker = self._markers.get(member_id)
            if marker is not None:
                marker.pointer_enter()
                self.hovered_id = member_id

    # =========================================================================
    # CAMERA
    # =========================================================================

    def set_view(self, lat: float, lon: float, zoom: float) -> None:
        """Jump the camera without animation."""
        self._check_alive()
        self.camera = replace(
            self.camera, lat=lat, lon=lon, zoom=zoom, transition_duration_ms=0, revision=self.camera.revision + 1
        )

    def fly_to(self, lat: float, lon: float, zoom: float, duration_s: float) -> None:
        """Animate the camera. A new fly-to replaces any flight still in progress."""
        self._check_alive()
        self.camera = replace(
            self.camera,
            lat=lat,
            lon=lon,
            zoom=zoom,
            transition_duration_ms=int(duration_s * 1000),
            revision=self.camera.revision + 1,
        )
        logger.debug(f"[SURFACE] Fly to ({lat:.4f}, {lon:.4f}) zoom={zoom} rev={self.camera.revision}")

    # =========================================================================
    # SIZE / LIFECYCLE
    # =========================================================================

    def invalidate_size(self) -> None:
        """Recompute size from the container on next render."""
        self._check_alive()
        self.size_revision += 1
        logger.debug(f"[SURFACE] Invalidate size -> {self.component_key}")

    def resize(self, container: MapContainer) -> None:
        self._check_alive()
        self.container = container
        self.invalidate_size()

    def remove(self) -> None:
        """Release markers and handlers. The surface cannot be used afterwards."""
        if self._removed:
            return
        self.clear_markers()
        self.open_popup_id = None
        self.hovered_id = None
        self._removed = True

    # =========================================================================
    # RENDERING
    # =========================================================================

    @abstractmethod
    def basemap(self) -> tuple[object, str]:
        """Return (map_style, map_provider) for pdk.Deck."""
        raise NotImplementedError

    @abstractmethod
    def probe_url(self) -> str:
        """URL fetched to check the basemap source is reachable."""
        raise NotImplementedError

    def probe_basemap(self, timeout_s: float = BasemapConfig.PROBE_TIMEOUT_S) -> bool:
        """Check the basemap source. Failures are logged, never raised."""
        url = self.probe_url()
        try:
            response = requests.get(url, timeout=timeout_s)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"[SURFACE] Basemap source unreachable ({self.engine}): {url} - {e}")
            return False
        logger.info(f"[SURFACE] Basemap source reachable ({self.engine})")
        return True

    def build_layers(self) -> list[pdk.Layer]:
        """Marker layers in z-order. Hovered markers go in the raised group."""
        ordered = sorted(self._markers.values(), key=lambda m: m.z_index)
        base = [m.to_layer_row() for m in ordered if m.z_index == MarkerConfig.BASE_Z_INDEX]
        raised = [m.to_layer_row() for m in ordered if m.z_index != MarkerConfig.BASE_Z_INDEX]
        return self._marker_layers(rows=base, group="base") + self._marker_layers(rows=raised, group="raised")

    @staticmethod
    def _marker_layers(rows: list[dict], group: str) -> list[pdk.Layer]:
        if not rows:
            return []
        image_rows = [r for r in rows if "icon_data" in r]
        text_rows = [r for r in rows if "icon_data" not in r]
        layers = [
            pdk.Layer(
                "ScatterplotLayer",
                rows,
                get_position="position",
                get_radius="radius",
                radius_units="pixels",
                get_fill_color=MarkerConfig.FILL_COLOR,
                get_line_color=MarkerConfig.BORDER_COLOR,
                line_width_units="pixels",
                get_line_width=MarkerConfig.BORDER_PX,
                stroked=True,
                pickable=True,
                auto_highlight=True,
                highlight_color=MarkerConfig.HIGHLIGHT_COLOR,
                id=f"team_markers_{group}_circles",
            )
        ]
        if image_rows:
            layers.append(
                pdk.Layer(
                    "IconLayer",
                    image_rows,
                    get_position="position",
                    get_icon="icon_data",
                    get_size="size",
                    size_units="pixels",
                    pickable=True,
                    id=f"team_markers_{group}_images",
                )
            )
        if text_rows:
            layers.append(
                pdk.Layer(
                    "TextLayer",
                    text_rows,
                    get_position="position",
                    get_text="glyph_text",
                    get_size=MarkerConfig.INITIALS_FONT_PX,
                    get_color=MarkerConfig.TEXT_COLOR,
                    get_text_anchor="'middle'",
                    get_alignment_baseline="'center'",
                    font_weight="bold",
                    pickable=True,
                    id=f"team_markers_{group}_initials",
                )
            )
        return layers

    @staticmethod
    def tooltip_config() -> dict[str, object]:
        """Hover tooltip: the marker's escaped tooltip HTML, shifted above the glyph."""
        style = dict(PopupConfig.TOOLTIP_STYLE)
        style["marginTop"] = f"{PopupConfig.TOOLTIP_OFFSET_PX * 2}px"
        return {"html": "{tooltip_html}", "style": style}

    def to_deck(self) -> pdk.Deck:
        """Render the surface as a pdk.Deck."""
        self._check_alive()
        map_style, map_provider = self.basemap()
        return pdk.Deck(
            map_style=map_style,
            map_provider=map_provider,
            initial_view_state=self.camera.to_view_state(),
            layers=self.build_layers(),
            tooltip=self.tooltip_config(),
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(key={self.container.key}, markers={len(self._markers)}, "
            f"center={self.camera.lat_lon}, zoom={self.camera.zoom}, removed={self._removed})"
        )


# Mapbox GL style specification for the raster OpenStreetMap basemap.
# pydeck's TileLayer cannot render raster tiles without a JavaScript
# renderSubLayers callback, so raster tiles go through a map_style dict with
# map_provider="mapbox" (works without an API key for raster sources).
OSM_RASTER_STYLE: dict[str, object] = {
    "version": 8,
    "sources": {
        "osm": {
            "type": "raster",
            "tiles": BasemapConfig.OSM_TILES_ABC,
            "tileSize": 256,
            "attribution": BasemapConfig.OSM_ATTRIBUTION,
        }
    },
    "layers": [
        {
            "id": "osm",
            "type": "raster",
            "source": "osm",
            "minzoom": 0,
            "maxzoom": MapConfig.MAX_ZOOM,
        }
    ],
}


class TileSurface(MapSurface):
    """Raster tile engine (OpenStreetMap)."""

    engine = MapConfig.ENGINE_TILE

    def basemap(self) -> tuple[object, str]:
        return OSM_RASTER_STYLE, "mapbox"

    def probe_url(self) -> str:
        return BasemapConfig.OSM_PROBE_TILE


class VectorSurface(MapSurface):
    """Vector engine (CARTO basemap)."""

    engine = MapConfig.ENGINE_VECTOR

    def basemap(self) -> tuple[object, str]:
        return BasemapConfig.CARTO_STYLE, "carto"

    def probe_url(self) -> str:
        return BasemapConfig.CARTO_STYLE_URL


SURFACE_ENGINES: dict[str, type[MapSurface]] = {
    MapConfig.ENGINE_TILE: TileSurface,
    MapConfig.ENGINE_VECTOR: VectorSurface,
}
assert set(SURFACE_ENGINES.keys()) == set(MapConfig.ENGINES)


def create_surface(engine: str, container: MapContainer, camera: CameraState | None = None) -> MapSurface:
    """Instantiate the surface class for an engine name."""
    surface_cls = SURFACE_ENGINES.get(engine)
    if surface_cls is None:
        raise ValueError(f"Unknown map engine '{engine}', expected one of {MapConfig.ENGINES}")
    return surface_cls(container=container, camera=camera)
