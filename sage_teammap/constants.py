"""Configuration constants for the SAGE Team Map.

All configurable parameters are centralized here for easy tuning.

Classes:
    AppConfig: UI application settings
    MapConfig: Default camera, focus zoom and map slot sizes
    BasemapConfig: Tile and vector basemap sources
    MarkerConfig: Marker glyph sizing, hover behavior and colors
    PopupConfig: Popup and tooltip styling
    DirectoryConfig: Remote team directory table and environment variables
    EventConfig: Deck event field names
    LogConfig: Logging level
"""

import os
from pathlib import Path

# Package root directory (where sage_teammap/ lives)
PACKAGE_DIR = Path(__file__).parent

# Project root directory (parent of sage_teammap/)
PROJECT_ROOT = PACKAGE_DIR.parent

# Data directory outside package (demo roster, not shipped with package)
DATA_DIR = PROJECT_ROOT / "data"


class AppConfig:
    """UI application settings."""

    TITLE = "SAGE Team Around the World"
    ICON = "🌎"
    LAYOUT = "wide"
    BADGE = "Our Team"
    SUBTITLE = "Click on a team member to learn more about them."


class MapConfig:
    """Default map view parameters."""

    # Initial center: geographic middle of the contiguous United States
    DEFAULT_CENTER_LAT = 39.8283
    DEFAULT_CENTER_LON = -98.5795

    # Higher number = more zoomed in, lower = more zoomed out
    DEFAULT_ZOOM = 4  # Continental overview, whole roster visible
    FOCUS_ZOOM = 6  # Fly-to target and single-member framing
    MAX_ZOOM = 19
    assert FOCUS_ZOOM > DEFAULT_ZOOM

    # Fly-to animation length
    FLY_TO_DURATION_S = 1.5

    # One-shot resize pass after the surface attaches to its container
    INVALIDATE_DELAY_S = 0.1

    # Map slot heights (pixels)
    PAGE_HEIGHT_PX = 700
    EMBED_HEIGHT_PX = 600

    # Rendering engines
    ENGINE_TILE = "tile"
    ENGINE_VECTOR = "vector"
    ENGINES = [ENGINE_TILE, ENGINE_VECTOR]
    DEFAULT_ENGINE = ENGINE_TILE

    ENGINE_DISPLAY_NAMES = {
        ENGINE_TILE: "OpenStreetMap tiles",
        ENGINE_VECTOR: "CARTO vector map",
    }
    assert set(ENGINE_DISPLAY_NAMES.keys()) == set(ENGINES)

    # Check basemap reachability when a surface is created (app only, tests keep it off)
    PROBE_BASEMAP = True


class BasemapConfig:
    """Tile and vector basemap sources."""

    OSM_TILES_ABC = [
        "https://a.tile.openstreetmap.org/{z}/{x}/{y}.png",
        "https://b.tile.openstreetmap.org/{z}/{x}/{y}.png",
        "https://c.tile.openstreetmap.org/{z}/{x}/{y}.png",
    ]
    OSM_ATTRIBUTION = "© OpenStreetMap contributors"
    OSM_PROBE_TILE = "https://a.tile.openstreetmap.org/0/0/0.png"

    CARTO_STYLE = "light"
    CARTO_STYLE_URL = "https://basemaps.cartocdn.com/gl/positron-gl-style/style.json"

    PROBE_TIMEOUT_S = 5


class MarkerConfig:
    """Marker glyph parameters.

    Glyphs are circles of SIZE_PX diameter with a white border. Hovered markers
    are scaled and drawn in a raised layer so neighbors never cover them.
    """

    SIZE_PX = 50
    BORDER_PX = 3
    HOVER_SCALE = 1.2
    BASE_Z_INDEX = 0
    HOVER_Z_INDEX = 1000

    # Image glyph source size (IconLayer texture)
    IMAGE_TEXTURE_PX = 128

    # Initials glyph
    FALLBACK_INITIALS = "?"
    INITIALS_FONT_PX = 20

    # RGBA colors (0-255)
    FILL_COLOR = [37, 99, 235, 230]  # Primary blue
    BORDER_COLOR = [255, 255, 255, 255]
    TEXT_COLOR = [255, 255, 255, 255]
    HIGHLIGHT_COLOR = [250, 204, 21, 180]

    # Pydeck object type tag for picked markers
    TYPE_MEMBER = "team_member"


class PopupConfig:
    """Popup and tooltip styling."""

    MAX_WIDTH_PX = 300
    IMAGE_PX = 80

    # Tooltip sits above the glyph (half the glyph height)
    TOOLTIP_DIRECTION = "top"
    TOOLTIP_OFFSET_PX = -(MarkerConfig.SIZE_PX // 2)

    TOOLTIP_STYLE = {
        "backgroundColor": "rgba(255, 255, 255, 0.95)",
        "color": "#333",
        "padding": "4px 8px",
        "borderRadius": "4px",
        "textAlign": "center",
    }

    PRIMARY_COLOR = "#2563EB"
    SECONDARY_COLOR = "#7C3AED"
    MUTED_COLOR = "#6B7280"


class DirectoryConfig:
    """Remote team directory parameters."""

    TABLE = "team_members"
    ORDER_COLUMN = "created_at"
    REST_PATH = "/rest/v1/"
    TIMEOUT_S = 15

    # Environment variables
    ENV_URL = "SUPABASE_URL"
    ENV_KEY = "SUPABASE_ANON_KEY"
    ENV_MEMBERS_FILE = "TEAMMAP_MEMBERS_FILE"

    DEMO_MEMBERS_FILE = DATA_DIR / "team_members.json"


class EventConfig:
    """Deck event field names returned by st_deckgl."""

    EVENT_TYPE_KEY = "eventType"
    CLICK = "click"
    HOVER = "hover"
    EVENTS = [CLICK, HOVER]

    # Decimal places for dedup key generation
    DEDUP_KEY_DECIMALS = 6


class LogConfig:
    """Logging configuration.

    Development runs default to INFO; production deployments set
    TEAMMAP_LOG_LEVEL=WARNING to keep the console quiet.
    """

    LEVEL = os.environ.get("TEAMMAP_LOG_LEVEL", "INFO").upper()
    FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
