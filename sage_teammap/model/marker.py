"""MemberMarker - Engine-owned marker derived from a TeamMember.

Markers are owned by the map surface registry and keyed 1:1 by member id.
They never write back to the TeamMember they were built from.

Interaction model:
- pointer_enter/pointer_leave: enlarge the glyph and raise it above neighbors
- click: runs the handler attached by the marker synchronizer
- Tooltip (hover, name + role) and popup (click, full details) are independent
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sage_teammap.constants import MarkerConfig, PopupConfig


@dataclass(frozen=True)
class MarkerGlyph:
    """Circular glyph content: portrait image or initials text."""

    image_url: str | None = None
    text: str | None = None
    size_px: int = MarkerConfig.SIZE_PX

    def __post_init__(self) -> None:
        if (self.image_url is None) == (self.text is None):
            raise ValueError("MarkerGlyph needs exactly one of image_url or text")

    @property
    def is_image(self) -> bool:
        return self.image_url is not None


@dataclass(frozen=True)
class TooltipSpec:
    """Hover tooltip shown above the marker."""

    html: str
    direction: str = PopupConfig.TOOLTIP_DIRECTION
    offset_px: int = PopupConfig.TOOLTIP_OFFSET_PX


@dataclass
class MemberMarker:
    """A rendered marker on the team map.

    Attributes:
        member_id: ID of the TeamMember this marker represents
        lat: Latitude of the marker anchor
        lon: Longitude of the marker anchor
        name: Member name (tooltip field)
        role: Member role (tooltip field)
        glyph: Image or initials glyph
        popup_html: Click popup content
        tooltip: Hover tooltip
        on_click: Handler attached by the synchronizer, receives member_id
        hovered: True while the pointer is over the marker
    """

    member_id: str
    lat: float
    lon: float
    name: str
    role: str
    glyph: MarkerGlyph
    popup_html: str
    tooltip: TooltipSpec
    on_click: Callable[[str], None] | None = field(default=None, repr=False, compare=False)
    hovered: bool = False

    @property
    def scale(self) -> float:
        return MarkerConfig.HOVER_SCALE if self.hovered else 1.0

    @property
    def z_index(self) -> int:
        return MarkerConfig.HOVER_Z_INDEX if self.hovered else MarkerConfig.BASE_Z_INDEX

    @property
    def size_px(self) -> float:
        """Current glyph diameter including hover scale."""
        return self.glyph.size_px * self.scale

    @property
    def lon_lat(self) -> tuple[float, float]:
        return (self.lon, self.lat)

    def pointer_enter(self) -> None:
        """Enlarge glyph and raise stacking order."""
        self.hovered = True

    def pointer_leave(self) -> None:
        """Restore glyph size and stacking order."""
        self.hovered = False

    def click(self) -> None:
        """Run the attached click handler (no-op if none attached)."""
        if self.on_click is not None:
            self.on_click(self.member_id)

    def to_layer_row(self) -> dict[str, Any]:
        """Pydeck data row. Uses [lon, lat] order and pixel sizes."""
        row: dict[str, Any] = {
            "type": MarkerConfig.TYPE_MEMBER,
            "id": self.member_id,
            "name": self.name,
            "role": self.role,
            "position": [self.lon, self.lat],
            "size": self.size_px,
            "radius": self.size_px / 2,
            "z_index": self.z_index,
            "glyph_text": self.glyph.text or "",
            "tooltip_html": self.tooltip.html,
        }
        if self.glyph.is_image:
            row["icon_data"] = {
                "url": self.glyph.image_url,
                "width": MarkerConfig.IMAGE_TEXTURE_PX,
                "height": MarkerConfig.IMAGE_TEXTURE_PX,
                "anchorY": MarkerConfig.IMAGE_TEXTURE_PX // 2,
            }
        return row
