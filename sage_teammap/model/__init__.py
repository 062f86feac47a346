"""Data model classes for the team map.

- TeamMember: Roster entry read from the team directory (read-only)
- MemberMarker: Engine-owned marker derived from a TeamMember
- MarkerGlyph / TooltipSpec: Marker visual content
- marker_content: Glyph, tooltip and popup builders
- message: Inline and toast messages for the UI
"""

from sage_teammap.model.marker import MarkerGlyph, MemberMarker, TooltipSpec
from sage_teammap.model.marker_content import build_glyph, build_popup_html, build_tooltip
from sage_teammap.model.team_member import TeamMember

__all__ = [
    "TeamMember",
    "MemberMarker",
    "MarkerGlyph",
    "TooltipSpec",
    "build_glyph",
    "build_popup_html",
    "build_tooltip",
]
