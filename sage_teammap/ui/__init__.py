"""User interface components for the team map.

File Structure:
- selection.py: SelectionStateMachine (2 states) + CameraController
- team_map_view.py: TeamMapView, one mounted map with its surface and roster
- deck_events.py: st_deckgl event parsing and rerun deduplication
- map_panel.py: Streamlit rendering of map slot, popup card, roster, detail
"""

from sage_teammap.ui.deck_events import MarkerEvent, MarkerEventDetector, MarkerEventKind, parse_deck_event
from sage_teammap.ui.map_panel import (
    drop_team_map_view,
    get_team_map_view,
    render_member_detail,
    render_roster,
    render_team_map,
)
from sage_teammap.ui.selection import CameraController, SelectionContext, SelectionStateMachine
from sage_teammap.ui.team_map_view import TeamMapView

__all__ = [
    "MarkerEvent",
    "MarkerEventDetector",
    "MarkerEventKind",
    "parse_deck_event",
    "drop_team_map_view",
    "get_team_map_view",
    "render_member_detail",
    "render_roster",
    "render_team_map",
    "CameraController",
    "SelectionContext",
    "SelectionStateMachine",
    "TeamMapView",
]
