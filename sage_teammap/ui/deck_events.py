"""Deck event parsing - converts st_deckgl events into marker events.

st_deckgl SPREADS the picked object's properties into the event dict (no
"object" key). Event structure:
- Marker click: {type: "team_member", id: ..., position: [...], coordinate: [lon, lat], eventType: "click"}
- Marker hover: same fields with eventType: "hover"
- Empty map hover: {coordinate: [lon, lat], eventType: "hover"} -> pointer left all markers
- Empty map click: {coordinate: [lon, lat], eventType: "click"} -> ignored

Streamlit returns the last component value on every rerun, so the detector
drops an event identical to the previous one.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sage_teammap.constants import EventConfig, MarkerConfig

logger = logging.getLogger(__name__)


class MarkerEventKind(Enum):
    """Kind of marker interaction."""

    CLICK = "click"
    HOVER = "hover"
    LEAVE = "leave"


@dataclass(frozen=True)
class MarkerEvent:
    """Marker interaction from the map.

    member_id is None only for LEAVE events.
    """

    kind: MarkerEventKind
    member_id: str | None = None
    coordinate: tuple[float, float] | None = None  # (lon, lat) of the pointer


def _parse_coordinate(event: dict[str, Any]) -> tuple[float, float] | None:
    coord = event.get("coordinate")
    if isinstance(coord, (list, tuple)) and len(coord) >= 2:
        try:
            return (float(coord[0]), float(coord[1]))
        except (TypeError, ValueError):
            return None
    return None


def parse_deck_event(event: dict[str, Any] | None) -> MarkerEvent | None:
    """Convert one st_deckgl event dict to a MarkerEvent (None if not a marker event)."""
    if not event or not isinstance(event, dict):
        return None

    event_type = event.get(EventConfig.EVENT_TYPE_KEY)
    coordinate = _parse_coordinate(event)
    is_member = event.get("type") == MarkerConfig.TYPE_MEMBER and event.get("id") is not None
    member_id = str(event["id"]) if is_member else None

    if event_type == EventConfig.CLICK:
        if member_id is None:
            logger.debug(f"Ignoring click without marker: keys={list(event.keys())}")
            return None
        return MarkerEvent(kind=MarkerEventKind.CLICK, member_id=member_id, coordinate=coordinate)

    if event_type == EventConfig.HOVER:
        if member_id is None:
            return MarkerEvent(kind=MarkerEventKind.LEAVE, coordinate=coordinate)
        return MarkerEvent(kind=MarkerEventKind.HOVER, member_id=member_id, coordinate=coordinate)

    logger.debug(f"Ignoring deck event type {event_type!r}")
    return None


class MarkerEventDetector:
    """Deduplicates marker events across Streamlit reruns."""

    def __init__(self) -> None:
        self.last_key: str | None = None
        self.component_key: str | None = None

    def bind(self, component_key: str) -> None:
        """Track the deck component events come from. A new component resets dedup."""
        if component_key != self.component_key:
            self.component_key = component_key
            self.last_key = None

    @staticmethod
    def event_key(event: MarkerEvent) -> str:
        """Unique key for dedup: kind, member and rounded pointer coordinate."""
        parts = [event.kind.value, event.member_id or ""]
        if event.coordinate is not None:
            decimals = EventConfig.DEDUP_KEY_DECIMALS
            parts.append(f"{event.coordinate[0]:.{decimals}f}_{event.coordinate[1]:.{decimals}f}")
        return "_".join(parts)

    def detect(self, event: dict[str, Any] | None) -> MarkerEvent | None:
        """Parse event and return it only if it differs from the previous one."""
        parsed = parse_deck_event(event)
        if parsed is None:
            return None
        key = self.event_key(parsed)
        if key == self.last_key:
            return None
        self.last_key = key
        logger.debug(f"Marker event: {parsed.kind.value} {parsed.member_id}")
        return parsed

    def clear(self) -> None:
        self.last_key = None
        self.component_key = None
