"""Tests for deck_events.py - st_deckgl event parsing.

st_deckgl spreads the picked object's properties into the event dict, so these
tests build events the way the component returns them. Pure dict parsing,
testable without Streamlit.
"""

import pytest

from sage_teammap.constants import EventConfig, MarkerConfig
from sage_teammap.ui.deck_events import MarkerEventDetector, MarkerEventKind, parse_deck_event


def _marker_event(event_type: str, member_id: str = "m-ada", coord: list[float] | None = None) -> dict:
    return {
        "type": MarkerConfig.TYPE_MEMBER,
        "id": member_id,
        "name": "Ada Lovelace",
        "position": [-0.1278, 51.5074],
        "coordinate": coord or [-0.1279, 51.5075],
        EventConfig.EVENT_TYPE_KEY: event_type,
    }


@pytest.fixture
def detector() -> MarkerEventDetector:
    return MarkerEventDetector()


class TestParseDeckEvent:
    """Single event conversion."""

    def test_marker_click(self) -> None:
        event = parse_deck_event(_marker_event(EventConfig.CLICK))
        assert event is not None
        assert event.kind == MarkerEventKind.CLICK
        assert event.member_id == "m-ada"
        assert event.coordinate == (-0.1279, 51.5075)

    def test_marker_hover(self) -> None:
        event = parse_deck_event(_marker_event(EventConfig.HOVER))
        assert event is not None
        assert event.kind == MarkerEventKind.HOVER

    def test_hover_on_empty_map_is_leave(self) -> None:
        event = parse_deck_event({"coordinate": [10.0, 20.0], EventConfig.EVENT_TYPE_KEY: EventConfig.HOVER})
        assert event is not None
        assert event.kind == MarkerEventKind.LEAVE
        assert event.member_id is None

    def test_click_on_empty_map_ignored(self) -> None:
        assert parse_deck_event({"coordinate": [10.0, 20.0], EventConfig.EVENT_TYPE_KEY: EventConfig.CLICK}) is None

    def test_click_on_other_object_type_ignored(self) -> None:
        event = _marker_event(EventConfig.CLICK)
        event["type"] = "something_else"
        assert parse_deck_event(event) is None

    @pytest.mark.parametrize("raw", [None, {}, "click", {"eventType": "drag", "coordinate": [0, 0]}])
    def test_non_marker_payloads(self, raw: object) -> None:
        assert parse_deck_event(raw) is None  # type: ignore[arg-type]

    def test_numeric_id_becomes_string(self) -> None:
        event = parse_deck_event(_marker_event(EventConfig.CLICK, member_id=42))  # type: ignore[arg-type]
        assert event is not None and event.member_id == "42"


class TestMarkerEventDetector:
    """Dedup across Streamlit reruns."""

    def test_same_event_twice_rejected(self, detector: MarkerEventDetector) -> None:
        raw = _marker_event(EventConfig.CLICK)
        assert detector.detect(raw) is not None
        assert detector.detect(raw) is None

    def test_same_marker_clicked_at_new_position_accepted(self, detector: MarkerEventDetector) -> None:
        assert detector.detect(_marker_event(EventConfig.CLICK, coord=[-0.1, 51.5])) is not None
        assert detector.detect(_marker_event(EventConfig.CLICK, coord=[-0.2, 51.5])) is not None

    def test_hover_then_click_both_accepted(self, detector: MarkerEventDetector) -> None:
        assert detector.detect(_marker_event(EventConfig.HOVER)) is not None
        assert detector.detect(_marker_event(EventConfig.CLICK)) is not None

    def test_ignored_event_keeps_last_key(self, detector: MarkerEventDetector) -> None:
        raw = _marker_event(EventConfig.CLICK)
        detector.detect(raw)
        detector.detect(None)
        assert detector.detect(raw) is None

    def test_clear_allows_repeat(self, detector: MarkerEventDetector) -> None:
        raw = _marker_event(EventConfig.CLICK)
        detector.detect(raw)
        detector.clear()
        assert detector.detect(raw) is not None

    def test_repeat_click_after_remount_accepted(self, detector: MarkerEventDetector) -> None:
        """The remounted component reports the same marker and position again."""
        raw = _marker_event(EventConfig.CLICK)
        detector.bind("team_map_tile_0_cam0")
        assert detector.detect(raw) is not None

        detector.bind("team_map_tile_0_cam1")
        assert detector.detect(raw) is not None

    def test_same_component_keeps_dedup(self, detector: MarkerEventDetector) -> None:
        raw = _marker_event(EventConfig.CLICK)
        detector.bind("team_map_tile_0_cam1")
        detector.detect(raw)
        detector.bind("team_map_tile_0_cam1")
        assert detector.detect(raw) is None
