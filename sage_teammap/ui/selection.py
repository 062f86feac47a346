"""Selection state machine and camera controller for the team map.

Uses python-statemachine with the model pattern:

States:
    UNSELECTED: Initial state, no member selected
    SELECTED: One member selected (SelectionContext.member_id)

Transitions:
    UNSELECTED -> SELECTED: select (marker click or roster entry)
    SELECTED -> SELECTED: select (always replaces the previous selection)

There is no deselect event: a selection persists until it is replaced.

Every transition into SELECTED issues exactly one fly-to on the map surface.
Flights are not queued; a new fly-to replaces the camera target of the
previous one and the deck component cancels the running animation.

StreamlitRerunListener reruns the script after a transition so the new camera
and selection are drawn in the same interaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import streamlit as st
from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from sage_teammap.constants import MapConfig
from sage_teammap.core.lifecycle import SurfaceLifecycle

logger = logging.getLogger(__name__)


@dataclass
class SelectionContext:
    """Model of the selection state machine.

    Attributes:
        state: Managed by python-statemachine (current state value)
        member_id: Currently selected member, None before the first selection
        selection_count: Number of select events applied
    """

    state: str | None = None
    member_id: str | None = None
    selection_count: int = 0


class CameraController:
    """Issues fly-to commands to the surface of a lifecycle.

    Coordinates come from the marker registry, so only members that currently
    have a marker can be focused.
    """

    def __init__(
        self,
        lifecycle: SurfaceLifecycle,
        zoom: float = MapConfig.FOCUS_ZOOM,
        duration_s: float = MapConfig.FLY_TO_DURATION_S,
    ) -> None:
        self.lifecycle = lifecycle
        self.zoom = zoom
        self.duration_s = duration_s

    def focus(self, member_id: str) -> bool:
        """Fly to the member's marker. Returns False if nothing was issued."""
        surface = self.lifecycle.surface
        if surface is None or not self.lifecycle.is_ready:
            logger.debug(f"[SELECT] Surface not ready, cannot focus {member_id}")
            return False
        marker = surface.get_marker(member_id)
        if marker is None:
            logger.warning(f"[SELECT] Member {member_id} has no marker, camera unchanged")
            return False
        surface.fly_to(lat=marker.lat, lon=marker.lon, zoom=self.zoom, duration_s=self.duration_s)
        return True


class StreamlitRerunListener:
    """Reruns the Streamlit script after every selection transition."""

    def after_transition(self, event: str, source: State, target: State) -> None:
        logger.info(f"[STATE] {source.name} --({event})--> {target.name}")
        st.rerun()


class SelectionStateMachine(StateMachine):
    """Selection workflow of the team map. See module docstring."""

    unselected = State("Unselected", initial=True)
    selected = State("Selected")

    select = unselected.to(selected) | selected.to(selected)

    def __init__(self, camera: CameraController | None = None, context: SelectionContext | None = None) -> None:
        """Initialize state machine with model pattern.

        Args:
            camera: Camera controller used on every selection (None disables camera moves)
            context: Shared context/model (creates new if None)
        """
        self.camera = camera
        model = context or SelectionContext()
        super().__init__(model=model)

    @property
    def context(self) -> SelectionContext:
        """Alias for model."""
        return self.model

    @property
    def selected_id(self) -> str | None:
        return self.context.member_id

    @property
    def is_selected(self) -> bool:
        return self.selected.is_active

    def before_select(self, member_id: str) -> None:
        """Record the new selection, replacing any previous one."""
        self.context.member_id = member_id
        self.context.selection_count += 1

    def after_select(self, member_id: str) -> None:
        """Fly the camera to the selected member."""
        logger.info(f"[SELECT] Selected {member_id}")
        if self.camera is not None:
            self.camera.focus(member_id)

    def try_select(self, member_id: str) -> bool:
        """Select a member, returning success/failure."""
        try:
            self.send("select", member_id=member_id)
            return True
        except TransitionNotAllowed:
            logger.warning(f"Transition 'select' not allowed from {self.current_state.name}")
            return False

    def __repr__(self) -> str:
        return f"SelectionStateMachine(state={self.current_state.name}, member_id={self.context.member_id})"

    @staticmethod
    def create(
        camera: CameraController | None = None, add_ui_listener: bool = True
    ) -> tuple[SelectionStateMachine, SelectionContext]:
        """Factory method to create state machine with context and optional UI listener.

        Args:
            camera: Camera controller for fly-to on selection
            add_ui_listener: If True, adds StreamlitRerunListener for auto st.rerun().
                             Set to False for testing or non-Streamlit usage.

        Returns:
            Tuple of (SelectionStateMachine, SelectionContext)
        """
        context = SelectionContext()
        sm = SelectionStateMachine(camera=camera, context=context)
        if add_ui_listener:
            sm.add_listener(StreamlitRerunListener())
            logger.info("Created SelectionStateMachine with StreamlitRerunListener")
        else:
            logger.info("Created SelectionStateMachine without UI listener")
        return sm, context
