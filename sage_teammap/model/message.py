"""Message - User-facing messages for the team map UI.

Architecture:
- MAP SLOT: ONE inline message replaces the map while it cannot be shown
  (loading, fetch error, empty roster)
- TOASTS: transient feedback for roster clicks and view resets

Design Principles:
- A fetch error is always shown as an error, never as an empty map
- Data-quality issues (members without coordinates) are logged, not shown
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class MessageLevel(Enum):
    """Display level for UI messages."""

    INFO = "info"  # Blue - status/loading
    WARNING = "warning"  # Yellow - action instructions
    ERROR = "error"  # Red - failures


@dataclass(frozen=True)
class Message(ABC):
    """Abstract base class for user-facing messages displayed inline.

    These messages are rendered as st.info/st.warning/st.error blocks that persist
    in the UI until replaced.
    """

    @property
    @abstractmethod
    def message(self) -> str:
        """Formatted message for display in Streamlit."""
        raise NotImplementedError

    @property
    @abstractmethod
    def level(self) -> MessageLevel:
        """Display level."""
        raise NotImplementedError

    def display(self) -> None:
        """Render this message using the appropriate Streamlit function."""
        import streamlit as st

        render_fn = {
            MessageLevel.INFO: st.info,
            MessageLevel.WARNING: st.warning,
            MessageLevel.ERROR: st.error,
        }[self.level]
        render_fn(self.message)


@dataclass(frozen=True)
class ToastMessage(ABC):
    """Abstract base class for transient popup notifications.

    Good for: roster clicks that cannot move the map, quick confirmations
    Bad for: loading and error states of the map slot
    """

    @property
    @abstractmethod
    def message(self) -> str:
        """Formatted message for the toast notification."""
        raise NotImplementedError

    @property
    @abstractmethod
    def icon(self) -> str:
        """Icon to show in toast. Override in subclasses."""
        raise NotImplementedError

    def display(self) -> None:
        """Show this message as a toast notification and log it."""
        import streamlit as st

        logger = logging.getLogger(__name__)
        logger.info(f"[TOAST] {self.icon} {self.message}")
        st.toast(f"{self.icon} {self.message}")


# =============================================================================
# MAP SLOT - Inline messages shown instead of the map
# =============================================================================


@dataclass(frozen=True)
class MapLoadingMessage(Message):
    """Shown while the roster is being fetched."""

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.INFO

    @property
    def message(self) -> str:
        return "🗺️ **Loading map...**"


@dataclass(frozen=True)
class DirectoryErrorMessage(Message):
    """Roster fetch failed."""

    detail: str

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.ERROR

    @property
    def message(self) -> str:
        return f"⚠️ **Could not load the team**: {self.detail}"


@dataclass(frozen=True)
class EmptyDirectoryMessage(Message):
    """Roster loaded but has no members with a map location."""

    total_members: int

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.INFO

    @property
    def message(self) -> str:
        if self.total_members == 0:
            return "👥 **No team members yet**: check back soon."
        return f"👥 **No locations yet**: none of the {self.total_members} team members has a map location."


# =============================================================================
# TOAST MESSAGES - Transient feedback
# =============================================================================


@dataclass(frozen=True)
class MemberNotOnMapMessage(ToastMessage):
    """Roster entry selected for a member without coordinates."""

    name: str

    @property
    def icon(self) -> str:
        return "📍"

    @property
    def message(self) -> str:
        return f"No Map Location - {self.name} has not added a location yet."


@dataclass(frozen=True)
class MapResetMessage(ToastMessage):
    """The map view was rebuilt after a rendering error."""

    @property
    def icon(self) -> str:
        return "🔄"

    @property
    def message(self) -> str:
        return "Map Reset - the map was reloaded after an error."
