"""Message - User-facing messages for the map annotator UI.

Architecture:
- LEFT (sidebar): ONE blue info message describing the active tool and what to click next
- Toasts: transient feedback for imports, feed errors and refused actions

Design Principles:
- Maximum ONE inline message per panel location at any time
- Toasts never block; they are also logged
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from map_annotator.constants import StyleConfig


class MessageLevel(Enum):
    """Display level for UI messages."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Message(ABC):
    """Abstract base class for inline messages (st.info/st.warning/st.error)."""

    @property
    @abstractmethod
    def message(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def level(self) -> MessageLevel:
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
    """Abstract base class for transient popup notifications."""

    @property
    @abstractmethod
    def message(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def icon(self) -> str:
        raise NotImplementedError

    def display(self) -> None:
        """Show this message as a toast notification and log it."""
        import streamlit as st

        logger = logging.getLogger(__name__)
        logger.info(f"[TOAST] {self.icon} {self.message}")
        st.toast(f"{self.icon} {self.message}")


# =============================================================================
# TOAST MESSAGES
# =============================================================================


@dataclass(frozen=True)
class ImportResultMessage(ToastMessage):
    """File import finished."""

    filename: str
    layer_count: int

    @property
    def icon(self) -> str:
        return "📂" if self.layer_count else "⚠️"

    @property
    def message(self) -> str:
        if self.layer_count == 0:
            return f"No usable geometry found in {self.filename}"
        return f"Imported {self.layer_count} layer(s) from {self.filename}"


@dataclass(frozen=True)
class FileLoadErrorMessage(ToastMessage):
    """A file could not be read or parsed."""

    filename: str
    error: str

    @property
    def icon(self) -> str:
        return "❌"

    @property
    def message(self) -> str:
        return f"Could not load {self.filename}: {self.error}"


@dataclass(frozen=True)
class FeedErrorMessage(ToastMessage):
    """The live feed endpoint could not be polled."""

    url: str
    error: str

    @property
    def icon(self) -> str:
        return "📡"

    @property
    def message(self) -> str:
        return f"Feed unavailable at {self.url}: {self.error}"


@dataclass(frozen=True)
class NotDraggableMessage(ToastMessage):
    """User tried to move an uploaded layer."""

    label: str

    @property
    def icon(self) -> str:
        return "🔒"

    @property
    def message(self) -> str:
        return f"{self.label} was uploaded and cannot be moved"


# =============================================================================
# INLINE MESSAGES
# =============================================================================

_NEXT_CLICK = {
    "point": "Click the map to place a point.",
    "line": "Click the start, then the end of the line.",
    "distance": "Click two points to measure the distance between them.",
    "azimuth": "Click the origin, then the target to measure the bearing.",
}


@dataclass(frozen=True)
class DrawingContextMessage(Message):
    """Sidebar hint for the active drawing tool."""

    mode: str
    vertex_count: int = 0
    sector_step: str = "center"

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.INFO

    @property
    def message(self) -> str:
        if self.mode == "none":
            return "Pick a tool to start drawing, or click a layer in the list to focus it."
        title = f"{StyleConfig.TOOL_EMOJIS[self.mode]} **{StyleConfig.LAYER_NAMES[self.mode]}**"
        if self.mode in _NEXT_CLICK:
            return f"{title}: {_NEXT_CLICK[self.mode]}"
        if self.mode in ("polygon", "area"):
            if self.vertex_count < 2:
                return f"{title}: click to add vertices ({self.vertex_count} so far)."
            return f"{title}: {self.vertex_count} vertices. Click the first vertex to close the shape."
        sector_hints = {
            "center": "click the sector center.",
            "radius": "click to set the radius.",
            "start_angle": "click to set the start angle.",
            "end_angle": "click to set the end angle.",
        }
        return f"{title}: {sector_hints[self.sector_step]}"
