"""State machine for the interactive drawing session.

Uses python-statemachine for the drawing workflow:
- One state per drawing mode plus an idle "none" state
- Intermediate clicks are internal self-transitions (context kept)
- Every entry into a state starts from an empty gesture

Architecture Overview
---------------------
The machine only tracks WHICH mode is active and the partially built
geometry. Click handlers (click_handlers.py) read the context, decide whether
a click completes the gesture, commit the Layer to the LayerStore and then
send `finish`. Intermediate clicks are sent as `add_vertex` / `advance_sector`.

States:
    NONE: No drawing tool active (initial)
    POINT, POLYGON, LINE, SECTOR, DISTANCE, AREA, AZIMUTH: One per tool

Transitions:
    NONE/any mode -> MODE: select_<mode> (switching mid-gesture abandons it)
    POLYGON/LINE/DISTANCE/AREA/AZIMUTH -> same: add_vertex (internal)
    SECTOR -> SECTOR: advance_sector (internal, fills center/radius/start)
    any mode -> NONE: finish (after a Layer was committed)
    any state -> NONE: cancel (clears vertices, sector and cursor)

Hover (cursor, near_close_point) is orthogonal to state and updated through
update_cursor()/clear_cursor() without a transition.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import streamlit as st
from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from map_annotator.constants import DrawConfig
from map_annotator.core.geo_calculator import GeoCalculator
from map_annotator.model.geometry import Coordinate

logger = logging.getLogger(__name__)


@dataclass
class SectorContext:
    """Sector parameters, filled one click at a time."""

    center: Coordinate | None = None
    radius: float | None = None
    start_angle: float | None = None

    def clear(self) -> None:
        self.center = None
        self.radius = None
        self.start_angle = None

    def next_step(self) -> str:
        """Which parameter the next sector click supplies."""
        if self.center is None:
            return "center"
        if self.radius is None:
            return "radius"
        if self.start_angle is None:
            return "start_angle"
        return "end_angle"


@dataclass
class DrawingSession:
    """Shared context/model for the drawing state machine.

    Note: The 'state' field is managed by python-statemachine when this
    object is passed as the model. It stores the active mode value.
    """

    state: str | None = None

    vertices: list[Coordinate] = field(default_factory=list)
    sector: SectorContext = field(default_factory=SectorContext)
    cursor: Coordinate | None = None
    near_close_point: bool = False

    @property
    def mode(self) -> str:
        return self.state or "none"

    def clear_gesture(self) -> None:
        """Drop every partially built piece of geometry and the hover state."""
        self.vertices = []
        self.sector.clear()
        self.cursor = None
        self.near_close_point = False

    def can_close_ring(self) -> bool:
        return self.mode in ("polygon", "area") and len(self.vertices) >= DrawConfig.MIN_RING_VERTICES

    def is_near_first_vertex(self, coordinate: Coordinate, zoom: float) -> bool:
        if not self.vertices:
            return False
        distance = GeoCalculator.planar_distance_deg(coordinate, self.vertices[0])
        return distance < GeoCalculator.close_tolerance_deg(zoom=zoom)

    def __repr__(self) -> str:
        return (
            f"DrawingSession(mode={self.mode}, vertices={len(self.vertices)}, "
            f"sector_step={self.sector.next_step()}, near_close={self.near_close_point})"
        )


class StreamlitUIListener:
    """Listener that persists the workspace and reruns Streamlit after transitions.

    Usage:
        sm = DrawingStateMachine(session=session)
        sm.add_listener(StreamlitUIListener())
    """

    def after_transition(self, event: str, source: State, target: State) -> None:
        logger.info(f"[STATE] {source.name} --({event})--> {target.name}")

        workspace = st.session_state.get("workspace")
        if workspace is not None:
            workspace.perform_backup()

        st.rerun()


class DrawingStateMachine(StateMachine):
    """State machine for the drawing tools.

    See module docstring for the transition table.
    """

    # ==========================================================================
    # State Definitions
    # ==========================================================================

    none = State("None", initial=True, value="none")

    point = State("Point", value="point")
    polygon = State("Polygon", value="polygon")
    line = State("Line", value="line")
    sector = State("Sector", value="sector")
    distance = State("Distance", value="distance")
    area = State("Area", value="area")
    azimuth = State("Azimuth", value="azimuth")

    # ==========================================================================
    # Transitions: tool selection
    # ==========================================================================

    select_point = point.from_(none, polygon, line, sector, distance, area, azimuth)
    select_polygon = polygon.from_(none, point, line, sector, distance, area, azimuth)
    select_line = line.from_(none, point, polygon, sector, distance, area, azimuth)
    select_sector = sector.from_(none, point, polygon, line, distance, area, azimuth)
    select_distance = distance.from_(none, point, polygon, line, sector, area, azimuth)
    select_area = area.from_(none, point, polygon, line, sector, distance, azimuth)
    select_azimuth = azimuth.from_(none, point, polygon, line, sector, distance, area)

    # ==========================================================================
    # Transitions: intermediate clicks (internal, context kept)
    # ==========================================================================

    add_vertex = (
        polygon.to.itself(internal=True)
        | line.to.itself(internal=True)
        | distance.to.itself(internal=True)
        | area.to.itself(internal=True)
        | azimuth.to.itself(internal=True)
    )
    advance_sector = sector.to.itself(internal=True, cond="sector_incomplete")

    # ==========================================================================
    # Transitions: leaving a gesture
    # ==========================================================================

    finish = none.from_(point, polygon, line, sector, distance, area, azimuth)
    cancel = none.from_(point, polygon, line, sector, distance, area, azimuth) | none.to.itself()

    # ==========================================================================
    # Guards (Conditions)
    # ==========================================================================

    def sector_incomplete(self) -> bool:
        """Guard: the sector still waits for center, radius or start angle."""
        return self.session.sector.next_step() != "end_angle"

    # ==========================================================================
    # State Check Properties
    # ==========================================================================

    @property
    def mode(self) -> str:
        return self.session.mode

    @property
    def is_drawing(self) -> bool:
        return not self.none.is_active

    # ==========================================================================
    # Hover (no state change)
    # ==========================================================================

    def update_cursor(self, coordinate: Coordinate, zoom: float) -> None:
        """Record the pointer and recompute the close-point highlight."""
        self.session.cursor = coordinate
        if self.session.can_close_ring():
            self.session.near_close_point = self.session.is_near_first_vertex(coordinate=coordinate, zoom=zoom)
        else:
            self.session.near_close_point = False

    def clear_cursor(self) -> None:
        """Pointer left the map."""
        self.session.cursor = None
        self.session.near_close_point = False

    # ==========================================================================
    # Entry Hooks
    # ==========================================================================

    def on_enter_state(self) -> None:
        """Hook: every (external) entry starts a fresh gesture."""
        self.session.clear_gesture()

    # ==========================================================================
    # Transition Actions (before_* hooks)
    # ==========================================================================

    def before_add_vertex(self, coordinate: Coordinate) -> None:
        self.session.vertices.append(coordinate)

    def before_advance_sector(self, coordinate: Coordinate) -> None:
        sector = self.session.sector
        step = sector.next_step()
        if step == "center":
            sector.center = coordinate
        elif step == "radius":
            sector.radius = GeoCalculator.planar_distance_deg(coordinate, sector.center)
        elif step == "start_angle":
            sector.start_angle = GeoCalculator.planar_angle(sector.center, coordinate)

    def before_cancel(self) -> None:
        self.session.clear_gesture()

    # ==========================================================================
    # Initialization
    # ==========================================================================

    def __init__(self, session: DrawingSession | None = None, start_value: str | None = None) -> None:
        """Initialize state machine with model pattern.

        Args:
            session: Shared context/model (creates new if None)
            start_value: Optional initial mode (for restoring state)
        """
        model = session or DrawingSession()
        super().__init__(model=model, start_value=start_value)

    # ==========================================================================
    # Utility Methods
    # ==========================================================================

    @property
    def session(self) -> DrawingSession:
        """Alias for model."""
        return self.model

    def get_state_name(self) -> str:
        return self.current_state.name

    def select_mode(self, mode: str) -> bool:
        """Activate a drawing tool; choosing the active tool again turns it off."""
        if mode == self.mode:
            return self.try_transition("cancel")
        if mode == "none":
            return self.try_transition("cancel")
        if mode not in DrawConfig.MODES:
            raise ValueError(f"Unknown drawing mode '{mode}'")
        return self.try_transition(f"select_{mode}")

    def __repr__(self) -> str:
        return f"DrawingStateMachine(state={self.get_state_name()}, model={self.session!r})"

    def try_transition(self, event: str, **kwargs: Any) -> bool:
        """Attempt a transition, returning success/failure.

        Args:
            event: Transition event name
            **kwargs: Arguments for transition

        Returns:
            True if transition succeeded, False otherwise.
        """
        try:
            self.send(event, **kwargs)
            return True
        except TransitionNotAllowed:
            logger.warning(f"Transition '{event}' not allowed from {self.get_state_name()}")
            return False

    @staticmethod
    def create(add_ui_listener: bool = True) -> tuple["DrawingStateMachine", DrawingSession]:
        """Factory method to create state machine with session and optional UI listener.

        Args:
            add_ui_listener: If True, adds StreamlitUIListener for backup + st.rerun().
                             Set to False for testing or non-Streamlit usage.

        Returns:
            Tuple of (DrawingStateMachine, DrawingSession)
        """
        session = DrawingSession()
        sm = DrawingStateMachine(session=session)
        if add_ui_listener:
            sm.add_listener(StreamlitUIListener())
            logger.info("Created DrawingStateMachine with StreamlitUIListener")
        else:
            logger.info("Created DrawingStateMachine without UI listener")
        return sm, session
