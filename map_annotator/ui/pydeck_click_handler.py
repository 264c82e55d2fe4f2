"""Pydeck event capture using streamlit-deckgl.

Uses st_deckgl from streamlit-deckgl to capture map events including clicks
on empty map space, not just object selections.

st_deckgl spreads the picked object's properties into the event dict, so a
click on a committed layer carries its "type" and "id" next to "coordinate".
"""

import logging
from dataclasses import dataclass
from typing import Any

import pydeck as pdk
import streamlit as st
from streamlit_deckgl import st_deckgl  # type: ignore[import-untyped]

from map_annotator.constants import AppConfig
from map_annotator.model.geometry import Coordinate

logger = logging.getLogger(__name__)


@dataclass
class PydeckClickResult:
    """Result from one deck.gl event.

    Attributes:
        clicked_object: Picked object data (dict) or None for empty-map events
        clicked_coordinate: (lon, lat) of the event location
        event_type: deck.gl event type ("click", "hover", ...)
    """

    clicked_object: dict[str, Any] | None
    clicked_coordinate: Coordinate | None
    event_type: str = "click"

    @property
    def is_object_click(self) -> bool:
        return self.clicked_object is not None

    @property
    def is_map_click(self) -> bool:
        """True if empty map space was clicked with valid coordinates."""
        return self.clicked_object is None and self.clicked_coordinate is not None

    @property
    def is_hover(self) -> bool:
        return self.event_type == "hover"

    @property
    def layer_id(self) -> str | None:
        if self.clicked_object is None:
            return None
        return self.clicked_object.get("id") or None

    @staticmethod
    def empty() -> "PydeckClickResult":
        return PydeckClickResult(clicked_object=None, clicked_coordinate=None)


def parse_deck_event(event: Any) -> PydeckClickResult:
    """Normalize a raw st_deckgl event dict.

    Event structure:
    - Map click: {coordinate: [lon, lat], eventType: "click"}
    - Object click: {type: ..., id: ..., coordinate: [lon, lat], eventType: "click"}
    """
    if not event or not isinstance(event, dict):
        return PydeckClickResult.empty()

    clicked_coordinate: Coordinate | None = None
    coord = event.get("coordinate")
    if isinstance(coord, (list, tuple)) and len(coord) >= 2:
        clicked_coordinate = (float(coord[0]), float(coord[1]))

    clicked_object: dict[str, Any] | None = None
    if event.get("type") and event["type"] != "click":
        clicked_object = {k: v for k, v in event.items() if k not in ("coordinate", "eventType")}

    return PydeckClickResult(
        clicked_object=clicked_object,
        clicked_coordinate=clicked_coordinate,
        event_type=str(event.get("eventType") or "click"),
    )


def render_pydeck_map(
    deck: pdk.Deck,
    key: str,
    height: int = AppConfig.MAP_HEIGHT_PX,
    events: list[str] | None = None,
) -> PydeckClickResult:
    """Render the Pydeck map and return the newest event, deduplicated.

    Args:
        deck: Configured pydeck.Deck object
        key: Unique key for this component instance
        height: Height in pixels
        events: deck.gl events to capture (defaults to clicks only)

    Returns:
        PydeckClickResult, empty when nothing new happened.
    """
    last_click_key = f"_deckgl_last_click_{key}"
    if last_click_key not in st.session_state:
        st.session_state[last_click_key] = None

    # MUST pass events to enable event capture
    event = st_deckgl(deck, key=key, height=height, events=events or ["click"])
    result = parse_deck_event(event)
    if result.clicked_coordinate is None and result.clicked_object is None:
        return PydeckClickResult.empty()

    # Streamlit replays the last component value on every rerun
    click_id = _get_click_id(result=result)
    if click_id == st.session_state.get(last_click_key):
        return PydeckClickResult.empty()
    st.session_state[last_click_key] = click_id

    logger.debug(
        f"Deck event: type={result.event_type}, object={result.is_object_click}, coord={result.clicked_coordinate}"
    )
    return result


def _get_click_id(result: PydeckClickResult) -> str:
    """Generate unique ID for event deduplication."""
    parts = [result.event_type]
    obj = result.clicked_object
    if obj and obj.get("id"):
        parts.append(f"{obj.get('type', '')}_{obj['id']}")
    if result.clicked_coordinate:
        parts.append(f"coord_{result.clicked_coordinate[0]:.7f}_{result.clicked_coordinate[1]:.7f}")
    return "_".join(parts)
