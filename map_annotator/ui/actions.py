"""UI Actions - Action functions that change the workspace from the UI.

Centralizes everything the sidebar and the map event loop trigger that is not
a drawing click:
- Map reloads (reload_map, bump_map_version)
- Camera (focus_layer, zoom_in, zoom_out, reset_camera)
- Two-click map tools (rubber-band zoom, move layer)
- File import and workspace load
- Live feed polling
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

import requests
import streamlit as st

from map_annotator.constants import FeedConfig
from map_annotator.core.drag_translate import DragTranslateEngine
from map_annotator.core.feature_importer import import_file
from map_annotator.core.feed_parser import fetch_feed_snapshot
from map_annotator.core.viewport_fitter import focus_on_layer, reset_view, rubber_band_zoom
from map_annotator.model.geometry import Coordinate
from map_annotator.model.message import (
    FeedErrorMessage,
    FileLoadErrorMessage,
    ImportResultMessage,
    NotDraggableMessage,
)
from map_annotator.model.network_overlay import NetworkOverlay, NodeRecord, build_overlay
from map_annotator.model.workspace import Workspace
from map_annotator.ui.render_primitives import RubberBand

logger = logging.getLogger(__name__)


# =============================================================================
# MAP RELOAD
# =============================================================================


def bump_map_version() -> None:
    """Increment map_version so the next render mounts a fresh deck.gl component.

    A fresh component has no memory of previous click events.
    """
    old_version = st.session_state.get("map_version", 0)
    st.session_state.map_version = old_version + 1
    logger.info(f"[MAP] Bumped map_version: {old_version} -> {old_version + 1}")


def reload_map(before: "Callable[[], None] | None" = None) -> None:
    """Run an optional callback, bump the map version and rerun the script."""
    if before is not None:
        before()
    bump_map_version()
    st.rerun()


# =============================================================================
# CAMERA
# =============================================================================


def focus_layer(workspace: Workspace, layer_id: str) -> None:
    layer = workspace.store.get(layer_id=layer_id)
    workspace.viewport = focus_on_layer(layer=layer, viewport=workspace.viewport)
    logger.info(f"[CAMERA] Focused {layer.label}: zoom={workspace.viewport.zoom}")


def zoom_in(workspace: Workspace) -> None:
    workspace.viewport = workspace.viewport.zoomed_in()


def zoom_out(workspace: Workspace) -> None:
    workspace.viewport = workspace.viewport.zoomed_out()


def reset_camera(workspace: Workspace) -> None:
    workspace.viewport = reset_view()
    logger.info("[CAMERA] Reset to default view")


# =============================================================================
# TWO-CLICK MAP TOOLS
# =============================================================================


class MapTool:
    """What a map click means when no drawing mode is active."""

    SELECT = "select"
    ZOOM_BOX = "zoom_box"
    MOVE = "move"

    ALL = [SELECT, ZOOM_BOX, MOVE]
    LABELS = {SELECT: "👆 Select", ZOOM_BOX: "🔍 Zoom to box", MOVE: "✋ Move layer"}


@dataclass
class MapToolState:
    """Per-session state of the two-click map tools.

    The component reports clicks, not press/drag/release, so a rubber band is
    the rectangle between two clicks and a move is pick-layer then drop.
    """

    tool: str = MapTool.SELECT
    rubber_band: RubberBand | None = None
    drag_engine: DragTranslateEngine | None = None

    def set_tool(self, tool: str) -> None:
        if tool not in MapTool.ALL:
            raise ValueError(f"Unknown map tool '{tool}'")
        self.tool = tool
        self.abandon()

    def abandon(self) -> None:
        """Drop any half-finished rubber band or move."""
        self.rubber_band = None
        if self.drag_engine is not None:
            self.drag_engine.end()

    @property
    def is_pending(self) -> bool:
        return self.rubber_band is not None or (self.drag_engine is not None and self.drag_engine.is_dragging)


def handle_zoom_box_click(state: MapToolState, workspace: Workspace, coordinate: Coordinate) -> bool:
    """First click anchors the band; second click zooms to it.

    Returns:
        True when the viewport changed.
    """
    if state.rubber_band is None:
        state.rubber_band = RubberBand(start=coordinate)
        return False
    start = state.rubber_band.start
    state.rubber_band = None
    workspace.viewport = rubber_band_zoom(start=start, end=coordinate, viewport=workspace.viewport)
    logger.info(f"[CAMERA] Rubber-band zoom to {workspace.viewport.zoom:.2f}")
    return True


def handle_zoom_box_hover(state: MapToolState, coordinate: Coordinate) -> None:
    if state.rubber_band is not None:
        state.rubber_band.end = coordinate


def handle_move_click(
    state: MapToolState, workspace: Workspace, coordinate: Coordinate, layer_id: str | None
) -> bool:
    """Pick a layer on the first click, drop it at the second.

    Returns:
        True when a layer was moved.
    """
    if state.drag_engine is None or state.drag_engine.store is not workspace.store:
        state.drag_engine = DragTranslateEngine(store=workspace.store)
    engine = state.drag_engine

    if engine.is_dragging:
        engine.move(coordinate=coordinate)
        engine.end()
        return True

    if layer_id is None or layer_id not in workspace.store:
        return False
    if not engine.start(layer_id=layer_id, coordinate=coordinate):
        NotDraggableMessage(label=workspace.store.get(layer_id=layer_id).label).display()
    return False


# =============================================================================
# FILES
# =============================================================================


def import_uploaded_file(workspace: Workspace, filename: str, content: bytes) -> int:
    """Import a GeoJSON or CSV upload as uploaded layers.

    Returns:
        Number of layers added.
    """
    try:
        batches = import_file(filename=filename, content=content)
    except ValueError as e:
        FileLoadErrorMessage(filename=filename, error=str(e)).display()
        logger.error(f"Failed to import {filename}: {e}")
        return 0

    added = [layer for layer in (workspace.store.import_batch(batch=b) for b in batches) if layer is not None]
    ImportResultMessage(filename=filename, layer_count=len(added)).display()
    if len(added) == 1:
        focus_layer(workspace=workspace, layer_id=added[0].id)
    return len(added)


def load_workspace_file(workspace: Workspace, filename: str, data: dict) -> bool:
    try:
        Workspace.from_dict(data=data)
    except (KeyError, TypeError, ValueError) as e:
        FileLoadErrorMessage(filename=filename, error=str(e)).display()
        logger.error(f"Failed to load workspace {filename}: {e}")
        return False
    workspace.apply_dict(data=data)
    logger.info(f"[WORKSPACE] Loaded {filename}: {len(workspace.store)} layer(s)")
    return True


# =============================================================================
# LIVE FEED
# =============================================================================


def poll_feed(url: str = FeedConfig.DEFAULT_URL) -> tuple[list[NodeRecord], NetworkOverlay | None] | None:
    """Fetch one feed snapshot.

    Returns:
        (records, overlay) on success, None when the endpoint failed.
        A message without a node list yields ([], None).
    """
    try:
        records = fetch_feed_snapshot(url=url)
    except requests.RequestException as e:
        FeedErrorMessage(url=url, error=str(e)).display()
        logger.warning(f"[FEED] Poll failed: {e}")
        return None
    if records is None:
        return [], None
    return records, build_overlay(records=records)
