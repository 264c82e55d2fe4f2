"""Map Annotator - Draw, measure and track on an interactive map.

Draw points, polygons, lines and sectors, measure distances, areas and
bearings, import GeoJSON/CSV and watch a live node network on top.

Run: streamlit run map_annotator/app.py
"""

import logging
import traceback

import streamlit as st

from map_annotator.constants import AppConfig, FeedConfig
from map_annotator.model.workspace import Workspace
from map_annotator.ui import (
    DrawingStateMachine,
    MapRenderer,
    MapTool,
    MapToolState,
    SidebarRenderer,
    build_primitives,
    focus_layer,
    handle_map_click,
    handle_move_click,
    handle_pointer_move,
    handle_zoom_box_click,
    handle_zoom_box_hover,
    poll_feed,
    primitive_counts,
    reload_map,
)
from map_annotator.ui.pydeck_click_handler import PydeckClickResult, render_pydeck_map

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# =============================================================================
# SESSION STATE
# =============================================================================


def init_session_state() -> None:
    """Initialize session state with the workspace and UI components."""
    if "workspace" not in st.session_state:
        # Pick up where the last session left off
        st.session_state.workspace = Workspace.restore_backup()

    if "state_machine" not in st.session_state:
        sm, session = DrawingStateMachine.create()
        st.session_state.state_machine = sm
        st.session_state.session = session

    if "map_tools" not in st.session_state:
        st.session_state.map_tools = MapToolState()

    if "node_records" not in st.session_state:
        st.session_state.node_records = []
        st.session_state.network_overlay = None

    if "_upload_counter" not in st.session_state:
        st.session_state._upload_counter = 0

    if "map_version" not in st.session_state:
        st.session_state.map_version = 0


def reset_ui_state() -> None:
    """Reset UI state to initial while preserving the workspace.

    Called when an error occurs to recover gracefully. Resets:
    - State machine to the idle "none" state
    - Two-click map tools
    - Map version (to clear any stale map state)

    Preserves:
    - Workspace (layers, folders, camera, settings)
    """
    logger.info("Resetting UI state due to error recovery")

    sm, session = DrawingStateMachine.create()
    st.session_state.state_machine = sm
    st.session_state.session = session
    st.session_state.map_tools = MapToolState()

    st.session_state.map_version = st.session_state.get("map_version", 0) + 1

    logger.info("UI state reset complete - workspace preserved")


# =============================================================================
# LIVE FEED
# =============================================================================


@st.fragment(run_every=FeedConfig.REFRESH_INTERVAL_S)
def _live_feed_fragment(url: str) -> None:
    """Poll the feed on a timer; rerun the app only when the snapshot changed."""
    result = poll_feed(url=url)
    if result is None:
        return
    records, overlay = result
    if records == st.session_state.node_records:
        return
    st.session_state.node_records = records
    st.session_state.network_overlay = overlay
    st.rerun(scope="app")


# =============================================================================
# MAP
# =============================================================================


def _render_map() -> None:
    """Render the map and route the newest event."""
    sm: DrawingStateMachine = st.session_state.state_machine
    workspace: Workspace = st.session_state.workspace
    tools: MapToolState = st.session_state.map_tools

    primitives = build_primitives(
        store=workspace.store,
        session=sm.session,
        overlay=st.session_state.network_overlay,
        records=st.session_state.node_records,
        network_display=workspace.network_display,
        rubber_band=tools.rubber_band,
    )
    map_version = st.session_state.get("map_version", 0)
    logger.info(f"[RENDER] state={sm.get_state_name()}, map_version={map_version}, {primitive_counts(primitives)}")

    renderer = MapRenderer(viewport=workspace.viewport, map_style=workspace.map_style)
    wants_hover = sm.is_drawing or tools.is_pending
    result = render_pydeck_map(
        deck=renderer.render(primitives=primitives),
        key=f"annotation_map_{map_version}",
        events=["click", "hover"] if wants_hover else ["click"],
    )
    _dispatch_event(result=result)


def _dispatch_event(result: PydeckClickResult) -> None:
    sm: DrawingStateMachine = st.session_state.state_machine
    workspace: Workspace = st.session_state.workspace
    tools: MapToolState = st.session_state.map_tools
    coordinate = result.clicked_coordinate
    zoom = workspace.viewport.zoom

    if result.is_hover:
        if sm.is_drawing:
            handle_pointer_move(sm=sm, coordinate=coordinate, zoom=zoom)
        elif tools.tool == MapTool.ZOOM_BOX and coordinate is not None:
            handle_zoom_box_hover(state=tools, coordinate=coordinate)
        else:
            return
        st.rerun()

    if coordinate is None:
        return

    # Drawing clicks pass through layers and overlay nodes
    if sm.is_drawing:
        handle_map_click(sm=sm, store=workspace.store, coordinate=coordinate, zoom=zoom)
        st.rerun()

    if tools.tool == MapTool.ZOOM_BOX:
        handle_zoom_box_click(state=tools, workspace=workspace, coordinate=coordinate)
        reload_map()
    if tools.tool == MapTool.MOVE:
        handle_move_click(state=tools, workspace=workspace, coordinate=coordinate, layer_id=result.layer_id)
        reload_map()

    if result.layer_id and result.layer_id in workspace.store:
        reload_map(before=lambda: focus_layer(workspace=workspace, layer_id=result.layer_id))


# =============================================================================
# MAIN
# =============================================================================


def main() -> None:
    """Application entry point."""
    st.set_page_config(page_title=AppConfig.TITLE, page_icon=AppConfig.ICON, layout=AppConfig.LAYOUT)
    init_session_state()

    st.title(AppConfig.TITLE)

    try:
        _run_app_ui()
    except Exception as e:
        # Log full traceback for debugging
        error_msg = f"{type(e).__name__}: {e}"
        full_traceback = traceback.format_exc()
        logger.error(f"[UI] UI error caught: {error_msg}\n{full_traceback}")

        st.error(f"⚠️ [UI] Something went wrong: {error_msg}")

        # Reset UI state while preserving the workspace
        reset_ui_state()

        if st.button("🔄 Reset and Continue", type="primary"):
            st.rerun()


def _run_app_ui() -> None:
    """Run the main application UI. Separated for error handling wrapper."""
    sm: DrawingStateMachine = st.session_state.state_machine
    workspace: Workspace = st.session_state.workspace
    tools: MapToolState = st.session_state.map_tools

    logger.info(f"[MAIN] Render cycle starting: state={sm.get_state_name()}, layers={len(workspace.store)}")

    # Focus requested from the layer list on the previous run
    focus_id = st.session_state.pop("_focus_layer_id", None)
    if focus_id is not None and focus_id in workspace.store:
        reload_map(before=lambda: focus_layer(workspace=workspace, layer_id=focus_id))

    sidebar = SidebarRenderer(state_machine=sm, workspace=workspace, tools=tools)
    actions = sidebar.render()

    if actions["live_feed"]:
        _live_feed_fragment(url=actions["feed_url"])

    _render_map()

    workspace.perform_backup()


if __name__ == "__main__":
    main()
