"""User interface components for the map annotator.

File Structure (layout-based naming):
- left_panel.py: Sidebar with tools, layer list, network and data sections
- center_map.py: Pydeck map built from render primitives

Core Components:
- drawing_session.py: DrawingStateMachine (8 states) + DrawingSession
- click_handlers.py: Per-mode map click processing
- render_primitives.py: Layers, previews, overlay and highlights as primitives
- actions.py: Camera, two-click map tools, import and feed actions
"""

from map_annotator.ui.actions import (
    MapTool,
    MapToolState,
    bump_map_version,
    focus_layer,
    handle_move_click,
    handle_zoom_box_click,
    handle_zoom_box_hover,
    import_uploaded_file,
    poll_feed,
    reload_map,
)
from map_annotator.ui.center_map import MapRenderer
from map_annotator.ui.click_handlers import handle_map_click, handle_pointer_move
from map_annotator.ui.drawing_session import DrawingSession, DrawingStateMachine, StreamlitUIListener
from map_annotator.ui.left_panel import SidebarRenderer
from map_annotator.ui.render_primitives import build_primitives, primitive_counts

__all__ = [
    "DrawingStateMachine",
    "DrawingSession",
    "StreamlitUIListener",
    "MapRenderer",
    "SidebarRenderer",
    "MapTool",
    "MapToolState",
    "build_primitives",
    "primitive_counts",
    "handle_map_click",
    "handle_pointer_move",
    "bump_map_version",
    "focus_layer",
    "handle_move_click",
    "handle_zoom_box_click",
    "handle_zoom_box_hover",
    "import_uploaded_file",
    "poll_feed",
    "reload_map",
]
