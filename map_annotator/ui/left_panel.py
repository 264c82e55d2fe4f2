"""Sidebar UI renderer for the map annotator.

Renders the left sidebar with:
- Drawing tools and the two-click map tools
- Camera controls and basemap style
- Layer list grouped by folder, with per-layer editing
- Live network overlay settings
- Import, save/load and "start fresh"

All rendering logic is encapsulated to keep the main app.py concise.
"""

import json
import logging
from datetime import datetime
from typing import Any

import streamlit as st

from map_annotator.constants import DrawConfig, FeedConfig, FolderConfig, MapConfig, StyleConfig
from map_annotator.model.layer import Layer, LayerKind, rgb_to_hex
from map_annotator.model.message import DrawingContextMessage, FileLoadErrorMessage
from map_annotator.model.workspace import Workspace
from map_annotator.ui.actions import (
    MapTool,
    MapToolState,
    bump_map_version,
    import_uploaded_file,
    load_workspace_file,
    reload_map,
    reset_camera,
    zoom_in,
    zoom_out,
)
from map_annotator.ui.drawing_session import DrawingStateMachine

logger = logging.getLogger(__name__)


@st.dialog("Start Fresh")
def _confirm_start_fresh_dialog(workspace: Workspace) -> None:
    """Ask before dropping every layer and folder."""
    st.write(f"This removes **{len(workspace.store)} layer(s)** and all custom folders.")

    col_yes, col_no = st.columns(2)
    with col_yes:
        if st.button("🗑️ Yes, start fresh", type="primary", use_container_width=True):
            st.session_state._pending_start_fresh = True
            st.rerun()
    with col_no:
        if st.button("✖️ Cancel", use_container_width=True):
            st.rerun()


class SidebarRenderer:
    """Renders the sidebar UI and returns action flags.

    Most controls apply their change to the workspace directly and reload the
    map. Only actions the main loop must handle are returned.
    """

    def __init__(self, state_machine: DrawingStateMachine, workspace: Workspace, tools: MapToolState) -> None:
        self.sm = state_machine
        self.workspace = workspace
        self.store = workspace.store
        self.tools = tools

    def render(self) -> dict[str, Any]:
        """Render the complete sidebar.

        Returns:
            Dict with keys: live_feed (bool), feed_url (str)
        """
        if st.session_state.get("_pending_start_fresh"):
            st.session_state._pending_start_fresh = False
            self.tools.abandon()
            self.workspace.start_fresh()
            self._end_drawing_and_reload()

        with st.sidebar:
            self._render_tools()
            st.divider()
            self._render_camera()
            st.divider()
            self._render_layers()
            st.divider()
            actions = self._render_network()
            st.divider()
            self._render_data()
            return actions

    def _end_drawing_and_reload(self) -> None:
        """Drop any gesture in progress, then reload the map.

        Runs last: with the UI listener attached the cancel transition reruns the script.
        """
        bump_map_version()
        self.sm.try_transition("cancel")
        st.rerun()

    # =========================================================================
    # Section header
    # =========================================================================

    def _section_header(self, section: str, title: str) -> bool:
        """Render a collapsible section header; returns True when expanded."""
        collapsed = self.workspace.collapsed_sections.get(section, False)
        arrow = "▸" if collapsed else "▾"
        if st.button(f"{arrow} {title}", key=f"section_{section}", type="tertiary"):
            self.workspace.toggle_section(section=section)
            st.rerun()
        return not collapsed

    # =========================================================================
    # Tools
    # =========================================================================

    def _render_tools(self) -> None:
        if not self._section_header(section=FolderConfig.TOOLS, title="🛠️ Tools"):
            return

        cols = st.columns(4)
        for index, mode in enumerate(DrawConfig.MODES):
            is_active = self.sm.mode == mode
            with cols[index % 4]:
                if st.button(
                    StyleConfig.TOOL_EMOJIS[mode],
                    key=f"tool_{mode}",
                    type="primary" if is_active else "secondary",
                    help=f"{'Stop' if is_active else 'Draw'} {StyleConfig.LAYER_NAMES[mode].lower()}",
                    use_container_width=True,
                ):
                    self.tools.abandon()
                    bump_map_version()
                    # NOTE: State transition triggers st.rerun() via listener
                    self.sm.select_mode(mode=mode)

        DrawingContextMessage(
            mode=self.sm.mode,
            vertex_count=len(self.sm.session.vertices),
            sector_step=self.sm.session.sector.next_step(),
        ).display()

        if self.sm.is_drawing and st.button("✖️ Cancel Drawing", use_container_width=True):
            bump_map_version()
            self.sm.try_transition("cancel")

        tool = st.radio(
            "Map tool",
            options=MapTool.ALL,
            format_func=lambda t: MapTool.LABELS[t],
            index=MapTool.ALL.index(self.tools.tool),
            horizontal=True,
            disabled=self.sm.is_drawing,
            help="Zoom to box: click two corners. Move layer: click a drawn layer, then its new place.",
        )
        if tool != self.tools.tool:
            self.tools.set_tool(tool=tool)
            reload_map()
        if self.tools.rubber_band is not None:
            st.caption("🔍 Click the opposite corner of the box")
        elif self.tools.drag_engine is not None and self.tools.drag_engine.is_dragging:
            st.caption("✋ Click where the layer should go")

    # =========================================================================
    # Camera
    # =========================================================================

    def _render_camera(self) -> None:
        col_in, col_out, col_reset = st.columns(3)
        with col_in:
            if st.button("➕", help="Zoom in", use_container_width=True):
                reload_map(before=lambda: zoom_in(workspace=self.workspace))
        with col_out:
            if st.button("➖", help="Zoom out", use_container_width=True):
                reload_map(before=lambda: zoom_out(workspace=self.workspace))
        with col_reset:
            if st.button("🎯", help="Reset camera to the default view", use_container_width=True):
                reload_map(before=lambda: reset_camera(workspace=self.workspace))

        style_names = list(MapConfig.MAP_STYLES.keys())
        current = next(
            (name for name, url in MapConfig.MAP_STYLES.items() if url == self.workspace.map_style), style_names[0]
        )
        selected = st.selectbox("Basemap", options=style_names, index=style_names.index(current))
        if MapConfig.MAP_STYLES[selected] != self.workspace.map_style:
            self.workspace.set_map_style(style=MapConfig.MAP_STYLES[selected])
            st.rerun()

    # =========================================================================
    # Layers
    # =========================================================================

    def _render_layers(self) -> None:
        st.markdown(f"**🗂️ Layers ({len(self.store)})**")
        for folder in self.store.folders.keys():
            label = self.store.folders.labels[folder]
            layers = self.store.in_folder(folder=folder)
            if not self._section_header(section=folder, title=f"{label} ({len(layers)})"):
                continue
            if folder not in FolderConfig.BUILTIN_FOLDERS:
                self._render_folder_controls(folder=folder, label=label)
            if not layers:
                st.caption("Empty")
            for layer in layers:
                self._render_layer_row(layer=layer)

        with st.form("add_folder", clear_on_submit=True, border=False):
            col_name, col_add = st.columns([3, 1])
            with col_name:
                name = st.text_input("New folder", placeholder="New folder", label_visibility="collapsed")
            with col_add:
                submitted = st.form_submit_button("➕")
            if submitted and name.strip():
                self.store.add_folder(label=name.strip())
                st.rerun()

    def _render_folder_controls(self, folder: str, label: str) -> None:
        with st.popover("⚙️ Folder", use_container_width=False):
            new_label = st.text_input("Name", value=label, key=f"folder_name_{folder}")
            if new_label.strip() and new_label != label:
                self.store.rename_folder(key=folder, label=new_label.strip())
                st.rerun()
            if st.button("🗑️ Remove folder", key=f"folder_remove_{folder}", help="Layers move to Untitled"):
                self.store.remove_folder(key=folder)
                self.workspace.collapsed_sections.pop(folder, None)
                st.rerun()

    def _render_layer_row(self, layer: Layer) -> None:
        col_vis, col_name, col_edit = st.columns([1, 5, 1])
        with col_vis:
            visible = st.checkbox(
                "visible", value=layer.visible, key=f"vis_{layer.id}", label_visibility="collapsed"
            )
            if visible != layer.visible:
                self.store.set_visible(layer_id=layer.id, visible=visible)
                st.rerun()
        with col_name:
            caption = f"{StyleConfig.TOOL_EMOJIS[layer.kind.value]} {layer.label}"
            if layer.measurement:
                caption += f" · {layer.measurement}"
            if st.button(caption, key=f"focus_{layer.id}", type="tertiary", help="Zoom to this layer"):
                st.session_state._focus_layer_id = layer.id
                st.rerun()
        with col_edit:
            with st.popover("⚙️"):
                self._render_layer_editor(layer=layer)

    def _render_layer_editor(self, layer: Layer) -> None:
        """Single-field editors; each change replaces the layer once."""
        label = st.text_input("Name", value=layer.label, key=f"label_{layer.id}")
        if label.strip() and label != layer.label:
            self.store.rename(layer_id=layer.id, label=label.strip())
            st.rerun()

        color = st.color_picker("Color", value=rgb_to_hex(layer.style.color), key=f"color_{layer.id}")
        if color.lower() != rgb_to_hex(layer.style.color):
            self.store.set_color(layer_id=layer.id, color=color)
            st.rerun()

        if layer.kind == LayerKind.POINT:
            radius = st.slider(
                "Size",
                min_value=StyleConfig.MIN_POINT_RADIUS,
                max_value=StyleConfig.MAX_POINT_RADIUS,
                value=layer.style.radius,
                key=f"radius_{layer.id}",
            )
            if radius != layer.style.radius:
                self.store.set_radius(layer_id=layer.id, radius=radius)
                st.rerun()
            display = st.radio(
                "Display",
                options=StyleConfig.POINT_DISPLAY_MODES,
                index=StyleConfig.POINT_DISPLAY_MODES.index(layer.style.point_display),
                horizontal=True,
                key=f"display_{layer.id}",
            )
            if display != layer.style.point_display:
                self.store.set_point_display(layer_id=layer.id, point_display=display)
                st.rerun()
            if layer.style.point_display == "icon":
                icon_kind = st.selectbox(
                    "Icon",
                    options=StyleConfig.ICON_KINDS,
                    index=StyleConfig.ICON_KINDS.index(layer.style.icon_kind),
                    key=f"icon_kind_{layer.id}",
                )
                if icon_kind != layer.style.icon_kind:
                    self.store.set_icon_kind(layer_id=layer.id, icon_kind=icon_kind)
                    st.rerun()

        folders = self.store.folders.keys()
        folder = st.selectbox(
            "Folder",
            options=folders,
            format_func=lambda key: self.store.folders.labels[key],
            index=folders.index(layer.group) if layer.group in folders else 0,
            key=f"folder_{layer.id}",
        )
        if folder != layer.group:
            self.store.move_to_folder(layer_id=layer.id, folder=folder)
            st.rerun()

        if st.button("🗑️ Delete", key=f"delete_{layer.id}", type="primary"):
            self.store.remove(layer_id=layer.id)
            reload_map()

    # =========================================================================
    # Network overlay
    # =========================================================================

    def _render_network(self) -> dict[str, Any]:
        actions: dict[str, Any] = {
            "live_feed": st.session_state.get("live_feed", False),
            "feed_url": st.session_state.get("feed_url", FeedConfig.DEFAULT_URL),
        }
        if not self._section_header(section=FolderConfig.NETWORK, title="📡 Network"):
            return actions

        actions["feed_url"] = st.text_input("Feed URL", value=actions["feed_url"], key="feed_url")
        actions["live_feed"] = st.toggle(
            "Live updates",
            value=actions["live_feed"],
            key="live_feed",
            help=f"Poll the feed every {FeedConfig.REFRESH_INTERVAL_S}s",
        )

        display_state = self.workspace.network_display
        visible = st.checkbox("Show nodes", value=display_state.visible, key="net_visible")
        radius = st.slider(
            "Node size",
            min_value=StyleConfig.MIN_POINT_RADIUS,
            max_value=StyleConfig.MAX_POINT_RADIUS,
            value=display_state.radius,
            key="net_radius",
        )
        display = st.radio(
            "Node display",
            options=StyleConfig.POINT_DISPLAY_MODES,
            index=StyleConfig.POINT_DISPLAY_MODES.index(display_state.display),
            horizontal=True,
            key="net_display",
        )
        icon_kind = st.selectbox(
            "Node icon",
            options=StyleConfig.ICON_KINDS,
            index=StyleConfig.ICON_KINDS.index(display_state.icon_kind),
            key="net_icon_kind",
            disabled=display != "icon",
        )
        display_state.visible = visible
        display_state.radius = radius
        display_state.display = display
        display_state.icon_kind = icon_kind

        records = st.session_state.get("node_records") or []
        st.caption(f"{len(records)} node(s) in the last snapshot")
        return actions

    # =========================================================================
    # Data
    # =========================================================================

    def _render_data(self) -> None:
        with st.expander("💾 Data", expanded=False):
            upload_counter = st.session_state.get("_upload_counter", 0)

            uploaded = st.file_uploader(
                "📂 Import GeoJSON / CSV",
                type=["geojson", "json", "csv"],
                help="Points, polygons and lines become one uploaded layer per geometry type",
                key=f"import_uploader_{upload_counter}",
            )
            if uploaded is not None:
                import_uploaded_file(workspace=self.workspace, filename=uploaded.name, content=uploaded.getvalue())
                st.session_state._upload_counter = upload_counter + 1
                reload_map()

            workspace_file = st.file_uploader(
                "📥 Load workspace",
                type=["json"],
                help="Load a previously saved workspace",
                key=f"workspace_uploader_{upload_counter}",
            )
            if workspace_file is not None:
                try:
                    data = json.load(workspace_file)
                except (json.JSONDecodeError, UnicodeDecodeError) as e:
                    data = None
                    FileLoadErrorMessage(filename=workspace_file.name, error=str(e)).display()
                st.session_state._upload_counter = upload_counter + 1
                if isinstance(data, dict):
                    self.tools.abandon()
                    load_workspace_file(workspace=self.workspace, filename=workspace_file.name, data=data)
                elif data is not None:
                    FileLoadErrorMessage(filename=workspace_file.name, error="expected a JSON object").display()
                self._end_drawing_and_reload()

            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            st.download_button(
                "💾 Save workspace",
                data=json.dumps(self.workspace.to_dict(), indent=2, ensure_ascii=False),
                file_name=f"map_annotations_{timestamp}.json",
                mime="application/json",
                use_container_width=True,
            )

            if st.button(
                "🗑️ Start Fresh",
                use_container_width=True,
                disabled=len(self.store) == 0,
                help="Nothing to clear" if len(self.store) == 0 else "Remove all layers and folders",
            ):
                _confirm_start_fresh_dialog(workspace=self.workspace)
