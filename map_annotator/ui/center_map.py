"""MapRenderer - Pydeck map rendering for the annotation map.

Turns render primitives into GPU-accelerated deck.gl layers:
- Point sets as ScatterplotLayer (circle display) or TextLayer glyphs (icon display)
- Rings as PolygonLayer
- Paths as PathLayer

Key conventions:
- Uses [lon, lat] coordinate order (GeoJSON standard)
- Colors as RGBA lists [R, G, B, A] (0-255)
- Data prepared as list[dict] for GPU streaming
- pickable=True only on committed layers and overlay nodes
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import pydeck as pdk

from map_annotator.constants import MapConfig, StyleConfig
from map_annotator.core.viewport_fitter import ViewportState
from map_annotator.ui.render_primitives import Path, PointSet, Primitive, Ring, Role

logger = logging.getLogger(__name__)

# Glyph drawn for each icon kind when a point set uses the "icon" display
ICON_GLYPHS = {
    "marker": "▼",
    "pin": "📌",
    "star": "★",
    "circle": "●",
}
assert set(ICON_GLYPHS.keys()) == set(StyleConfig.ICON_KINDS)

PICKABLE_ROLES = {Role.LAYER, Role.OVERLAY_NODE}


@dataclass
class LayerCollection:
    """Manages Pydeck layers with correct z-ordering.

    Z-order (back to front): layers → previews → overlay → highlights → rubber band

    Overlay nodes sit above drawn layers so they keep hover priority.
    """

    layers: list[pdk.Layer] = field(default_factory=list)
    previews: list[pdk.Layer] = field(default_factory=list)
    overlay: list[pdk.Layer] = field(default_factory=list)
    highlights: list[pdk.Layer] = field(default_factory=list)
    rubber_band: list[pdk.Layer] = field(default_factory=list)

    def bucket(self, role: str) -> list[pdk.Layer]:
        return {
            Role.LAYER: self.layers,
            Role.PREVIEW: self.previews,
            Role.OVERLAY_LINK: self.overlay,
            Role.OVERLAY_NODE: self.overlay,
            Role.HIGHLIGHT: self.highlights,
            Role.RUBBER_BAND: self.rubber_band,
        }[role]

    def get_ordered_layers(self) -> list[pdk.Layer]:
        """Return all layers in correct z-order (back to front)."""
        return self.layers + self.previews + self.overlay + self.highlights + self.rubber_band


def _rgba(color: tuple[int, ...], alpha: int = 255) -> list[int]:
    if len(color) == 4:
        return list(color)
    return [color[0], color[1], color[2], alpha]


class MapRenderer:
    """Renders render primitives on a Pydeck map.

    Example:
        renderer = MapRenderer(viewport=workspace.viewport, map_style=workspace.map_style)
        deck = renderer.render(primitives=build_primitives(store=workspace.store))
    """

    def __init__(self, viewport: ViewportState | None = None, map_style: str = MapConfig.DEFAULT_MAP_STYLE) -> None:
        self.viewport = viewport or ViewportState()
        self.map_style = map_style

    def get_view_state(self) -> pdk.ViewState:
        """Create Pydeck ViewState from the current viewport."""
        return pdk.ViewState(
            latitude=self.viewport.latitude,
            longitude=self.viewport.longitude,
            zoom=self.viewport.zoom,
            pitch=self.viewport.pitch,
            bearing=self.viewport.bearing,
        )

    def render(self, primitives: list[Primitive]) -> pdk.Deck:
        """Render one frame.

        Primitives of the same role and shape are batched into one deck.gl layer.
        """
        collection = LayerCollection()
        for (role, shape, variant), rows in self._group_rows(primitives).items():
            collection.bucket(role).append(self._create_layer(role=role, shape=shape, variant=variant, rows=rows))

        layers = collection.get_ordered_layers()
        logger.debug(f"[MAP] Rendering {len(primitives)} primitive(s) in {len(layers)} layer(s)")
        return pdk.Deck(
            map_style=self.map_style,
            map_provider="mapbox",
            initial_view_state=self.get_view_state(),
            layers=layers,
            tooltip=self._create_tooltip_config(),
            parameters={"pickingRadius": MapConfig.PICKING_RADIUS_PX},
        )

    # =========================================================================
    # DATA ROWS
    # =========================================================================

    @staticmethod
    def _group_rows(primitives: list[Primitive]) -> dict[tuple[str, str, str], list[dict[str, Any]]]:
        groups: dict[tuple[str, str, str], list[dict[str, Any]]] = {}
        for primitive in primitives:
            if isinstance(primitive, PointSet):
                variant = primitive.display if primitive.filled else "outline"
                key = (primitive.role, "points", variant)
                for index, position in enumerate(primitive.positions):
                    tooltip = primitive.tooltips[index] if index < len(primitive.tooltips) else ""
                    groups.setdefault(key, []).append(
                        {
                            "type": primitive.role,
                            "id": primitive.layer_id or "",
                            "position": [position[0], position[1]],
                            "color": _rgba(primitive.color),
                            "radius": primitive.radius,
                            "glyph": ICON_GLYPHS[primitive.icon_kind],
                            "tooltip": tooltip,
                        }
                    )
            elif isinstance(primitive, Ring):
                groups.setdefault((primitive.role, "ring", ""), []).append(
                    {
                        "type": primitive.role,
                        "id": primitive.layer_id or "",
                        "polygon": [list(c) for c in primitive.ring],
                        "fill_color": list(primitive.color[:3]) + [primitive.fill_alpha],
                        "line_color": _rgba(primitive.color),
                        "tooltip": primitive.tooltip,
                    }
                )
            elif isinstance(primitive, Path):
                groups.setdefault((primitive.role, "path", ""), []).append(
                    {
                        "type": primitive.role,
                        "id": primitive.layer_id or "",
                        "path": [list(c) for c in primitive.path],
                        "color": _rgba(primitive.color),
                        "width": primitive.width,
                        "tooltip": primitive.tooltip,
                    }
                )
            else:
                raise TypeError(f"Unknown primitive {type(primitive).__name__}")
        return groups

    # =========================================================================
    # LAYERS
    # =========================================================================

    @staticmethod
    def _create_layer(role: str, shape: str, variant: str, rows: list[dict[str, Any]]) -> pdk.Layer:
        pickable = role in PICKABLE_ROLES
        layer_id = f"{role}_{shape}_{variant}" if variant else f"{role}_{shape}"

        if shape == "points" and variant == "icon":
            return pdk.Layer(
                "TextLayer",
                rows,
                get_position="position",
                get_text="glyph",
                get_color="color",
                get_size="radius",
                size_units="pixels",
                character_set="auto",
                get_text_anchor="'middle'",
                get_alignment_baseline="'bottom'",
                pickable=pickable,
                id=layer_id,
            )
        if shape == "points":
            filled = variant != "outline"
            return pdk.Layer(
                "ScatterplotLayer",
                rows,
                get_position="position",
                get_radius="radius",
                radius_units="pixels",
                get_fill_color="color",
                get_line_color="color",
                filled=filled,
                stroked=True,
                line_width_min_pixels=1 if filled else 2,
                pickable=pickable,
                auto_highlight=pickable,
                highlight_color=[255, 255, 255, 120],
                id=layer_id,
            )
        if shape == "ring":
            return pdk.Layer(
                "PolygonLayer",
                rows,
                get_polygon="polygon",
                get_fill_color="fill_color",
                get_line_color="line_color",
                line_width_min_pixels=2,
                pickable=pickable,
                auto_highlight=pickable,
                highlight_color=[255, 255, 255, 80],
                id=layer_id,
            )
        if shape == "path":
            return pdk.Layer(
                "PathLayer",
                rows,
                get_path="path",
                get_color="color",
                get_width="width",
                width_units="pixels",
                width_min_pixels=1,
                pickable=pickable,
                id=layer_id,
            )
        raise ValueError(f"Unknown primitive shape '{shape}'")

    def _create_tooltip_config(self) -> dict[str, str | dict[str, str]]:
        """Create Pydeck tooltip configuration from the per-row tooltip html."""
        return {
            "html": "{tooltip}",
            "style": {
                "backgroundColor": "rgba(255, 255, 255, 0.95)",
                "color": "#333",
                "padding": "6px 10px",
                "borderRadius": "4px",
            },
        }
