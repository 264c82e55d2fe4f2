"""Render primitives - the flat, surface-agnostic description of one frame.

The core hands the rendering surface a list of primitives (point sets, rings,
paths) tagged with style and role. MapRenderer turns them into pydeck layers;
tests inspect them directly.

Order of the returned list (back to front):
    layers -> drawing previews -> overlay connections -> overlay nodes
    -> close-point highlight -> rubber band
"""

from dataclasses import dataclass
from typing import Any

from map_annotator.constants import OverlayConfig, RenderConfig, StyleConfig
from map_annotator.core.geo_calculator import GeoCalculator
from map_annotator.model.geometry import Coordinate
from map_annotator.model.layer import Layer, LayerKind, rgb_to_hex
from map_annotator.model.layer_store import LayerStore
from map_annotator.model.network_overlay import NetworkDisplayState, NetworkOverlay, NodeRecord, hit_test
from map_annotator.ui.drawing_session import DrawingSession


class Role:
    """What a primitive represents; drives z-order and pickability."""

    LAYER = "layer"
    PREVIEW = "preview"
    HIGHLIGHT = "highlight"
    RUBBER_BAND = "rubber_band"
    OVERLAY_NODE = "overlay_node"
    OVERLAY_LINK = "overlay_link"


@dataclass(frozen=True)
class PointSet:
    positions: tuple[Coordinate, ...]
    color: tuple[int, ...]
    radius: float
    role: str
    display: str = StyleConfig.DEFAULT_POINT_DISPLAY
    icon_kind: str = StyleConfig.DEFAULT_ICON_KIND
    filled: bool = True
    layer_id: str | None = None
    tooltips: tuple[str, ...] = ()


@dataclass(frozen=True)
class Ring:
    ring: tuple[Coordinate, ...]
    color: tuple[int, ...]
    role: str
    fill_alpha: int = StyleConfig.POLYGON_FILL_ALPHA
    layer_id: str | None = None
    tooltip: str = ""


@dataclass(frozen=True)
class Path:
    path: tuple[Coordinate, ...]
    color: tuple[int, ...]
    role: str
    width: float = StyleConfig.LINE_WIDTH_PX
    layer_id: str | None = None
    tooltip: str = ""


Primitive = PointSet | Ring | Path


@dataclass
class RubberBand:
    """Transient drag-selected rectangle."""

    start: Coordinate
    end: Coordinate | None = None

    def ring(self) -> tuple[Coordinate, ...]:
        end = self.end or self.start
        (x1, y1), (x2, y2) = self.start, end
        return ((x1, y1), (x2, y1), (x2, y2), (x1, y2), (x1, y1))


# =============================================================================
# TOOLTIPS
# =============================================================================


def layer_tooltip(layer: Layer, coordinate: Coordinate) -> str:
    lines = [f"<b>{layer.label}</b>", f"Type: {layer.kind.value}", f"Color: {rgb_to_hex(layer.style.color)}"]
    if layer.kind == LayerKind.POINT:
        lines.append(f"Radius: {layer.style.radius}px")
    if layer.measurement is not None and layer.kind in (LayerKind.AREA, LayerKind.DISTANCE):
        lines.append(f"{layer.kind.value.capitalize()}: {layer.measurement}")
    lines.append(f"Coordinates: {coordinate[1]:.6f}, {coordinate[0]:.6f}")
    return "<br/>".join(lines)


def node_tooltip(record: NodeRecord) -> str:
    lines = [f"<b>Node {record.id}</b>", f"SNR: {record.signal_metric:g} dB"]
    if record.rssi is not None:
        lines.append(f"RSSI: {record.rssi:g} dBm")
    if record.distance is not None:
        lines.append(f"Distance: {record.distance:g}")
    if record.hop_count is not None:
        lines.append(f"Hops: {record.hop_count}")
    lines.append(f"Connections: {len(record.connections)}")
    return "<br/>".join(lines)


# =============================================================================
# BUILDERS
# =============================================================================


def layer_primitives(layer: Layer) -> list[Primitive]:
    """Exhaustive dispatch on kind -> item type."""
    color = tuple(layer.style.color)
    if layer.kind == LayerKind.POINT:
        positions = tuple(item.position for item in layer.geometry)
        return [
            PointSet(
                positions=positions,
                color=color,
                radius=layer.style.radius,
                role=Role.LAYER,
                display=layer.style.point_display,
                icon_kind=layer.style.icon_kind,
                layer_id=layer.id,
                tooltips=tuple(layer_tooltip(layer, p) for p in positions),
            )
        ]
    if layer.kind in (LayerKind.POLYGON, LayerKind.SECTOR, LayerKind.AREA):
        return [
            Ring(
                ring=item.ring,
                color=color,
                role=Role.LAYER,
                layer_id=layer.id,
                tooltip=layer_tooltip(layer, item.ring[0]),
            )
            for item in layer.geometry
        ]
    if layer.kind in (LayerKind.LINE, LayerKind.DISTANCE, LayerKind.AZIMUTH):
        return [
            Path(
                path=item.path,
                color=color,
                role=Role.LAYER,
                layer_id=layer.id,
                tooltip=layer_tooltip(layer, item.path[0]),
            )
            for item in layer.geometry
        ]
    raise ValueError(f"Unhandled layer kind {layer.kind}")


def preview_primitives(session: DrawingSession) -> list[Primitive]:
    """In-progress geometry for the active drawing mode."""
    mode = session.mode
    vertices = list(session.vertices)
    cursor = session.cursor
    primitives: list[Primitive] = []

    if mode in ("line", "distance", "azimuth", "polygon", "area") and vertices:
        if mode == "area":
            color = tuple(StyleConfig.PREVIEW_AREA_COLOR)
        elif mode == "distance":
            color = tuple(StyleConfig.PREVIEW_DISTANCE_COLOR)
        else:
            color = tuple(StyleConfig.PREVIEW_LINE_COLOR)

        if mode in ("polygon", "area") and len(vertices) >= 2:
            ring = vertices + ([cursor] if cursor else []) + [vertices[0]]
            primitives.append(
                Ring(ring=tuple(ring), color=color, role=Role.PREVIEW, fill_alpha=StyleConfig.PREVIEW_FILL_ALPHA)
            )
        if len(vertices) >= 2:
            primitives.append(Path(path=tuple(vertices), color=color, role=Role.PREVIEW))
        if cursor:
            primitives.append(Path(path=(vertices[-1], cursor), color=color, role=Role.PREVIEW))
        primitives.append(
            PointSet(
                positions=tuple(vertices),
                color=tuple(StyleConfig.PREVIEW_VERTEX_COLOR),
                radius=StyleConfig.PREVIEW_VERTEX_RADIUS,
                role=Role.PREVIEW,
            )
        )

    if mode == "sector" and session.sector.center is not None:
        sector = session.sector
        if sector.start_angle is not None and cursor:
            wedge = GeoCalculator.sector_polygon(
                center=sector.center,
                radius=sector.radius,
                start_angle=sector.start_angle,
                end_angle=GeoCalculator.planar_angle(sector.center, cursor),
            )
            primitives.append(
                Ring(
                    ring=tuple(wedge),
                    color=tuple(StyleConfig.SECTOR_PREVIEW_COLOR),
                    role=Role.PREVIEW,
                    fill_alpha=StyleConfig.PREVIEW_FILL_ALPHA,
                )
            )
        elif cursor:
            primitives.append(
                Path(path=(sector.center, cursor), color=tuple(StyleConfig.SECTOR_PREVIEW_COLOR), role=Role.PREVIEW)
            )
        primitives.append(
            PointSet(
                positions=(sector.center,),
                color=tuple(StyleConfig.SECTOR_CENTER_COLOR),
                radius=StyleConfig.PREVIEW_VERTEX_RADIUS,
                role=Role.PREVIEW,
            )
        )
    return primitives


def highlight_primitives(session: DrawingSession) -> list[Primitive]:
    """First-vertex highlight plus ring while the cursor can close the shape."""
    if not session.near_close_point or not session.vertices:
        return []
    first = session.vertices[0]
    color = tuple(StyleConfig.CLOSE_POINT_COLOR)
    return [
        PointSet(positions=(first,), color=color, radius=StyleConfig.CLOSE_POINT_RADIUS, role=Role.HIGHLIGHT),
        PointSet(
            positions=(first,), color=color, radius=StyleConfig.CLOSE_RING_RADIUS, role=Role.HIGHLIGHT, filled=False
        ),
    ]


def overlay_primitives(
    overlay: NetworkOverlay | None, records: list[NodeRecord], display: NetworkDisplayState
) -> list[Primitive]:
    if overlay is None or not display.visible:
        return []
    primitives: list[Primitive] = [
        Path(
            path=segment.path,
            color=tuple(OverlayConfig.CONNECTION_COLOR),
            role=Role.OVERLAY_LINK,
            width=OverlayConfig.CONNECTION_WIDTH_PX,
        )
        for segment in overlay.connections
    ]
    for item in overlay.items:
        # Hovering a node resolves its record by position
        record = hit_test(overlay=overlay, records=records, coordinate=item.position)
        primitives.append(
            PointSet(
                positions=(item.position,),
                color=tuple(item.color),
                radius=display.radius,
                role=Role.OVERLAY_NODE,
                display=display.display,
                icon_kind=display.icon_kind,
                tooltips=(node_tooltip(record),) if record is not None else (),
            )
        )
    return primitives


def build_primitives(
    store: LayerStore,
    session: DrawingSession | None = None,
    overlay: NetworkOverlay | None = None,
    records: list[NodeRecord] | None = None,
    network_display: NetworkDisplayState | None = None,
    rubber_band: RubberBand | None = None,
) -> list[Primitive]:
    """Assemble one frame. Only the first MAX_RENDERED_LAYERS visible layers are drawn."""
    primitives: list[Primitive] = []
    for layer in store.visible_layers(limit=RenderConfig.MAX_RENDERED_LAYERS):
        primitives.extend(layer_primitives(layer))
    if session is not None:
        primitives.extend(preview_primitives(session))
    primitives.extend(overlay_primitives(overlay, records or [], network_display or NetworkDisplayState()))
    if session is not None:
        primitives.extend(highlight_primitives(session))
    if rubber_band is not None:
        primitives.append(
            Ring(
                ring=rubber_band.ring(),
                color=tuple(StyleConfig.RUBBER_BAND_LINE),
                role=Role.RUBBER_BAND,
                fill_alpha=StyleConfig.RUBBER_BAND_FILL[3],
            )
        )
    return primitives


def primitive_counts(primitives: list[Primitive]) -> dict[str, Any]:
    """Per-role counts, used in render-cycle log lines."""
    counts: dict[str, Any] = {}
    for primitive in primitives:
        counts[primitive.role] = counts.get(primitive.role, 0) + 1
    return counts
