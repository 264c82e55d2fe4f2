"""Click handlers for drawing on the map.

Each drawing mode has one handler. A handler either records an intermediate
click on the state machine, or builds the final geometry, commits it to the
LayerStore and sends `finish`. No Layer is ever committed on an intermediate
click.

Dispatch:
    handle_map_click() -> CLICK_HANDLERS[mode](sm, store, coordinate, zoom)
"""

import logging
from collections.abc import Callable

from map_annotator.constants import DrawConfig
from map_annotator.core.geo_calculator import GeoCalculator
from map_annotator.model.geometry import Coordinate, PathItem, PointItem, RingItem
from map_annotator.model.layer import Layer, LayerKind
from map_annotator.model.layer_store import LayerStore
from map_annotator.ui.drawing_session import DrawingStateMachine

logger = logging.getLogger(__name__)


# =============================================================================
# MEASUREMENT LABELS
# =============================================================================


def format_distance(a: Coordinate, b: Coordinate) -> str:
    return f"{GeoCalculator.haversine_distance_km(a, b):.2f} km"


def format_azimuth(a: Coordinate, b: Coordinate) -> str:
    return f"{GeoCalculator.azimuth_deg(a, b):.1f}°"


def format_area(ring: list[Coordinate]) -> str:
    return f"{GeoCalculator.polygon_area_km2(ring):.2f} km²"


def format_sweep(start_angle: float, end_angle: float) -> str:
    return f"{GeoCalculator.sector_sweep_deg(start_angle, end_angle):.1f}°"


# =============================================================================
# PER-MODE HANDLERS
# =============================================================================


def _commit(
    sm: DrawingStateMachine, store: LayerStore, kind: LayerKind, geometry: tuple, measurement: str | None
) -> Layer:
    layer = store.commit_drawn(kind=kind, geometry=geometry, measurement=measurement)
    logger.info(f"[DRAW] {kind.value} complete: {layer.label} {measurement or ''}")
    sm.send("finish")
    return layer


def handle_point_click(sm: DrawingStateMachine, store: LayerStore, coordinate: Coordinate, zoom: float) -> Layer:
    return _commit(sm, store, LayerKind.POINT, (PointItem(position=coordinate),), None)


def handle_path_click(
    sm: DrawingStateMachine, store: LayerStore, coordinate: Coordinate, zoom: float
) -> Layer | None:
    """line / distance / azimuth: commit once the second vertex arrives."""
    vertices = sm.session.vertices + [coordinate]
    if len(vertices) < DrawConfig.PATH_VERTEX_COUNT:
        sm.send("add_vertex", coordinate=coordinate)
        return None

    kind = LayerKind(sm.mode)
    a, b = vertices[0], vertices[1]
    if kind == LayerKind.DISTANCE:
        measurement = format_distance(a, b)
    elif kind == LayerKind.AZIMUTH:
        measurement = format_azimuth(a, b)
    else:
        measurement = None
    return _commit(sm, store, kind, (PathItem(path=tuple(vertices)),), measurement)


def handle_ring_click(
    sm: DrawingStateMachine, store: LayerStore, coordinate: Coordinate, zoom: float
) -> Layer | None:
    """polygon / area: close on the first vertex, otherwise keep adding."""
    session = sm.session
    if session.can_close_ring() and session.is_near_first_vertex(coordinate=coordinate, zoom=zoom):
        ring = list(session.vertices) + [session.vertices[0]]
        kind = LayerKind(sm.mode)
        measurement = format_area(ring) if kind == LayerKind.AREA else None
        return _commit(sm, store, kind, (RingItem(ring=tuple(ring)),), measurement)

    sm.send("add_vertex", coordinate=coordinate)
    return None


def handle_sector_click(
    sm: DrawingStateMachine, store: LayerStore, coordinate: Coordinate, zoom: float
) -> Layer | None:
    """sector: center, radius, start angle, then end angle commits."""
    sector = sm.session.sector
    if sector.next_step() != "end_angle":
        sm.send("advance_sector", coordinate=coordinate)
        return None

    end_angle = GeoCalculator.planar_angle(sector.center, coordinate)
    ring = GeoCalculator.sector_polygon(
        center=sector.center,
        radius=sector.radius,
        start_angle=sector.start_angle,
        end_angle=end_angle,
    )
    measurement = format_sweep(sector.start_angle, end_angle)
    return _commit(sm, store, LayerKind.SECTOR, (RingItem(ring=tuple(ring)),), measurement)


ClickHandler = Callable[[DrawingStateMachine, LayerStore, Coordinate, float], "Layer | None"]

CLICK_HANDLERS: dict[str, ClickHandler] = {
    "point": handle_point_click,
    "polygon": handle_ring_click,
    "area": handle_ring_click,
    "line": handle_path_click,
    "distance": handle_path_click,
    "azimuth": handle_path_click,
    "sector": handle_sector_click,
}
assert set(CLICK_HANDLERS.keys()) == set(DrawConfig.MODES)


# =============================================================================
# DISPATCH
# =============================================================================


def handle_map_click(sm: DrawingStateMachine, store: LayerStore, coordinate: Coordinate, zoom: float) -> Layer | None:
    """Route a map click to the active mode's handler.

    Returns:
        The committed Layer, or None for idle / intermediate clicks.
    """
    handler = CLICK_HANDLERS.get(sm.mode)
    if handler is None:
        return None
    coordinate = (float(coordinate[0]), float(coordinate[1]))
    logger.info(f"[DRAW] Click in {sm.mode} at ({coordinate[0]:.6f}, {coordinate[1]:.6f})")
    return handler(sm, store, coordinate, zoom)


def handle_pointer_move(sm: DrawingStateMachine, coordinate: Coordinate | None, zoom: float) -> None:
    """Update hover state; None means the pointer left the map."""
    if coordinate is None:
        sm.clear_cursor()
        return
    sm.update_cursor(coordinate=(float(coordinate[0]), float(coordinate[1])), zoom=zoom)
