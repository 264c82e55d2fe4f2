"""Viewport fitting - camera parameters from layer extents or drag rectangles.

Two independent heuristics live here:
- focus_on_layer: stepped zoom table over the layer's bounding-box span,
  with a softer column for uploaded data and padding for multi-point layers
- rubber_band_zoom: continuous log2 formula over the selected rectangle

The two give different zooms for equal spans.
"""

import logging
from dataclasses import dataclass, replace
from math import log2

from map_annotator.constants import FocusZoomConfig, MapConfig, RubberBandConfig
from map_annotator.model.geometry import Coordinate
from map_annotator.model.layer import Layer, LayerKind, LayerOrigin

logger = logging.getLogger(__name__)


def clamp_zoom(zoom: float) -> float:
    return max(MapConfig.MIN_ZOOM, min(MapConfig.MAX_ZOOM, zoom))


@dataclass(frozen=True)
class ViewportState:
    """Map camera. Zoom is clamped to [MIN_ZOOM, MAX_ZOOM] on construction."""

    longitude: float = MapConfig.DEFAULT_CENTER_LON
    latitude: float = MapConfig.DEFAULT_CENTER_LAT
    zoom: float = MapConfig.DEFAULT_ZOOM
    pitch: float = MapConfig.DEFAULT_PITCH
    bearing: float = MapConfig.DEFAULT_BEARING

    def __post_init__(self) -> None:
        object.__setattr__(self, "zoom", clamp_zoom(self.zoom))

    def zoomed_in(self) -> "ViewportState":
        return replace(self, zoom=self.zoom + MapConfig.ZOOM_STEP)

    def zoomed_out(self) -> "ViewportState":
        return replace(self, zoom=self.zoom - MapConfig.ZOOM_STEP)

    def to_dict(self) -> dict[str, float]:
        return {
            "longitude": self.longitude,
            "latitude": self.latitude,
            "zoom": self.zoom,
            "pitch": self.pitch,
            "bearing": self.bearing,
        }

    @classmethod
    def from_dict(cls, data: dict[str, float]) -> "ViewportState":
        return cls(
            longitude=float(data["longitude"]),
            latitude=float(data["latitude"]),
            zoom=float(data["zoom"]),
            pitch=float(data.get("pitch", MapConfig.DEFAULT_PITCH)),
            bearing=float(data.get("bearing", MapConfig.DEFAULT_BEARING)),
        )


@dataclass(frozen=True)
class BoundingBox:
    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    @property
    def center(self) -> Coordinate:
        return ((self.min_lon + self.max_lon) / 2, (self.min_lat + self.max_lat) / 2)

    @property
    def max_span(self) -> float:
        return max(self.max_lon - self.min_lon, self.max_lat - self.min_lat)

    @staticmethod
    def of(coordinates: list[Coordinate]) -> "BoundingBox | None":
        """Bounding box over coordinates, or None when there are none."""
        if not coordinates:
            return None
        lons = [c[0] for c in coordinates]
        lats = [c[1] for c in coordinates]
        return BoundingBox(min_lon=min(lons), min_lat=min(lats), max_lon=max(lons), max_lat=max(lats))


def _table_zoom(max_span: float, origin: str) -> int:
    column = 1 if origin == LayerOrigin.DRAWN.value else 2
    for row in FocusZoomConfig.SPAN_THRESHOLDS:
        if max_span < row[0]:
            return row[column]
    return FocusZoomConfig.FALLBACK_ZOOM[origin]


def focus_zoom(layer: Layer, max_span: float) -> float:
    """Zoom level for focusing `layer` given its bounding-box span."""
    origin = layer.origin.value
    is_point_layer = layer.kind == LayerKind.POINT
    if is_point_layer and len(layer.geometry) == 1:
        zoom = FocusZoomConfig.SINGLE_POINT_ZOOM[origin]
    else:
        zoom = _table_zoom(max_span=max_span, origin=origin)

    if is_point_layer and len(layer.geometry) > 1:
        zoom -= FocusZoomConfig.MULTI_POINT_PADDING
    else:
        zoom -= FocusZoomConfig.DEFAULT_PADDING
    return clamp_zoom(zoom)


def focus_on_layer(layer: Layer, viewport: ViewportState) -> ViewportState:
    """Center on the layer's bounding box with a table-driven zoom.

    Returns the unchanged viewport if the layer has no coordinates.
    Pitch and bearing are reset to 0.
    """
    bbox = BoundingBox.of(layer.coordinates())
    if bbox is None:
        logger.info(f"[VIEW] Focus skipped, {layer.id} has no coordinates")
        return viewport
    lon, lat = bbox.center
    zoom = focus_zoom(layer=layer, max_span=bbox.max_span)
    logger.info(f"[VIEW] Focus {layer.id}: center=({lon:.5f}, {lat:.5f}) span={bbox.max_span:.5f} zoom={zoom}")
    return ViewportState(longitude=lon, latitude=lat, zoom=zoom, pitch=0, bearing=0)


def rubber_band_zoom(start: Coordinate, end: Coordinate, viewport: ViewportState) -> ViewportState:
    """Fit the camera to a drag-selected rectangle.

    zoom = BASE_ZOOM - log2(max_diff * SPAN_SCALE), clamped; a zero-size
    rectangle zooms all the way in.
    """
    lon = (start[0] + end[0]) / 2
    lat = (start[1] + end[1]) / 2
    max_diff = max(abs(end[0] - start[0]), abs(end[1] - start[1]))
    if max_diff == 0:
        zoom = float(MapConfig.MAX_ZOOM)
    else:
        zoom = RubberBandConfig.BASE_ZOOM - log2(max_diff * RubberBandConfig.SPAN_SCALE)
    return replace(viewport, longitude=lon, latitude=lat, zoom=clamp_zoom(zoom))


def reset_view() -> ViewportState:
    return ViewportState()
