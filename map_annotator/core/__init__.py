"""Core foundation classes for geometry, camera fitting and editing.

- GeoCalculator: Geodesic and planar calculations (distance, azimuth, area, sectors)
- viewport_fitter: ViewportState plus focus and rubber-band zoom
- DragTranslateEngine: Rigid-body moves of drawn layers

Importers and the feed client pull in shapely/requests; import them directly:
    from map_annotator.core.feature_importer import import_file
    from map_annotator.core.feed_parser import fetch_feed_snapshot
"""

from map_annotator.core.geo_calculator import GeoCalculator
from map_annotator.core.viewport_fitter import (
    BoundingBox,
    ViewportState,
    focus_on_layer,
    reset_view,
    rubber_band_zoom,
)
from map_annotator.core.drag_translate import DragGesture, DragTranslateEngine

__all__ = [
    # Geo calculator
    "GeoCalculator",
    # Viewport
    "BoundingBox",
    "ViewportState",
    "focus_on_layer",
    "reset_view",
    "rubber_band_zoom",
    # Drag
    "DragGesture",
    "DragTranslateEngine",
]
