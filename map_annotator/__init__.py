"""Map Annotator - Draw, measure and track on an interactive map.

A Streamlit + pydeck annotation tool featuring:
- Drawing tools for points, polygons, lines and sectors
- Measurement tools for distance, area and azimuth
- GeoJSON/CSV import, folders and per-layer styling
- A live node network overlay polled from a JSON feed
- State machine-based drawing session

Modules:
    core: Geometry kernel, viewport fitting, drag-translate, importers, feed parsing
    model: Data structures (geometry items, Layer, LayerStore, Workspace, overlay)
    ui: Streamlit interface components (state machine, renderers, sidebar)

Example:
    from map_annotator.core import GeoCalculator
    from map_annotator.model import LayerStore, LayerKind, PointItem
"""
