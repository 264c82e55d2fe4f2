"""Configuration constants for Map Annotator.

All configurable parameters are centralized here for easy tuning.

Classes:
    AppConfig: UI application settings
    EntityPrefixes: ID prefixes for stored entities
    MapConfig: Default map view parameters and basemap styles
    DrawConfig: Drawing session parameters (close tolerance, sector arc)
    FocusZoomConfig: Zoom table for focus-on-layer
    RubberBandConfig: Rubber-band zoom formula parameters
    StyleConfig: Per-kind default colors/icons and preview colors
    OverlayConfig: Live network overlay styling and signal thresholds
    FolderConfig: Layer folder labels and collapsible sections
    FeedConfig: Live feed connection defaults
    PersistenceConfig: Snapshot version and backup location
    RenderConfig: Render surface limits
"""

from pathlib import Path

# Package root directory (where map_annotator/ lives)
PACKAGE_DIR = Path(__file__).parent

# Project root directory (parent of map_annotator/)
PROJECT_ROOT = PACKAGE_DIR.parent

# Output directory for saved workspaces and backups
OUTPUT_DIR = PROJECT_ROOT / "output"

# Mean Earth radius in kilometers (spherical approximation)
EARTH_RADIUS_KM = 6371.0


class AppConfig:
    """UI application settings."""

    TITLE = "Map Annotator - Draw, Measure and Track"
    ICON = "🗺️"
    LAYOUT = "wide"
    MAP_HEIGHT_PX = 720


class EntityPrefixes:
    """ID prefixes for stored entities."""

    LAYER = "layer"


class MapConfig:
    """Default map view parameters."""

    # Initial center: geographic center of India
    DEFAULT_CENTER_LON = 78.9629
    DEFAULT_CENTER_LAT = 20.5937
    DEFAULT_ZOOM = 5
    DEFAULT_PITCH = 0
    DEFAULT_BEARING = 0

    MIN_ZOOM = 1
    MAX_ZOOM = 20
    ZOOM_STEP = 1

    # Click picking tolerance on the deck.gl canvas
    PICKING_RADIUS_PX = 8

    DEFAULT_MAP_STYLE = "mapbox://styles/mapbox/satellite-v9"
    MAP_STYLES = {
        "Satellite": "mapbox://styles/mapbox/satellite-v9",
        "Streets": "mapbox://styles/mapbox/streets-v12",
        "Light": "mapbox://styles/mapbox/light-v11",
        "Dark": "mapbox://styles/mapbox/dark-v11",
    }
    assert DEFAULT_MAP_STYLE in MAP_STYLES.values()
    assert MIN_ZOOM <= DEFAULT_ZOOM <= MAX_ZOOM


class DrawConfig:
    """Drawing session parameters."""

    # Close-ring tolerance: BASE_TOLERANCE_DEG * max(MIN_ZOOM_FACTOR, 1 / 2**(zoom - REFERENCE_ZOOM))
    BASE_TOLERANCE_DEG = 0.05
    MIN_ZOOM_FACTOR = 0.1
    REFERENCE_ZOOM = 5

    # Sector arc is sampled with SECTOR_ARC_SEGMENTS + 1 points
    SECTOR_ARC_SEGMENTS = 32

    # Vertices needed before a ring may be closed on the first vertex
    MIN_RING_VERTICES = 2

    # line / distance / azimuth commit after exactly this many clicks
    PATH_VERTEX_COUNT = 2

    # Drawing modes in toolbar order
    MODES = ["point", "polygon", "line", "sector", "distance", "area", "azimuth"]


class FocusZoomConfig:
    """Zoom table for focus-on-layer, keyed by origin (drawn, uploaded)."""

    SINGLE_POINT_ZOOM = {"drawn": 17, "uploaded": 15}

    # (max_span upper bound, drawn zoom, uploaded zoom), evaluated in order
    SPAN_THRESHOLDS = [
        (0.001, 18, 16),
        (0.01, 17, 15),
        (0.1, 15, 13),
        (0.5, 13, 11),
        (2.0, 11, 9),
        (10.0, 9, 7),
    ]
    FALLBACK_ZOOM = {"drawn": 7, "uploaded": 5}

    MULTI_POINT_PADDING = 2
    DEFAULT_PADDING = 1

    assert [t[0] for t in SPAN_THRESHOLDS] == sorted(t[0] for t in SPAN_THRESHOLDS)


class RubberBandConfig:
    """Rubber-band zoom: zoom = BASE_ZOOM - log2(max_diff * SPAN_SCALE)."""

    BASE_ZOOM = 14
    SPAN_SCALE = 100


class StyleConfig:
    """Visual colors and styling.

    Colors are RGB lists [R, G, B] (0-255), RGBA where an alpha is given.
    """

    DEFAULT_COLORS = {
        "point": "#ff0000",
        "polygon": "#00ff00",
        "line": "#ff0000",
        "sector": "#ff8800",
        "distance": "#0000ff",
        "area": "#00ffff",
        "azimuth": "#ff00ff",
    }
    assert set(DEFAULT_COLORS.keys()) == set(DrawConfig.MODES)

    DEFAULT_ICONS = {
        "point": "mdi:map-marker",
        "polygon": "mdi:vector-square",
        "line": "mdi:vector-line",
        "sector": "mdi:pie-chart",
        "distance": "mdi:ruler",
        "area": "mdi:vector-square",
        "azimuth": "mdi:compass",
    }
    assert set(DEFAULT_ICONS.keys()) == set(DrawConfig.MODES)

    UPLOADED_ICONS = {
        "point": "mdi:map-marker",
        "polygon": "mdi:vector-polygon",
        "line": "mdi:vector-line",
    }

    LAYER_NAMES = {
        "point": "Point",
        "polygon": "Polygon",
        "line": "Line",
        "sector": "Sector",
        "distance": "Distance",
        "area": "Area",
        "azimuth": "Azimuth",
    }
    assert set(LAYER_NAMES.keys()) == set(DrawConfig.MODES)

    TOOL_EMOJIS = {
        "point": "📍",
        "polygon": "⬠",
        "line": "〰️",
        "sector": "🥧",
        "distance": "📏",
        "area": "📐",
        "azimuth": "🧭",
    }
    assert set(TOOL_EMOJIS.keys()) == set(DrawConfig.MODES)

    DEFAULT_POINT_RADIUS = 12
    MIN_POINT_RADIUS = 1
    MAX_POINT_RADIUS = 100
    POINT_DISPLAY_MODES = ["circle", "icon"]
    ICON_KINDS = ["marker", "pin", "star", "circle"]
    DEFAULT_POINT_DISPLAY = "circle"
    DEFAULT_ICON_KIND = "marker"

    LINE_WIDTH_PX = 3
    POLYGON_FILL_ALPHA = 100
    PREVIEW_FILL_ALPHA = 50

    # Drawing previews
    PREVIEW_VERTEX_COLOR = [255, 165, 0]
    PREVIEW_AREA_COLOR = [0, 255, 0]
    PREVIEW_DISTANCE_COLOR = [0, 0, 255]
    PREVIEW_LINE_COLOR = [255, 165, 0]
    PREVIEW_VERTEX_RADIUS = 8
    CLOSE_POINT_COLOR = [0, 255, 0]
    CLOSE_POINT_RADIUS = 20
    CLOSE_RING_RADIUS = 40
    SECTOR_CENTER_COLOR = [255, 0, 0]
    SECTOR_PREVIEW_COLOR = [255, 136, 0]
    RUBBER_BAND_FILL = [0, 123, 255, 32]
    RUBBER_BAND_LINE = [0, 123, 255, 200]


class OverlayConfig:
    """Live network overlay styling and signal-quality thresholds."""

    # Quality bands on the signal metric (SNR, dB), evaluated top-down with ">"
    QUALITY_THRESHOLDS = [
        (20, "excellent"),
        (15, "good"),
        (10, "fair"),
    ]
    FALLBACK_QUALITY = "poor"

    QUALITY_COLORS = {
        "excellent": [0, 255, 0],
        "good": [255, 255, 0],
        "fair": [255, 165, 0],
        "poor": [255, 0, 0],
    }
    assert set(QUALITY_COLORS.keys()) == {q for _, q in QUALITY_THRESHOLDS} | {FALLBACK_QUALITY}

    CONNECTION_COLOR = [0, 123, 255, 180]
    CONNECTION_WIDTH_PX = 2

    DEFAULT_VISIBLE = True
    DEFAULT_RADIUS = 15
    DEFAULT_DISPLAY = "icon"
    DEFAULT_ICON_KIND = "marker"


class FolderConfig:
    """Layer folder labels and collapsible sidebar sections."""

    UNTITLED = "untitled"
    DRAWN = "drawn"
    UPLOADED = "uploaded"
    TOOLS = "tools"
    NETWORK = "network"

    DEFAULT_LABELS = {
        UNTITLED: "Untitled",
        DRAWN: "Drawn Items",
        UPLOADED: "Uploaded Items",
        TOOLS: "Tools",
    }
    BUILTIN_FOLDERS = [UNTITLED, DRAWN, UPLOADED]
    SECTIONS = [UNTITLED, DRAWN, UPLOADED, TOOLS, NETWORK]
    CUSTOM_PREFIX = "folder"


class FeedConfig:
    """Live feed connection defaults."""

    # HTTP endpoint returning the latest {"nodes": [...]} snapshot
    DEFAULT_URL = "http://localhost:8080/nodes"
    TIMEOUT_S = 5
    REFRESH_INTERVAL_S = 2
    NODES_KEY = "nodes"


class PersistenceConfig:
    """Workspace snapshot version and backup location."""

    SNAPSHOT_VERSION = "1.0"
    BACKUP_DIR = OUTPUT_DIR / "map_annotator" / "backups"
    BACKUP_FILENAME = "workspace_backup.json"


class RenderConfig:
    """Render surface limits."""

    # Only the first MAX_RENDERED_LAYERS visible layers are drawn
    MAX_RENDERED_LAYERS = 50
