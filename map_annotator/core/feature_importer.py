"""Feature importers - GeoJSON and CSV files to tagged import batches.

Importers sit outside the drawing core: they turn a file into at most three
ImportBatch records (points, polygons, lines) that the LayerStore turns into
uploaded layers. Geometry is normalized through Shapely so Multi* geometries
are exploded into their parts and polygon rings come back closed.

Only the exterior ring of a polygon is kept. Features with unsupported or
empty geometry are skipped with a log line.
"""

import csv
import io
import json
import logging
from typing import Any

from shapely.geometry import LineString, MultiLineString, MultiPoint, MultiPolygon, Point, Polygon, shape
from shapely.geometry.base import BaseGeometry

from map_annotator.model.geometry import PathItem, PointItem, RingItem
from map_annotator.model.layer import LayerKind
from map_annotator.model.layer_store import ImportBatch

logger = logging.getLogger(__name__)

LAT_COLUMNS = ("lat", "latitude", "y")
LON_COLUMNS = ("lng", "lon", "long", "longitude", "x")


def _explode(geom: BaseGeometry) -> list[BaseGeometry]:
    if isinstance(geom, (MultiPoint, MultiPolygon, MultiLineString)):
        return list(geom.geoms)
    return [geom]


def _xy(coords: Any) -> tuple[tuple[float, float], ...]:
    return tuple((float(c[0]), float(c[1])) for c in coords)


def batches_from_geojson(data: dict[str, Any], source_name: str | None = None) -> list[ImportBatch]:
    """Split a GeoJSON FeatureCollection (or single Feature) into batches.

    Args:
        data: Decoded GeoJSON object
        source_name: File stem used to name the layers ("{stem} Points")

    Returns:
        Non-empty batches in points, polygons, lines order.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected a GeoJSON object, got {type(data).__name__}")
    if data.get("type") == "FeatureCollection":
        features = data.get("features") or []
    elif data.get("type") == "Feature":
        features = [data]
    else:
        raise ValueError(f"Expected a GeoJSON Feature or FeatureCollection, got {data.get('type')!r}")

    points: list[PointItem] = []
    polygons: list[RingItem] = []
    lines: list[PathItem] = []

    for feature in features:
        raw_geometry = feature.get("geometry")
        if not raw_geometry:
            continue
        properties = dict(feature.get("properties") or {})
        try:
            geom = shape(raw_geometry)
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"[IMPORT] Skipping feature with invalid geometry: {e}")
            continue
        if geom.is_empty:
            continue

        for part in _explode(geom):
            if isinstance(part, Point):
                points.append(PointItem(position=(float(part.x), float(part.y)), properties=properties))
            elif isinstance(part, Polygon):
                polygons.append(RingItem(ring=_xy(part.exterior.coords), properties=properties))
            elif isinstance(part, LineString):
                lines.append(PathItem(path=_xy(part.coords), properties=properties))
            else:
                logger.info(f"[IMPORT] Unsupported geometry type {part.geom_type}, skipped")

    prefix = source_name or "GeoJSON"
    batches = [
        ImportBatch(kind=LayerKind.POINT, items=tuple(points), name=f"{prefix} Points"),
        ImportBatch(kind=LayerKind.POLYGON, items=tuple(polygons), name=f"{prefix} Polygons"),
        ImportBatch(kind=LayerKind.LINE, items=tuple(lines), name=f"{prefix} Lines"),
    ]
    result = [batch for batch in batches if batch.items]
    logger.info(
        f"[IMPORT] GeoJSON {prefix}: {len(points)} point(s), {len(polygons)} polygon(s), {len(lines)} line(s)"
    )
    return result


def batches_from_geojson_text(text: str | bytes, source_name: str | None = None) -> list[ImportBatch]:
    return batches_from_geojson(data=json.loads(text), source_name=source_name)


def _find_column(fieldnames: list[str], candidates: tuple[str, ...]) -> str | None:
    lowered = {name.strip().lower(): name for name in fieldnames}
    for candidate in candidates:
        if candidate in lowered:
            return lowered[candidate]
    return None


def batches_from_csv_text(text: str, source_name: str | None = None) -> list[ImportBatch]:
    """Read point rows from CSV text with auto-detected lat/lon columns.

    Every other column is kept as a property. Rows whose coordinates do not
    parse are skipped. Returns an empty list when no coordinate columns exist.
    """
    reader = csv.DictReader(io.StringIO(text))
    fieldnames = reader.fieldnames or []
    lat_col = _find_column(fieldnames, LAT_COLUMNS)
    lon_col = _find_column(fieldnames, LON_COLUMNS)
    if lat_col is None or lon_col is None:
        logger.warning(f"[IMPORT] CSV has no latitude/longitude columns: {fieldnames}")
        return []

    points = []
    for row_number, row in enumerate(reader, start=2):
        try:
            lon = float(row[lon_col])
            lat = float(row[lat_col])
        except (TypeError, ValueError):
            logger.info(f"[IMPORT] CSV row {row_number} has no usable coordinates, skipped")
            continue
        properties = {k: v for k, v in row.items() if k not in (lat_col, lon_col) and k is not None}
        points.append(PointItem(position=(lon, lat), properties=properties))

    if not points:
        return []
    return [ImportBatch(kind=LayerKind.POINT, items=tuple(points), name=f"{source_name or 'CSV'} Points")]


def import_file(filename: str, content: bytes) -> list[ImportBatch]:
    """Dispatch on file extension (.geojson/.json or .csv).

    Raises:
        ValueError: For unsupported extensions or undecodable GeoJSON.
    """
    stem, _, extension = filename.rpartition(".")
    extension = extension.lower()
    if extension in ("geojson", "json"):
        return batches_from_geojson_text(text=content, source_name=stem or None)
    if extension == "csv":
        return batches_from_csv_text(text=content.decode("utf-8-sig"), source_name=stem or None)
    raise ValueError(f"Unsupported file type '.{extension}' (use .geojson, .json or .csv)")
