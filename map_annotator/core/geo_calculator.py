"""Geodesic and planar calculations for map annotations.

Provides the geometry helpers behind drawing and measuring:
- Distance calculation (Haversine formula, kilometers)
- Azimuth calculation (initial bearing between points)
- Polygon area (latitude-corrected planar approximation, km²)
- Sector polygon construction (center + sampled arc)
- Planar degree distance and zoom-dependent close tolerance

Spherical Earth approximation (R = 6,371 km). Coordinates are
(longitude, latitude) tuples in decimal degrees.
"""

from math import atan2, cos, degrees, pi, radians, sin, sqrt

import numpy as np

from map_annotator.constants import EARTH_RADIUS_KM, DrawConfig

Coordinate = tuple[float, float]  # (lon, lat)


class GeoCalculator:
    """Static methods for geometry on the annotation map.

    Bearings are in degrees clockwise from North (0-360).
    Distances are in kilometers, areas in square kilometers.
    """

    EARTH_RADIUS_KM = EARTH_RADIUS_KM

    @staticmethod
    def haversine_distance_km(a: Coordinate, b: Coordinate) -> float:
        """Calculate great-circle distance between two points using Haversine formula.

        Args:
            a: (lon, lat) of first point
            b: (lon, lat) of second point

        Returns:
            Distance in kilometers.
        """
        lon1, lat1 = a
        lon2, lat2 = b
        dlat = radians(lat2 - lat1)
        dlon = radians(lon2 - lon1)
        h = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlon / 2) ** 2
        return EARTH_RADIUS_KM * 2 * atan2(sqrt(h), sqrt(1 - h))

    @staticmethod
    def azimuth_deg(a: Coordinate, b: Coordinate) -> float:
        """Calculate initial bearing from point a to point b.

        Args:
            a: (lon, lat) of start point
            b: (lon, lat) of end point

        Returns:
            Bearing in degrees (0-360, clockwise from North).
        """
        lon1, lat1 = radians(a[0]), radians(a[1])
        lon2, lat2 = radians(b[0]), radians(b[1])
        dlon = lon2 - lon1
        y = sin(dlon) * cos(lat2)
        x = cos(lat1) * sin(lat2) - sin(lat1) * cos(lat2) * cos(dlon)
        bearing = degrees(atan2(y, x))
        if bearing < 0:
            bearing += 360
        # -1e-17 + 360 rounds to 360.0
        return bearing % 360

    @staticmethod
    def polygon_area_km2(ring: list[Coordinate]) -> float:
        """Approximate area enclosed by a ring in square kilometers.

        Each edge contributes (x2 - x1) * (y2 + y1) in radians², scaled by R²
        and the cosine of the edge's mean latitude. Self-intersecting rings are
        not detected; their result is meaningless.

        Args:
            ring: Closed ring vertices (lon, lat), first == last

        Returns:
            Non-negative area in km².
        """
        total = 0.0
        for (x1, y1), (x2, y2) in zip(ring, ring[1:]):
            mean_lat = radians((y1 + y2) / 2)
            total += (x2 - x1) * (y2 + y1) * (pi / 180) ** 2 * EARTH_RADIUS_KM**2 * cos(mean_lat)
        return abs(total) / 2

    @staticmethod
    def sector_polygon(
        center: Coordinate,
        radius: float,
        start_angle: float,
        end_angle: float,
        segments: int = DrawConfig.SECTOR_ARC_SEGMENTS,
    ) -> list[Coordinate]:
        """Build a pie-wedge ring: the center followed by the sampled arc.

        The sweep always runs counter-clockwise from start_angle: end_angle is
        raised by full turns until it exceeds start_angle, so clicking "behind"
        the start yields the long way round.

        Args:
            center: (lon, lat) of the wedge apex
            radius: Radius in coordinate degrees (planar)
            start_angle: Start angle in radians (atan2 convention)
            end_angle: End angle in radians
            segments: Number of arc intervals (arc has segments + 1 points)

        Returns:
            [center, arc_0, ..., arc_segments] as (lon, lat) tuples.
        """
        while end_angle <= start_angle:
            end_angle += 2 * pi
        cx, cy = center
        thetas = np.linspace(start_angle, end_angle, segments + 1)
        xs = cx + radius * np.cos(thetas)
        ys = cy + radius * np.sin(thetas)
        return [(cx, cy)] + [(float(x), float(y)) for x, y in zip(xs, ys)]

    @staticmethod
    def sector_sweep_deg(start_angle: float, end_angle: float) -> float:
        """Raw angular difference used for the sector label (no wrap applied)."""
        return abs(degrees(end_angle - start_angle))

    @staticmethod
    def planar_angle(origin: Coordinate, target: Coordinate) -> float:
        """atan2 angle in radians of target as seen from origin, in degree space."""
        return atan2(target[1] - origin[1], target[0] - origin[0])

    @staticmethod
    def planar_distance_deg(a: Coordinate, b: Coordinate) -> float:
        """Euclidean distance in raw coordinate degrees."""
        return sqrt((b[0] - a[0]) ** 2 + (b[1] - a[1]) ** 2)

    @staticmethod
    def close_tolerance_deg(zoom: float) -> float:
        """Snap distance for closing a ring, shrinking as the map zooms in."""
        zoom_factor = max(DrawConfig.MIN_ZOOM_FACTOR, 1 / 2 ** (zoom - DrawConfig.REFERENCE_ZOOM))
        return DrawConfig.BASE_TOLERANCE_DEG * zoom_factor
