"""Tests for map_annotator core functionality.

Tests: GeoCalculator, viewport fitting (focus + rubber band), DragTranslateEngine
Focus: Hand-checkable values near the equator plus Hypothesis properties

Note: Fixtures are defined in conftest.py.
"""

from math import cos, pi, radians
from types import SimpleNamespace

import pytest
from hypothesis import assume, given, settings, strategies as st

from map_annotator.constants import DrawConfig, MapConfig
from map_annotator.core.drag_translate import DragTranslateEngine
from map_annotator.core.geo_calculator import GeoCalculator
from map_annotator.core.viewport_fitter import (
    BoundingBox,
    ViewportState,
    focus_on_layer,
    reset_view,
    rubber_band_zoom,
)
from map_annotator.model.geometry import PathItem, PointItem, RingItem
from map_annotator.model.layer import LayerKind
from map_annotator.model.layer_store import ImportBatch, LayerStore

from conftest import UNIT_SQUARE

KM_PER_DEGREE = 6371.0 * pi / 180  # ≈ 111.19 km


# =============================================================================
# GEOMETRY KERNEL
# =============================================================================


class TestGeoCalculator:
    """GeoCalculator - distances, bearings, areas and sectors."""

    def test_distance_one_degree_longitude_at_equator(self) -> None:
        dist = GeoCalculator.haversine_distance_km((0.0, 0.0), (1.0, 0.0))
        assert dist == pytest.approx(KM_PER_DEGREE, rel=1e-9)

    def test_distance_one_degree_longitude_at_60n(self) -> None:
        """Meridians converge: 1° of longitude at 60°N is about half as long."""
        dist = GeoCalculator.haversine_distance_km((10.0, 60.0), (11.0, 60.0))
        assert dist == pytest.approx(KM_PER_DEGREE * cos(radians(60)), rel=1e-3)

    def test_distance_same_point_is_zero(self) -> None:
        assert GeoCalculator.haversine_distance_km((12.3, 45.6), (12.3, 45.6)) == 0.0

    @pytest.mark.parametrize(
        "target, expected",
        [
            ((0.0, 1.0), 0.0),
            ((1.0, 0.0), 90.0),
            ((0.0, -1.0), 180.0),
            ((-1.0, 0.0), 270.0),
        ],
    )
    def test_azimuth_cardinal_directions(self, target: tuple[float, float], expected: float) -> None:
        assert GeoCalculator.azimuth_deg((0.0, 0.0), target) == pytest.approx(expected, abs=1e-9)

    def test_azimuth_never_negative(self) -> None:
        """South-west bearings come out of atan2 negative and are shifted into [0, 360)."""
        bearing = GeoCalculator.azimuth_deg((0.0, 0.0), (-1.0, -1.0))
        assert 180.0 < bearing < 270.0

    def test_area_unit_square_near_equator(self) -> None:
        """Unit-degree square ≈ 111.19² km² ≈ 12,360 km²."""
        area = GeoCalculator.polygon_area_km2(list(UNIT_SQUARE))
        assert 12_000 < area < 12_500

    def test_area_independent_of_winding(self) -> None:
        forward = GeoCalculator.polygon_area_km2(list(UNIT_SQUARE))
        backward = GeoCalculator.polygon_area_km2(list(reversed(UNIT_SQUARE)))
        assert forward == pytest.approx(backward)

    def test_area_shrinks_with_latitude(self) -> None:
        """The same 1°x1° square covers less ground at 60°N."""
        north = [(x, y + 60.0) for x, y in UNIT_SQUARE]
        assert GeoCalculator.polygon_area_km2(north) < GeoCalculator.polygon_area_km2(list(UNIT_SQUARE)) * 0.55

    def test_area_degenerate_ring_is_zero(self) -> None:
        ring = [(0.0, 0.0), (1.0, 1.0), (0.0, 0.0)]
        assert GeoCalculator.polygon_area_km2(ring) == pytest.approx(0.0)

    def test_sector_quarter_wedge(self) -> None:
        """0 → π/2: center first, then 33 arc points sweeping counter-clockwise."""
        ring = GeoCalculator.sector_polygon(center=(0.0, 0.0), radius=1.0, start_angle=0.0, end_angle=pi / 2)
        assert len(ring) == DrawConfig.SECTOR_ARC_SEGMENTS + 2
        assert ring[0] == (0.0, 0.0)
        assert ring[1] == pytest.approx((1.0, 0.0))
        assert ring[-1] == pytest.approx((0.0, 1.0))
        assert ring[17] == pytest.approx((cos(pi / 4), cos(pi / 4)))

    def test_sector_end_before_start_takes_long_way(self) -> None:
        """π/2 → 0 is normalized to π/2 → 2π: three quarters, passing through 5π/4."""
        ring = GeoCalculator.sector_polygon(center=(0.0, 0.0), radius=1.0, start_angle=pi / 2, end_angle=0.0)
        assert ring[1] == pytest.approx((0.0, 1.0), abs=1e-12)
        assert ring[-1] == pytest.approx((1.0, 0.0), abs=1e-12)
        assert ring[17] == pytest.approx((-cos(pi / 4), -cos(pi / 4)))

    def test_sector_equal_angles_is_full_circle(self) -> None:
        ring = GeoCalculator.sector_polygon(center=(5.0, 5.0), radius=0.5, start_angle=1.0, end_angle=1.0)
        assert ring[1] == pytest.approx(ring[-1])
        assert ring[17] == pytest.approx((5.0 + 0.5 * cos(1.0 + pi), 5.0 - 0.5 * cos(pi / 2 - 1.0)))

    def test_sector_sweep_label_is_raw_difference(self) -> None:
        assert GeoCalculator.sector_sweep_deg(0.0, pi / 2) == pytest.approx(90.0)
        assert GeoCalculator.sector_sweep_deg(pi / 2, 0.0) == pytest.approx(90.0)

    @pytest.mark.parametrize(
        "zoom, expected",
        [
            (5, 0.05),
            (6, 0.025),
            (4, 0.1),
            (1, 0.8),
            (20, 0.005),  # factor floored at 0.1
        ],
    )
    def test_close_tolerance(self, zoom: float, expected: float) -> None:
        assert GeoCalculator.close_tolerance_deg(zoom=zoom) == pytest.approx(expected)


class TestGeoCalculatorHypothesis:
    """Property-based tests using Hypothesis."""

    @given(
        lon1=st.floats(min_value=-180, max_value=180, allow_nan=False),
        lat1=st.floats(min_value=-85, max_value=85, allow_nan=False),
        lon2=st.floats(min_value=-180, max_value=180, allow_nan=False),
        lat2=st.floats(min_value=-85, max_value=85, allow_nan=False),
    )
    @settings(max_examples=100)
    def test_distance_is_symmetric(self, lon1: float, lat1: float, lon2: float, lat2: float) -> None:
        a, b = (lon1, lat1), (lon2, lat2)
        assert GeoCalculator.haversine_distance_km(a, b) == pytest.approx(
            GeoCalculator.haversine_distance_km(b, a), abs=1e-6
        )

    @given(
        lon=st.floats(min_value=-10, max_value=10, allow_nan=False),
        lat=st.floats(min_value=-1, max_value=1, allow_nan=False),
        dlon=st.floats(min_value=-0.5, max_value=0.5, allow_nan=False),
        dlat=st.floats(min_value=-0.5, max_value=0.5, allow_nan=False),
    )
    @settings(max_examples=100)
    def test_azimuth_reciprocal_near_equator(self, lon: float, lat: float, dlon: float, dlat: float) -> None:
        """Back bearing ≈ forward bearing + 180° (up to meridian convergence)."""
        assume(abs(dlon) > 1e-3 or abs(dlat) > 1e-3)
        a, b = (lon, lat), (lon + dlon, lat + dlat)
        forward = GeoCalculator.azimuth_deg(a, b)
        backward = GeoCalculator.azimuth_deg(b, a)
        assert 0.0 <= forward < 360.0
        diff = (backward - forward - 180.0) % 360.0
        assert min(diff, 360.0 - diff) < 0.05

    @given(
        x=st.floats(min_value=-170, max_value=170, allow_nan=False),
        y=st.floats(min_value=-60, max_value=60, allow_nan=False),
        size=st.floats(min_value=0.001, max_value=5, allow_nan=False),
    )
    @settings(max_examples=50)
    def test_area_positive_for_squares(self, x: float, y: float, size: float) -> None:
        ring = [(x, y), (x + size, y), (x + size, y + size), (x, y + size), (x, y)]
        assert GeoCalculator.polygon_area_km2(ring) > 0


# =============================================================================
# VIEWPORT FITTING
# =============================================================================


class TestViewportState:
    def test_defaults(self) -> None:
        view = ViewportState()
        assert view.longitude == MapConfig.DEFAULT_CENTER_LON
        assert view.latitude == MapConfig.DEFAULT_CENTER_LAT
        assert view.zoom == MapConfig.DEFAULT_ZOOM

    @pytest.mark.parametrize("zoom, expected", [(-3, 1), (0.5, 1), (25, 20), (12.5, 12.5)])
    def test_zoom_clamped_on_construction(self, zoom: float, expected: float) -> None:
        assert ViewportState(zoom=zoom).zoom == expected

    def test_zoom_steps_stay_in_range(self) -> None:
        assert ViewportState(zoom=MapConfig.MAX_ZOOM).zoomed_in().zoom == MapConfig.MAX_ZOOM
        assert ViewportState(zoom=MapConfig.MIN_ZOOM).zoomed_out().zoom == MapConfig.MIN_ZOOM
        assert ViewportState(zoom=10).zoomed_in().zoom == 10 + MapConfig.ZOOM_STEP

    def test_dict_roundtrip(self) -> None:
        view = ViewportState(longitude=1.5, latitude=-2.5, zoom=9, pitch=30, bearing=45)
        assert ViewportState.from_dict(view.to_dict()) == view

    def test_reset_view_returns_defaults(self) -> None:
        assert reset_view() == ViewportState()


class TestFocusOnLayer:
    """Table-driven focus zoom, keyed by span and origin."""

    def test_single_drawn_point(self, empty_store: LayerStore) -> None:
        layer = empty_store.commit_drawn(kind=LayerKind.POINT, geometry=(PointItem(position=(3.0, 4.0)),))
        view = focus_on_layer(layer=layer, viewport=ViewportState())
        assert (view.longitude, view.latitude) == (3.0, 4.0)
        assert view.zoom == 16  # 17 - 1 padding

    def test_single_uploaded_point_is_coarser(self, empty_store: LayerStore) -> None:
        layer = empty_store.import_batch(ImportBatch(kind=LayerKind.POINT, items=(PointItem(position=(3.0, 4.0)),)))
        assert layer is not None
        assert focus_on_layer(layer=layer, viewport=ViewportState()).zoom == 14  # 15 - 1

    def test_drawn_polygon_span_one_degree(self, store_with_drawn_layers: LayerStore) -> None:
        polygon = next(layer for layer in store_with_drawn_layers.ordered() if layer.kind == LayerKind.POLYGON)
        view = focus_on_layer(layer=polygon, viewport=ViewportState())
        assert (view.longitude, view.latitude) == (0.5, 0.5)
        assert view.zoom == 10  # span 1.0 < 2.0 -> 11, minus 1

    def test_uploaded_multi_point_padding(self, empty_store: LayerStore, uploaded_points_batch: ImportBatch) -> None:
        layer = empty_store.import_batch(uploaded_points_batch)
        assert layer is not None
        view = focus_on_layer(layer=layer, viewport=ViewportState())
        assert view.longitude == pytest.approx(10.1)
        assert view.latitude == pytest.approx(20.05)
        assert view.zoom == 9  # span 0.2 < 0.5 -> uploaded 11, minus 2 for multi-point

    def test_huge_span_uses_fallback(self, empty_store: LayerStore) -> None:
        layer = empty_store.commit_drawn(
            kind=LayerKind.LINE, geometry=(PathItem(path=((-60.0, 0.0), (60.0, 10.0))),)
        )
        assert focus_on_layer(layer=layer, viewport=ViewportState()).zoom == 6  # fallback 7, minus 1

    def test_resets_pitch_and_bearing(self, store_with_drawn_layers: LayerStore) -> None:
        layer = store_with_drawn_layers.ordered()[0]
        view = focus_on_layer(layer=layer, viewport=ViewportState(pitch=45, bearing=90))
        assert view.pitch == 0
        assert view.bearing == 0

    def test_layer_without_coordinates_is_noop(self) -> None:
        current = ViewportState(longitude=1.0, latitude=2.0, zoom=7)
        hollow = SimpleNamespace(id="hollow", coordinates=lambda: [])
        assert focus_on_layer(layer=hollow, viewport=current) is current  # type: ignore[arg-type]

    def test_bounding_box_of_nothing(self) -> None:
        assert BoundingBox.of([]) is None


class TestRubberBandZoom:
    def test_span_one_hundredth_degree(self) -> None:
        """max_diff 0.01 -> log2(1) = 0 -> zoom 14."""
        view = rubber_band_zoom(start=(0.0, 0.0), end=(0.01, 0.005), viewport=ViewportState())
        assert view.zoom == pytest.approx(14.0)
        assert (view.longitude, view.latitude) == pytest.approx((0.005, 0.0025))

    def test_zero_size_zooms_all_the_way_in(self) -> None:
        view = rubber_band_zoom(start=(5.0, 5.0), end=(5.0, 5.0), viewport=ViewportState())
        assert view.zoom == MapConfig.MAX_ZOOM

    def test_huge_box_clamps_to_min_zoom(self) -> None:
        view = rubber_band_zoom(start=(-100.0, -50.0), end=(100.0, 50.0), viewport=ViewportState())
        assert view.zoom == MapConfig.MIN_ZOOM

    def test_keeps_pitch_and_bearing(self) -> None:
        view = rubber_band_zoom(start=(0.0, 0.0), end=(1.0, 1.0), viewport=ViewportState(pitch=20, bearing=10))
        assert (view.pitch, view.bearing) == (20, 10)

    @given(
        x1=st.floats(min_value=-180, max_value=180, allow_nan=False),
        y1=st.floats(min_value=-85, max_value=85, allow_nan=False),
        x2=st.floats(min_value=-180, max_value=180, allow_nan=False),
        y2=st.floats(min_value=-85, max_value=85, allow_nan=False),
    )
    @settings(max_examples=100)
    def test_zoom_always_in_range(self, x1: float, y1: float, x2: float, y2: float) -> None:
        view = rubber_band_zoom(start=(x1, y1), end=(x2, y2), viewport=ViewportState())
        assert MapConfig.MIN_ZOOM <= view.zoom <= MapConfig.MAX_ZOOM


# =============================================================================
# DRAG-TRANSLATE
# =============================================================================


class TestDragTranslateEngine:
    """Rigid-body moves recomputed from the press-time snapshot."""

    @staticmethod
    def _polygon_id(store: LayerStore) -> str:
        return next(layer.id for layer in store.ordered() if layer.kind == LayerKind.POLYGON)

    def test_move_translates_every_vertex(self, store_with_drawn_layers: LayerStore) -> None:
        store = store_with_drawn_layers
        layer_id = self._polygon_id(store)
        engine = DragTranslateEngine(store=store)

        assert engine.start(layer_id=layer_id, coordinate=(0.5, 0.5))
        engine.move(coordinate=(1.0, 0.25))
        engine.end()

        ring = store.get(layer_id).geometry[0].ring
        assert ring == tuple((x + 0.5, y - 0.25) for x, y in UNIT_SQUARE)
        assert not engine.is_dragging

    def test_replaying_same_position_is_idempotent(self, store_with_drawn_layers: LayerStore) -> None:
        store = store_with_drawn_layers
        layer_id = self._polygon_id(store)
        engine = DragTranslateEngine(store=store)
        engine.start(layer_id=layer_id, coordinate=(0.0, 0.0))

        engine.move(coordinate=(0.3, 0.3))
        once = store.get(layer_id).geometry
        engine.move(coordinate=(2.0, -1.0))
        engine.move(coordinate=(0.3, 0.3))
        engine.move(coordinate=(0.3, 0.3))
        assert store.get(layer_id).geometry == once

    def test_move_back_to_start_restores_geometry(self, store_with_drawn_layers: LayerStore) -> None:
        store = store_with_drawn_layers
        layer_id = self._polygon_id(store)
        before = store.get(layer_id).geometry
        engine = DragTranslateEngine(store=store)
        engine.start(layer_id=layer_id, coordinate=(0.2, 0.2))
        engine.move(coordinate=(5.0, 5.0))
        engine.move(coordinate=(0.2, 0.2))
        assert store.get(layer_id).geometry == before

    def test_closed_ring_stays_closed(self, store_with_drawn_layers: LayerStore) -> None:
        store = store_with_drawn_layers
        layer_id = self._polygon_id(store)
        engine = DragTranslateEngine(store=store)
        engine.start(layer_id=layer_id, coordinate=(0.0, 0.0))
        engine.move(coordinate=(0.123, 0.456))
        assert store.get(layer_id).geometry[0].is_closed

    def test_uploaded_layer_refused(self, empty_store: LayerStore, uploaded_points_batch: ImportBatch) -> None:
        layer = empty_store.import_batch(uploaded_points_batch)
        assert layer is not None
        engine = DragTranslateEngine(store=empty_store)
        assert engine.start(layer_id=layer.id, coordinate=(10.0, 20.0)) is False
        engine.move(coordinate=(11.0, 21.0))
        assert empty_store.get(layer.id).geometry == layer.geometry

    def test_move_without_gesture_is_noop(self, store_with_drawn_layers: LayerStore) -> None:
        revision = store_with_drawn_layers.revision
        engine = DragTranslateEngine(store=store_with_drawn_layers)
        engine.move(coordinate=(1.0, 1.0))
        engine.end()
        assert store_with_drawn_layers.revision == revision

    def test_properties_survive_translation(self, empty_store: LayerStore) -> None:
        layer = empty_store.commit_drawn(
            kind=LayerKind.POINT, geometry=(PointItem(position=(0.0, 0.0), properties={"note": "x"}),)
        )
        engine = DragTranslateEngine(store=empty_store)
        engine.start(layer_id=layer.id, coordinate=(0.0, 0.0))
        engine.move(coordinate=(1.0, 1.0))
        moved = empty_store.get(layer.id).geometry[0]
        assert isinstance(moved, PointItem)
        assert moved.position == (1.0, 1.0)
        assert moved.properties == {"note": "x"}

    def test_sector_translates_as_ring(self, empty_store: LayerStore) -> None:
        wedge = GeoCalculator.sector_polygon(center=(0.0, 0.0), radius=1.0, start_angle=0.0, end_angle=pi / 2)
        layer = empty_store.commit_drawn(
            kind=LayerKind.SECTOR, geometry=(RingItem(ring=tuple(wedge)),), measurement="90.0°"
        )
        engine = DragTranslateEngine(store=empty_store)
        engine.start(layer_id=layer.id, coordinate=(0.0, 0.0))
        engine.move(coordinate=(1.0, 2.0))
        moved = empty_store.get(layer.id)
        assert moved.geometry[0].ring[0] == (1.0, 2.0)
        assert moved.measurement == "90.0°"
