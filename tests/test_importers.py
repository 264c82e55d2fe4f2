"""Tests for file importers and the live feed parser.

Tests: GeoJSON splitting into batches, CSV column detection, extension dispatch,
feed node parsing, malformed-message handling, HTTP polling
"""

import json

import pytest
import requests

from map_annotator.core.feature_importer import (
    batches_from_csv_text,
    batches_from_geojson,
    batches_from_geojson_text,
    import_file,
)
from map_annotator.core.feed_parser import fetch_feed_snapshot, node_from_raw, parse_feed_message, parse_nodes
from map_annotator.model.geometry import PathItem, PointItem, RingItem
from map_annotator.model.layer import LayerKind


def _feature(geometry: dict | None, **properties: object) -> dict:
    return {"type": "Feature", "geometry": geometry, "properties": properties}


MIXED_COLLECTION = {
    "type": "FeatureCollection",
    "features": [
        _feature({"type": "Point", "coordinates": [1.0, 2.0]}, name="well"),
        _feature({"type": "MultiPoint", "coordinates": [[3.0, 4.0], [5.0, 6.0]]}, name="pair"),
        _feature(
            {
                "type": "Polygon",
                "coordinates": [
                    [[0, 0], [1, 0], [1, 1], [0, 0]],
                    [[0.2, 0.2], [0.3, 0.2], [0.2, 0.3], [0.2, 0.2]],
                ],
            },
            name="field",
        ),
        _feature({"type": "LineString", "coordinates": [[0, 0], [2, 2]]}),
        _feature({"type": "MultiLineString", "coordinates": [[[0, 0], [1, 1]], [[5, 5], [6, 6], [7, 5]]]}),
        _feature(None, name="no geometry"),
    ],
}


# =============================================================================
# GEOJSON
# =============================================================================


class TestGeoJsonImport:
    def test_collection_splits_by_kind(self) -> None:
        batches = batches_from_geojson(MIXED_COLLECTION, source_name="survey")
        assert [b.kind for b in batches] == [LayerKind.POINT, LayerKind.POLYGON, LayerKind.LINE]
        assert [b.name for b in batches] == ["survey Points", "survey Polygons", "survey Lines"]
        points, polygons, lines = batches
        assert len(points.items) == 3
        assert len(polygons.items) == 1
        assert len(lines.items) == 3

    def test_multi_geometries_share_properties(self) -> None:
        points = batches_from_geojson(MIXED_COLLECTION)[0]
        assert [p.properties.get("name") for p in points.items] == ["well", "pair", "pair"]
        assert all(isinstance(p, PointItem) for p in points.items)

    def test_polygon_keeps_closed_exterior_only(self) -> None:
        ring = batches_from_geojson(MIXED_COLLECTION)[1].items[0]
        assert isinstance(ring, RingItem)
        assert ring.is_closed
        assert len(ring.ring) == 4
        assert (0.2, 0.2) not in ring.ring

    def test_line_paths_keep_vertex_order(self) -> None:
        lines = batches_from_geojson(MIXED_COLLECTION)[2].items
        assert isinstance(lines[2], PathItem)
        assert lines[2].path == ((5.0, 5.0), (6.0, 6.0), (7.0, 5.0))

    def test_single_feature(self) -> None:
        batches = batches_from_geojson(_feature({"type": "Point", "coordinates": [9, 9]}))
        assert len(batches) == 1
        assert batches[0].name == "GeoJSON Points"

    def test_empty_collection_gives_no_batches(self) -> None:
        assert batches_from_geojson({"type": "FeatureCollection", "features": []}) == []

    @pytest.mark.parametrize("data", [{"type": "Point", "coordinates": [0, 0]}, {}, [], "text"])
    def test_non_feature_input_rejected(self, data: object) -> None:
        with pytest.raises(ValueError):
            batches_from_geojson(data)  # type: ignore[arg-type]

    def test_text_accepts_bytes(self) -> None:
        text = json.dumps(MIXED_COLLECTION).encode("utf-8")
        assert len(batches_from_geojson_text(text)) == 3


# =============================================================================
# CSV
# =============================================================================


class TestCsvImport:
    def test_detects_columns_case_insensitive(self) -> None:
        text = "Name,Latitude,Longitude\nA,10.5,20.5\nB,11,21\n"
        batches = batches_from_csv_text(text, source_name="sites")
        assert len(batches) == 1
        batch = batches[0]
        assert batch.name == "sites Points"
        assert [p.position for p in batch.items] == [(20.5, 10.5), (21.0, 11.0)]
        assert batch.items[0].properties == {"Name": "A"}

    def test_short_column_names(self) -> None:
        batches = batches_from_csv_text("lat,lng\n1,2\n")
        assert batches[0].items[0].position == (2.0, 1.0)

    def test_bad_rows_skipped(self) -> None:
        text = "lat,lon\n1,2\n,3\nabc,4\n5,6\n"
        items = batches_from_csv_text(text)[0].items
        assert [p.position for p in items] == [(2.0, 1.0), (6.0, 5.0)]

    def test_no_coordinate_columns(self) -> None:
        assert batches_from_csv_text("a,b\n1,2\n") == []

    def test_no_usable_rows(self) -> None:
        assert batches_from_csv_text("lat,lon\nx,y\n") == []


class TestImportFile:
    def test_dispatch_geojson(self) -> None:
        batches = import_file("parcels.geojson", json.dumps(MIXED_COLLECTION).encode("utf-8"))
        assert batches[0].name == "parcels Points"

    def test_dispatch_csv_with_bom(self) -> None:
        batches = import_file("towers.CSV", "\ufefflat,lon\n1,2\n".encode("utf-8"))
        assert batches[0].name == "towers Points"
        assert batches[0].items[0].position == (2.0, 1.0)

    def test_unsupported_extension(self) -> None:
        with pytest.raises(ValueError, match="Unsupported"):
            import_file("notes.txt", b"hello")

    def test_invalid_json_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            import_file("broken.json", b"{not json")


# =============================================================================
# FEED PARSER
# =============================================================================


class TestFeedParser:
    def test_node_from_raw(self, raw_feed_nodes: list[dict]) -> None:
        record = node_from_raw(raw_feed_nodes[1])
        assert record.id == "r1"
        assert record.position == (77.1, 28.1)
        assert record.signal_metric == 12.5
        assert record.rssi == -80.0
        assert record.hop_count == 1
        assert record.distance is None
        assert record.connections == ()

    def test_parse_nodes_skips_malformed(self, raw_feed_nodes: list[dict]) -> None:
        payload = {"nodes": raw_feed_nodes + [{"userId": "x"}, "garbage", {"userId": "y", "longitude": "east"}]}
        records = parse_nodes(payload)
        assert records is not None
        assert [r.id for r in records] == ["gw", "r1", "r2"]

    @pytest.mark.parametrize("payload", [None, [], {"nodes": "many"}, {"other": []}])
    def test_parse_nodes_without_node_list(self, payload: object) -> None:
        assert parse_nodes(payload) is None

    def test_parse_feed_message(self, raw_feed_nodes: list[dict]) -> None:
        records = parse_feed_message(json.dumps({"nodes": raw_feed_nodes}))
        assert records is not None
        assert records[0].connections == ("r1", "r2")

    def test_invalid_json_message(self) -> None:
        assert parse_feed_message("not json") is None

    def test_empty_node_list(self) -> None:
        assert parse_feed_message('{"nodes": []}') == []


class _FakeResponse:
    def __init__(self, text: str, status: int = 200) -> None:
        self.text = text
        self.status = status

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")


class TestFetchFeedSnapshot:
    def test_success(self, monkeypatch: pytest.MonkeyPatch, raw_feed_nodes: list[dict]) -> None:
        calls = []

        def fake_get(url: str, timeout: float) -> _FakeResponse:
            calls.append((url, timeout))
            return _FakeResponse(json.dumps({"nodes": raw_feed_nodes}))

        monkeypatch.setattr(requests, "get", fake_get)
        records = fetch_feed_snapshot(url="http://feed.test/nodes", timeout=1)
        assert records is not None
        assert len(records) == 3
        assert calls == [("http://feed.test/nodes", 1)]

    def test_http_error_propagates(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(requests, "get", lambda url, timeout: _FakeResponse("", status=503))
        with pytest.raises(requests.RequestException):
            fetch_feed_snapshot(url="http://feed.test/nodes")

    def test_non_json_body(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(requests, "get", lambda url, timeout: _FakeResponse("<html>"))
        assert fetch_feed_snapshot(url="http://feed.test/nodes") is None
