"""
Unit Tests for the rendering adapter (markercluster/overlay)

Tests record validation, joining snapshots back to records and the
viewport-synchronised ClusterOverlay.
"""

import pandas as pd
import pytest
from pydantic import ValidationError

from markercluster.overlay import (
    ClusterOverlay,
    MarkerRecord,
    build_overlay,
    markers_from_records,
    overlay_to_dataframe,
    parse_records,
)
from markercluster.spatial import DEFAULT_POSITION, GeoPoint, MarkerClusterer


class TestMarkerRecord:
    """Test input record validation."""

    def test_extra_fields_kept(self):
        record = MarkerRecord(key="a", position="1,2", count=5)
        assert record.model_dump()["count"] == 5

    def test_numeric_key_coerced(self):
        assert MarkerRecord(key=42).key == "42"

    @pytest.mark.parametrize("value,expected", [
        (None, None),
        ("", None),
        ("  ", None),
        (float("nan"), None),
        (" 1,2 ", "1,2"),
        ((1.5, 2.5), "1.5,2.5"),
    ])
    def test_position_normalised(self, value, expected):
        assert MarkerRecord(key="a", position=value).position == expected

    def test_non_mapping_rejected(self):
        with pytest.raises((ValidationError, TypeError, ValueError)):
            parse_records([42])


class TestParseRecords:
    """Test bulk record coercion."""

    def test_custom_key_field(self, sample_records):
        records = parse_records(sample_records, key_field="guid")

        assert [r.key for r in records] == ["area-1", "area-2", "area-3", "area-4"]
        assert records[3].position is None

    def test_missing_keys_generated(self):
        records = parse_records([{"name": "a"}, {"key": "", "name": "b"}, {"key": "c"}])

        assert records[0].key.startswith("marker_")
        assert records[1].key.startswith("marker_")
        assert records[0].key != records[1].key
        assert records[2].key == "c"

    def test_from_dataframe(self, sample_records_df):
        records = parse_records(sample_records_df, key_field="guid")

        assert len(records) == 4
        assert records[0].name == "North Gate"

    def test_markers_use_default_position(self, sample_records):
        markers = markers_from_records(parse_records(sample_records, key_field="guid"))

        assert markers[3].home_position == DEFAULT_POSITION
        assert markers[0].home_position == GeoPoint(121.47, 31.23)


class TestBuildOverlay:
    """Test joining cluster members back to their records."""

    def test_items_and_lines(self, city_viewport, sample_records):
        records = parse_records(sample_records, key_field="guid")
        clusterer = MarkerClusterer(city_viewport)
        clusterer.add_markers(markers_from_records(records))

        layout = build_overlay(clusterer.clusters, records)

        assert [item["key"] for item in layout.items] == ["area-1", "area-2", "area-3"]
        assert len(layout.lines) == 2
        assert layout.items[0]["count"] == 3
        assert layout.items[0]["cluster"] == "cluster-0"
        assert layout.items[2]["position"] == GeoPoint(121.6, 31.23)
        assert layout.items[0]["position"] != GeoPoint(121.47, 31.23)

    def test_members_without_record_skipped(self, city_viewport, sample_records):
        records = parse_records(sample_records, key_field="guid")
        clusterer = MarkerClusterer(city_viewport)
        clusterer.add_markers(markers_from_records(records))

        layout = build_overlay(clusterer.clusters, records[2:])

        assert [item["key"] for item in layout.items] == ["area-3"]
        assert len(layout.lines) == 2

    def test_dataframe_export(self, city_viewport, sample_records):
        overlay = ClusterOverlay(city_viewport, key_field="guid")
        overlay.set_records(sample_records)

        df = overlay_to_dataframe(overlay.layout)

        assert list(df["key"]) == ["area-1", "area-2", "area-3"]
        assert {"lng", "lat", "cluster", "name"} <= set(df.columns)
        assert "position" not in df.columns
        assert df.loc[2, "lng"] == pytest.approx(121.6)

    def test_empty_dataframe_export(self, city_viewport):
        overlay = ClusterOverlay(city_viewport)
        df = overlay_to_dataframe(overlay.layout)

        assert isinstance(df, pd.DataFrame)
        assert df.empty


class TestClusterOverlay:
    """Test the viewport-synchronised overlay."""

    def test_new_records_replace_previous(self, city_viewport):
        overlay = ClusterOverlay(city_viewport)
        overlay.set_records([{"key": "old", "position": "121.47,31.23"}])
        overlay.set_records([{"key": "new", "position": "121.4701,31.23"}])

        assert [m.key for m in overlay.clusterer.markers] == ["new"]
        assert [item["key"] for item in overlay.layout.items] == ["new"]
        assert overlay.layout.items[0]["position"] == GeoPoint(121.4701, 31.23)
        assert overlay.layout.lines == []

    def test_keyless_record_is_drawn(self, city_viewport):
        overlay = ClusterOverlay(city_viewport)
        overlay.set_records([{"name": "no key", "position": "121.47,31.23"}])

        assert len(overlay.layout.items) == 1
        item = overlay.layout.items[0]
        assert item["name"] == "no key"
        assert item["key"].startswith("marker_")
        assert item["key"] == overlay.clusterer.markers[0].key

    def test_keyless_record_clusters_with_neighbour(self, city_viewport):
        overlay = ClusterOverlay(city_viewport)
        overlay.set_records([
            {"key": "a", "position": "121.47,31.23"},
            {"position": "121.4701,31.23"},
        ])

        assert len(overlay.layout.items) == 2
        assert len(overlay.layout.lines) == 2

    def test_layout_follows_viewport(self, city_viewport, sample_records):
        overlay = ClusterOverlay(city_viewport, key_field="guid")
        overlay.set_records(sample_records)
        assert len(overlay.layout.items) == 3

        city_viewport.pan_to(GeoPoint(0.0, 0.0))
        assert overlay.layout.items == []
        assert overlay.layout.lines == []

    def test_zoom_out_merges(self, city_viewport, sample_records):
        overlay = ClusterOverlay(city_viewport, key_field="guid")
        overlay.set_records(sample_records)
        assert len(overlay.layout.lines) == 2

        city_viewport.set_zoom(6)

        # All four markers (default position included) now share one cluster
        assert len(overlay.layout.items) == 4
        assert len(overlay.layout.lines) == 4

    def test_close_disposes(self, city_viewport, sample_records):
        overlay = ClusterOverlay(city_viewport, key_field="guid")
        overlay.set_records(sample_records)
        overlay.close()

        assert overlay.clusterer.is_disposed
