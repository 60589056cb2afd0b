"""
Tests for loading the facility GeoJSON file.
"""

import json

import geopandas as gpd
import pytest

from facility_coverage.data_loader import CRS_WGS84, DataLoader, records_to_geodataframe


class TestDataLoader:
    """DataLoader reads once and tolerates malformed coordinates."""

    def test_load_records(self, geojson_file):
        loader = DataLoader(geojson_file)
        records = loader.load()
        assert len(records) == 5
        assert records[0].name == "Central Park Restroom"
        assert loader.load() is records

    def test_malformed_coordinates_kept(self, geojson_file):
        loader = DataLoader(geojson_file)
        assert loader.valid_coordinate_count == 4
        assert loader.invalid_coordinate_count == 1
        assert loader.records[4].coordinates is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DataLoader(tmp_path / "missing.geojson").load()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.geojson"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError):
            DataLoader(path).load()

    def test_missing_features_list(self, tmp_path):
        path = tmp_path / "empty.geojson"
        path.write_text(json.dumps({"type": "FeatureCollection"}), encoding="utf-8")
        with pytest.raises(ValueError):
            DataLoader(path).load()

    def test_top_level_array_rejected(self, tmp_path):
        path = tmp_path / "array.geojson"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError):
            DataLoader(path).load()

    def test_data_info(self, geojson_file):
        info = DataLoader(geojson_file).get_data_info()
        assert info["facility_count"] == 5
        assert info["valid_coordinate_count"] == 4
        assert info["invalid_coordinate_count"] == 1
        assert info["data_file_modified"] is not None
        assert info["data_loaded_at"] is not None

    def test_geojson_output(self, geojson_file):
        fc = DataLoader(geojson_file).get_facilities_geojson()
        assert fc["type"] == "FeatureCollection"
        assert len(fc["features"]) == 5
        assert fc["features"][4]["geometry"] is None


class TestGeoDataFrame:
    """GeoDataFrame conversion for tabular export."""

    def test_drops_invalid_coordinates(self, geojson_file):
        gdf = DataLoader(geojson_file).to_geodataframe()
        assert isinstance(gdf, gpd.GeoDataFrame)
        assert len(gdf) == 4
        assert gdf.crs.to_string() == CRS_WGS84
        first = gdf.iloc[0]
        assert first.geometry.x == pytest.approx(first["longitude"])
        assert first.geometry.y == pytest.approx(first["latitude"])
        assert first["facility_name"] == "Central Park Restroom"

    def test_empty(self):
        gdf = records_to_geodataframe([])
        assert gdf.empty
        assert gdf.crs.to_string() == CRS_WGS84
