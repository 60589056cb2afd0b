"""Shared fixtures for facility coverage tests."""

import json

import pytest

from facility_coverage.config_types import AppConfig, CoverageBounds
from facility_coverage.models import FacilityRecord, records_from_features


def make_feature(name, status="Operational", accessibility="Fully Accessible",
                 location_type="Park", operator="NYC Parks", coords=(-73.95, 40.75),
                 feature_id=None):
    """GeoJSON Feature in the source property layout."""
    feature = {
        "type": "Feature",
        "geometry": None if coords is None else {"type": "Point", "coordinates": list(coords)},
        "properties": {
            "facility_name": name,
            "status": status,
            "accessibility": accessibility,
            "location_type": location_type,
            "operator": operator,
            "hours_of_operation": "8am-8pm",
        },
    }
    if feature_id is not None:
        feature["id"] = feature_id
    return feature


@pytest.fixture
def sample_features():
    """Four facilities plus one with a broken geometry."""
    return [
        make_feature("Central Park Restroom", coords=(-73.9654, 40.7829), feature_id=1),
        make_feature(
            "Library Restroom",
            status="Not Operational",
            accessibility="Partially Accessible",
            location_type="Library",
            operator="NYPL",
            coords=(-73.9822, 40.7532),
            feature_id=2,
        ),
        make_feature(
            "Bryant Park Comfort Station",
            status="Operational",
            accessibility="Not Accessible",
            location_type="Park",
            operator="Bryant Park Corporation",
            coords=(-73.9832, 40.7536),
            feature_id=3,
        ),
        make_feature(
            "Subway Concourse",
            status="Closed for Construction",
            accessibility="Fully Accessible",
            location_type="Transit",
            operator="MTA",
            coords=(-73.9857, 40.7484),
            feature_id=4,
        ),
        make_feature(
            "Unmapped Facility",
            status="Operational",
            location_type="Park",
            coords=("x", None),
            feature_id=5,
        ),
    ]


@pytest.fixture
def sample_records(sample_features):
    return records_from_features(sample_features)


@pytest.fixture
def small_bounds():
    """Roughly 2 km x 2 km box around midtown."""
    return CoverageBounds(north=40.77, south=40.75, east=-73.96, west=-73.99)


@pytest.fixture
def small_config(small_bounds):
    """CONFIG dict with a small grid so tests stay fast."""
    return {
        "coverage": {
            "bounds": small_bounds.as_dict(),
            "grid_size": 10,
            "max_distance_m": 1000.0,
            "gamma": 0.6,
            "distance": "planar",
            "index": "brute_force",
        },
        "parallel": {"enabled": False},
    }


@pytest.fixture
def small_app_config(small_config):
    return AppConfig.from_dict(small_config)


@pytest.fixture
def geojson_file(tmp_path, sample_features):
    path = tmp_path / "facilities.geojson"
    path.write_text(
        json.dumps({"type": "FeatureCollection", "features": sample_features}),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def single_record():
    return FacilityRecord(
        id="only",
        coordinates=(-74.0, 40.7),
        name="Only One",
        status="Operational",
        accessibility="Fully Accessible",
        location_type="Park",
    )
