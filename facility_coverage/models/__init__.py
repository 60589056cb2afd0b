"""Data models package for typed facility, query and statistics structures."""

from .facility import (
    AccessibilityLevel,
    FacilityRecord,
    FacilityStatus,
    LocationType,
    # Batch conversion utilities
    parse_coordinates,
    records_from_feature_collection,
    records_from_features,
    records_to_dicts,
    records_to_feature_collection,
)

from .query import (
    ALL,
    FacilityStats,
    QueryState,
)

__all__ = [
    # Facility models
    "AccessibilityLevel",
    "FacilityRecord",
    "FacilityStatus",
    "LocationType",
    # Batch conversion utilities
    "parse_coordinates",
    "records_from_feature_collection",
    "records_from_features",
    "records_to_dicts",
    "records_to_feature_collection",
    # Query / stats models
    "ALL",
    "FacilityStats",
    "QueryState",
]
