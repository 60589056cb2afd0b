"""
Typed facility records.

Architectural Overview:
=======================
Immutable dataclasses for the facility store. A FacilityRecord is built once
from a GeoJSON Feature when the dataset is loaded and is never mutated; the
same tuple of records is shared by every filter evaluation and by the
coverage grid sampler.

Key Interactions:
-----------------
- Input: data_loader.DataLoader builds records with from_feature()
- Output: as_feature() rebuilds the GeoJSON Feature for the map client
- Navigation: Use VS Code outline (Ctrl+Shift+O) for quick navigation

Coordinate Handling:
--------------------
Source data is not guaranteed to carry a usable Point geometry. Missing
geometry, wrong arity, non-numeric or non-finite values all produce
coordinates=None rather than an exception. Such records stay listable and
filterable but are skipped by the nearest-facility scan.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ ENUMS SECTION
# ═══════════════════════════════════════════════════════════════════════════


class FacilityStatus(Enum):
    """Recognized facility status values.

    Only used to pick a visual category. Filtering compares the raw string,
    so unrecognized values stay filterable by exact match.
    """

    OPERATIONAL = "Operational"
    NOT_OPERATIONAL = "Not Operational"
    CLOSED_FOR_CONSTRUCTION = "Closed for Construction"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, s: Optional[str]) -> "FacilityStatus":
        """Convert string to FacilityStatus, with fallback to UNKNOWN."""
        for member in cls:
            if member is not cls.UNKNOWN and member.value == s:
                return member
        return cls.UNKNOWN


class AccessibilityLevel(Enum):
    """Recognized accessibility values."""

    FULLY_ACCESSIBLE = "Fully Accessible"
    PARTIALLY_ACCESSIBLE = "Partially Accessible"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, s: Optional[str]) -> "AccessibilityLevel":
        """Convert string to AccessibilityLevel, with fallback to UNKNOWN."""
        for member in cls:
            if member is not cls.UNKNOWN and member.value == s:
                return member
        return cls.UNKNOWN


class LocationType(Enum):
    """Recognized location types; anything else is a generic facility."""

    PARK = "Park"
    LIBRARY = "Library"
    OTHER = "other"

    @classmethod
    def from_string(cls, s: Optional[str]) -> "LocationType":
        """Convert string to LocationType, with fallback to OTHER."""
        for member in cls:
            if member is not cls.OTHER and member.value == s:
                return member
        return cls.OTHER


# ═══════════════════════════════════════════════════════════════════════════
# 📍 COORDINATE PARSING
# ═══════════════════════════════════════════════════════════════════════════


def parse_coordinates(raw: Any) -> Optional[Tuple[float, float]]:
    """
    Parse a GeoJSON position into a finite (longitude, latitude) pair.

    Args:
        raw: Anything found at geometry.coordinates

    Returns:
        (lng, lat) tuple of floats, or None if the value is not a finite
        2-element position
    """
    if raw is None or isinstance(raw, (str, bytes)):
        return None
    try:
        values = list(raw)
    except TypeError:
        return None
    # GeoJSON positions may carry altitude as a third element
    if len(values) < 2:
        return None
    try:
        lng = float(values[0])
        lat = float(values[1])
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lng) and math.isfinite(lat)):
        return None
    return (lng, lat)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


# ═══════════════════════════════════════════════════════════════════════════
# 🚻 FACILITY DATACLASS SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FacilityRecord:
    """Immutable point-of-interest record.

    Field names follow Python conventions; from_feature() maps the source
    property keys (facility_name, location_type, hours_of_operation,
    additional_notes, ...) onto them. The full source properties bag is
    kept read-only in `properties` so as_feature() can round-trip it.

    Usage Examples:
    ---------------
    ```python
    record = FacilityRecord.from_feature(feature)
    if record.has_valid_coordinates:
        lng, lat = record.coordinates
    ```
    """

    id: Optional[Any] = None
    coordinates: Optional[Tuple[float, float]] = None
    name: Optional[str] = None
    status: Optional[str] = None
    accessibility: Optional[str] = None
    location_type: Optional[str] = None
    operator: Optional[str] = None
    hours_of_operation: Optional[str] = None
    restroom_type: Optional[str] = None
    changing_stations: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    properties: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), compare=False, repr=False
    )

    @property
    def has_valid_coordinates(self) -> bool:
        """True if coordinates is a finite (lng, lat) pair."""
        if self.coordinates is None or len(self.coordinates) != 2:
            return False
        lng, lat = self.coordinates
        try:
            return math.isfinite(lng) and math.isfinite(lat)
        except TypeError:
            return False

    @property
    def longitude(self) -> Optional[float]:
        return self.coordinates[0] if self.has_valid_coordinates else None

    @property
    def latitude(self) -> Optional[float]:
        return self.coordinates[1] if self.has_valid_coordinates else None

    @property
    def status_category(self) -> FacilityStatus:
        return FacilityStatus.from_string(self.status)

    @property
    def accessibility_category(self) -> AccessibilityLevel:
        return AccessibilityLevel.from_string(self.accessibility)

    @property
    def location_category(self) -> LocationType:
        return LocationType.from_string(self.location_type)

    @classmethod
    def from_feature(cls, feature: Mapping[str, Any]) -> "FacilityRecord":
        """Create a FacilityRecord from a GeoJSON Feature dict.

        The identifier is taken from the Feature's top-level "id" when
        present, otherwise from properties["id"]; it may be absent.

        Args:
            feature: GeoJSON Feature (geometry may be missing or malformed)

        Returns:
            FacilityRecord with coordinates=None if the geometry is unusable
        """
        props = feature.get("properties") or {}
        geometry = feature.get("geometry") or {}
        coords = None
        if isinstance(geometry, Mapping):
            coords = parse_coordinates(geometry.get("coordinates"))

        record_id = feature.get("id")
        if record_id is None:
            record_id = props.get("id")

        return cls(
            id=record_id,
            coordinates=coords,
            name=_optional_str(props.get("facility_name")),
            status=_optional_str(props.get("status")),
            accessibility=_optional_str(props.get("accessibility")),
            location_type=_optional_str(props.get("location_type")),
            operator=_optional_str(props.get("operator")),
            hours_of_operation=_optional_str(props.get("hours_of_operation")),
            restroom_type=_optional_str(props.get("restroom_type")),
            changing_stations=_optional_str(props.get("changing_stations")),
            website=_optional_str(props.get("website")),
            notes=_optional_str(props.get("additional_notes")),
            properties=MappingProxyType(dict(props)),
        )

    def as_properties(self) -> Dict[str, Any]:
        """Source-keyed properties dict (original bag plus typed fields)."""
        result = dict(self.properties)
        result.update(
            {
                "facility_name": self.name,
                "status": self.status,
                "accessibility": self.accessibility,
                "location_type": self.location_type,
                "operator": self.operator,
                "hours_of_operation": self.hours_of_operation,
                "restroom_type": self.restroom_type,
                "changing_stations": self.changing_stations,
                "website": self.website,
                "additional_notes": self.notes,
            }
        )
        return result

    def as_feature(self) -> Dict[str, Any]:
        """Convert back to a GeoJSON Feature dict."""
        geometry = None
        if self.has_valid_coordinates:
            geometry = {"type": "Point", "coordinates": list(self.coordinates)}
        feature: Dict[str, Any] = {
            "type": "Feature",
            "geometry": geometry,
            "properties": self.as_properties(),
        }
        if self.id is not None:
            feature["id"] = self.id
        return feature


# ═══════════════════════════════════════════════════════════════════════════
# 🔄 BATCH CONVERSION UTILITIES
# ═══════════════════════════════════════════════════════════════════════════


def records_from_features(features: Iterable[Mapping[str, Any]]) -> Tuple[FacilityRecord, ...]:
    """Build an immutable tuple of records from GeoJSON Features."""
    return tuple(FacilityRecord.from_feature(f) for f in features)


def records_from_feature_collection(
    feature_collection: Mapping[str, Any],
) -> Tuple[FacilityRecord, ...]:
    """
    Build records from a GeoJSON FeatureCollection dict.

    Raises:
        ValueError: If the payload has no "features" list
    """
    features = feature_collection.get("features")
    if not isinstance(features, list):
        raise ValueError("FeatureCollection must contain a 'features' list")
    return records_from_features(features)


def records_to_feature_collection(records: Sequence[FacilityRecord]) -> Dict[str, Any]:
    """Wrap records as a GeoJSON FeatureCollection dict."""
    return {
        "type": "FeatureCollection",
        "features": [r.as_feature() for r in records],
    }


def records_to_dicts(records: Sequence[FacilityRecord]) -> List[Dict[str, Any]]:
    """Flat row dicts (one per record) for tabular export."""
    rows = []
    for r in records:
        row = r.as_properties()
        row["id"] = r.id
        row["longitude"] = r.longitude
        row["latitude"] = r.latitude
        rows.append(row)
    return rows
