"""
Visual categories for facility markers.

Maps the raw status / accessibility / location type strings onto marker
colour, marker radius and popup icons. Unrecognized values get the default
entry of each table, so unknown categories still render.
"""

from typing import Any, Dict, Optional, Union

from facility_coverage.config_types import AppConfig, StyleConfig, _normalize_config
from facility_coverage.models import FacilityRecord


def _style_section(config: Union[Dict[str, Any], AppConfig, StyleConfig, None]) -> StyleConfig:
    if isinstance(config, StyleConfig):
        return config
    return _normalize_config(config).styles


def status_color(status: Optional[str], styles: StyleConfig) -> str:
    return styles.status_colors.get(status, styles.default_status_color)


def status_radius(status: Optional[str], styles: StyleConfig) -> int:
    return styles.status_radii.get(status, styles.default_status_radius)


def accessibility_icon(accessibility: Optional[str], styles: StyleConfig) -> str:
    return styles.accessibility_icons.get(accessibility, styles.default_accessibility_icon)


def location_type_icon(location_type: Optional[str], styles: StyleConfig) -> str:
    return styles.location_type_icons.get(location_type, styles.default_location_type_icon)


def marker_style(
    record: FacilityRecord,
    config: Union[Dict[str, Any], AppConfig, StyleConfig, None] = None,
) -> Dict[str, Any]:
    """
    Marker and popup styling for one record.

    Returns:
        Dict with color, radius, accessibilityIcon, locationTypeIcon
    """
    styles = _style_section(config)
    return {
        "color": status_color(record.status, styles),
        "radius": status_radius(record.status, styles),
        "accessibilityIcon": accessibility_icon(record.accessibility, styles),
        "locationTypeIcon": location_type_icon(record.location_type, styles),
    }


def styled_feature(
    record: FacilityRecord,
    config: Union[Dict[str, Any], AppConfig, StyleConfig, None] = None,
) -> Dict[str, Any]:
    """GeoJSON Feature for the record with a `style` entry in its properties."""
    feature = record.as_feature()
    feature["properties"]["style"] = marker_style(record, config)
    return feature
