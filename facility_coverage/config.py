#!/usr/bin/env python3
"""
Facility Coverage Map - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Centralized configuration for the facility coverage map.
Single source of truth for file paths, coverage grid sampling, parallel
dispatch, HTTP server and visual categories.

Configuration Sections (ordered by importance for tuning):
1. coverage: Grid resolution, bounding box, distance cutoff, contrast
2. parallel: Row-band dispatch for the coverage grid
3. map: Initial viewport for the map client
4. styles: Status colours / radii and category icons
5. server: Flask host / port
6. file_paths: Input / log locations (bottom - rarely changed)

Pattern:
- config.py defines the CONFIG dictionary (edit this)
- config_types.py defines typed dataclasses and loads from CONFIG

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import os
from typing import Dict, Any, TypeVar, Callable, Optional

T = TypeVar("T")


def _env_or_default(
    key: str, default: T, type_fn: Optional[Callable[[str], T]] = None
) -> T:
    """
    Get value from environment variable or use default.

    Args:
        key: Environment variable name (e.g., "FACILITY_GRID_SIZE")
        default: Default value if env var not set
        type_fn: Optional type conversion function (e.g., float, int)

    Returns:
        Value from environment (converted) or default

    Example:
        >>> _env_or_default("FACILITY_GAMMA", 0.6, float)
        0.6  # If env var not set
    """
    val = os.getenv(key)
    if val is not None:
        if type_fn is not None:
            return type_fn(val)
        return val  # type: ignore
    return default


def _env_bool(key: str, default: bool) -> bool:
    """
    Get boolean value from environment variable.

    Treats "true", "1", "yes" as True (case-insensitive).
    Any other value or unset returns default.
    """
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 ENVIRONMENT VARIABLE OVERRIDES
# ═══════════════════════════════════════════════════════════════════════════
# Settings that can be overridden without editing this file:
#   FACILITY_DATA_PATH        - GeoJSON feature collection to load
#   FACILITY_GRID_SIZE        - Coverage grid resolution (N for N x N)
#   FACILITY_MAX_DISTANCE_M   - Distance at which a cell saturates
#   FACILITY_GAMMA            - Contrast exponent
#   FACILITY_DISTANCE         - "planar" or "haversine"
#   FACILITY_INDEX            - "brute_force", "kdtree" or "balltree"
#   FACILITY_PARALLEL         - Enable row-band dispatch
#   FACILITY_SERVER_PORT      - Flask port

CONFIG: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # 🌡️ COVERAGE GRID
    # ═══════════════════════════════════════════════════════════════════════
    "coverage": {
        # NYC plus margin (WGS84 degrees)
        "bounds": {
            "north": 40.95,
            "south": 40.45,
            "east": -73.65,
            "west": -74.30,
        },
        "grid_size": _env_or_default("FACILITY_GRID_SIZE", 100, int),
        # Distances at or beyond this are "maximally uncovered" (intensity 1)
        "max_distance_m": _env_or_default("FACILITY_MAX_DISTANCE_M", 1000.0, float),
        # intensity = normalized ** gamma; < 1 lifts low values for contrast
        "gamma": _env_or_default("FACILITY_GAMMA", 0.6, float),
        # "planar" (fast, metro-scale) or "haversine" (great-circle)
        "distance": _env_or_default("FACILITY_DISTANCE", "planar"),
        # "brute_force", "kdtree" (planar only), "balltree" (haversine only)
        "index": _env_or_default("FACILITY_INDEX", "brute_force"),
        # Longitude degree length at the metro's latitude band
        "meters_per_degree_lng": 85000.0,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # ⚡ PARALLEL ROW-BAND DISPATCH
    # ═══════════════════════════════════════════════════════════════════════
    "parallel": {
        "enabled": _env_bool("FACILITY_PARALLEL", False),
        "max_workers": -1,  # Auto-detect from CPU
        "optimal_workers_default": 4,
        "min_rows_for_parallel": 50,
        "fallback_on_error": True,
        # numpy releases the GIL, so threads avoid pickling the facility arrays
        "backend": "threading",
        "verbose": 0,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🗺️ MAP SETTINGS
    # ═══════════════════════════════════════════════════════════════════════
    "map": {
        "center": [-73.935242, 40.730610],  # [lng, lat]
        "zoom": 11,
        "fit_padding_px": 50,
        "fit_max_zoom": 15,
        "near_me_zoom": 14,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🎨 VISUAL CATEGORIES
    # ═══════════════════════════════════════════════════════════════════════
    "styles": {
        "status_colors": {
            "Operational": "#22c55e",  # Green
            "Not Operational": "#ef4444",  # Red
            "Closed for Construction": "#f59e0b",  # Orange
        },
        "default_status_color": "#6b7280",  # Gray
        "status_radii": {
            "Operational": 8,
            "Not Operational": 6,
        },
        "default_status_radius": 5,
        "accessibility_icons": {
            "Fully Accessible": "♿",
            "Partially Accessible": "🚪",
        },
        "default_accessibility_icon": "❓",
        "location_type_icons": {
            "Park": "🌳",
            "Library": "📚",
        },
        "default_location_type_icon": "🏛️",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🌐 SERVER
    # ═══════════════════════════════════════════════════════════════════════
    "server": {
        "host": "127.0.0.1",
        "port": _env_or_default("FACILITY_SERVER_PORT", 5052, int),
        "debug": False,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📁 FILE PATHS
    # ═══════════════════════════════════════════════════════════════════════
    "file_paths": {
        "facilities_geojson": _env_or_default(
            "FACILITY_DATA_PATH", "data/public_restrooms.geojson"
        ),
        "log_dir": "logs",
        "output_dir": "output",
    },
}
