#!/usr/bin/env python3
"""
Facility Coverage Map - Data Loader

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Load the facility GeoJSON FeatureCollection once and expose
it as an immutable tuple of FacilityRecord, plus GeoJSON / GeoDataFrame
views for the server and exporters.

Key Features:
1. One read of the source file; records never mutated afterwards
2. Malformed coordinates tolerated (record kept, coordinates=None)
3. File modification / load timestamps for /api/data/info
4. GeoDataFrame conversion in WGS84 for tabular export

Navigation Guide:
- DataLoader: Main loader class
- get_facilities_geojson: Full store as a FeatureCollection
- to_geodataframe: Valid-coordinate records as a GeoDataFrame

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Union
from datetime import datetime
import json
import logging
import os

import geopandas as gpd
from shapely.geometry import Point

from facility_coverage.models import (
    FacilityRecord,
    records_from_feature_collection,
    records_to_dicts,
    records_to_feature_collection,
)

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

CRS_WGS84 = "EPSG:4326"

logger = logging.getLogger("FacilityCoverage.Loader")

# ═══════════════════════════════════════════════════════════════════════════
# 📂 DATA LOADER
# ═══════════════════════════════════════════════════════════════════════════


class DataLoader:
    """
    Load facility records from a GeoJSON FeatureCollection file.

    Loading is lazy: the file is read on the first load() call (or first
    access to records) and cached for the lifetime of the loader.
    """

    def __init__(self, data_path: Union[str, Path]) -> None:
        """
        Initialize data loader.

        Args:
            data_path: GeoJSON FeatureCollection file
        """
        self.data_path = Path(data_path)

        self._records: Optional[Tuple[FacilityRecord, ...]] = None
        self._data_file_modified: Optional[datetime] = None
        self._data_loaded_at: Optional[datetime] = None

    def load(self) -> Tuple[FacilityRecord, ...]:
        """
        Read and parse the source file (once).

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not JSON or has no "features" list
        """
        if self._records is not None:
            return self._records

        if not self.data_path.exists():
            raise FileNotFoundError(f"Facility data not found: {self.data_path}")

        logger.info(f"📂 Loading facilities: {self.data_path}")

        file_mtime = os.path.getmtime(self.data_path)
        self._data_file_modified = datetime.fromtimestamp(file_mtime)

        with open(self.data_path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in {self.data_path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Expected a FeatureCollection object in {self.data_path}")

        self._records = records_from_feature_collection(data)
        self._data_loaded_at = datetime.now()

        invalid = self.invalid_coordinate_count
        logger.info(f"   ✅ Loaded {len(self._records)} facilities")
        if invalid:
            logger.warning(f"   ⚠️ {invalid} facilities have missing or invalid coordinates")
        return self._records

    @property
    def records(self) -> Tuple[FacilityRecord, ...]:
        return self.load()

    @property
    def valid_coordinate_count(self) -> int:
        return sum(1 for r in self.records if r.has_valid_coordinates)

    @property
    def invalid_coordinate_count(self) -> int:
        return len(self.records) - self.valid_coordinate_count

    def get_facilities_geojson(self) -> Dict[str, Any]:
        """Full store as a GeoJSON FeatureCollection."""
        return records_to_feature_collection(self.records)

    def get_data_info(self) -> Dict[str, Any]:
        """
        Get information about the loaded data including timestamps.

        Returns:
            Dict with data_path, data_file_modified, data_loaded_at,
            facility_count, valid_coordinate_count, invalid_coordinate_count.
        """
        records = self.records
        valid = self.valid_coordinate_count
        return {
            "data_path": str(self.data_path),
            "data_file_modified": (
                self._data_file_modified.isoformat()
                if self._data_file_modified
                else None
            ),
            "data_loaded_at": (
                self._data_loaded_at.isoformat() if self._data_loaded_at else None
            ),
            "facility_count": len(records),
            "valid_coordinate_count": valid,
            "invalid_coordinate_count": len(records) - valid,
        }

    def to_geodataframe(self) -> gpd.GeoDataFrame:
        """Records with valid coordinates as a GeoDataFrame in WGS84."""
        return records_to_geodataframe(self.records)


def records_to_geodataframe(records: Sequence[FacilityRecord]) -> gpd.GeoDataFrame:
    """
    Convert records to a WGS84 GeoDataFrame, dropping invalid coordinates.

    Returns:
        GeoDataFrame with one row per valid record (empty if none)
    """
    valid = [r for r in records if r.has_valid_coordinates]
    if not valid:
        return gpd.GeoDataFrame(geometry=[], crs=CRS_WGS84)

    rows = records_to_dicts(valid)
    geometries = [Point(r.longitude, r.latitude) for r in valid]
    return gpd.GeoDataFrame(rows, geometry=geometries, crs=CRS_WGS84)
