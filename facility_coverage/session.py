"""
Map session: owned query state, filtered view and the coverage layer.

A MapSession is what one map view holds. Input events (search box, facet
selects, reset button, keyboard shortcuts) update its QueryState; every
update re-runs the filter engine over the shared store and recomputes the
summary statistics. The coverage layer always samples the full store.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from shapely.geometry import MultiPoint

from facility_coverage.config_types import AppConfig, _normalize_config
from facility_coverage.coverage_layer import CoverageLayer
from facility_coverage.filtering import apply_filters
from facility_coverage.models import FacilityRecord, FacilityStats, QueryState
from facility_coverage.statistics import summarize
from facility_coverage.styling import styled_feature

logger = logging.getLogger("FacilityCoverage.Session")

# (west, south, east, north)
Bounds = Tuple[float, float, float, float]


@dataclass(frozen=True)
class FilterResult:
    """Filtered subset plus its summary counts."""

    records: Tuple[FacilityRecord, ...]
    stats: FacilityStats

    def __len__(self) -> int:
        return len(self.records)

    def to_feature_collection(
        self, config: Union[Dict[str, Any], AppConfig, None] = None
    ) -> Dict[str, Any]:
        """FeatureCollection of the subset, each feature carrying a `style`."""
        styles = _normalize_config(config).styles
        return {
            "type": "FeatureCollection",
            "features": [styled_feature(r, styles) for r in self.records],
        }


def data_bounds(
    records: Sequence[FacilityRecord], padding_deg: float = 0.0
) -> Optional[Bounds]:
    """
    Bounding box of the records with valid coordinates.

    Returns:
        (west, south, east, north), or None if no record has coordinates
    """
    points = [r.coordinates for r in records if r.has_valid_coordinates]
    if not points:
        return None
    west, south, east, north = MultiPoint(points).bounds
    return (
        west - padding_deg,
        south - padding_deg,
        east + padding_deg,
        north + padding_deg,
    )


class MapSession:
    """
    One map view's state over a shared, immutable facility store.

    Attributes:
        records: Full facility store
        config: Normalized AppConfig
        query: Owned QueryState (mutated by the update methods)
        coverage: CoverageLayer over the full store
    """

    SHORTCUT_FIT = "f"
    SHORTCUT_RESET = "r"
    SHORTCUT_CLEAR_SEARCH = "escape"

    def __init__(
        self,
        records: Sequence[FacilityRecord],
        config: Union[Dict[str, Any], AppConfig, None] = None,
        coverage: Optional[CoverageLayer] = None,
    ) -> None:
        self.records: Tuple[FacilityRecord, ...] = tuple(records)
        self.config = _normalize_config(config)
        self.query = QueryState()
        self.coverage = coverage or CoverageLayer(self.records, self.config)

    # ═══════════════════════════════════════════════════════════════════════
    # 🔍 FILTERING
    # ═══════════════════════════════════════════════════════════════════════

    def apply_filters(self, query: Optional[QueryState] = None) -> FilterResult:
        """Filter the store with the session query (or an explicit one)."""
        subset = apply_filters(self.records, query if query is not None else self.query)
        return FilterResult(records=tuple(subset), stats=summarize(subset))

    def update_query(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        accessibility: Optional[str] = None,
        location_type: Optional[str] = None,
    ) -> FilterResult:
        """Apply discrete field updates and re-filter."""
        self.query.update(
            search=search,
            status=status,
            accessibility=accessibility,
            location_type=location_type,
        )
        return self.apply_filters()

    def reset_filters(self) -> FilterResult:
        self.query.reset()
        logger.debug("🔄 Filters reset")
        return self.apply_filters()

    def clear_search(self) -> FilterResult:
        self.query.clear_search()
        return self.apply_filters()

    # ═══════════════════════════════════════════════════════════════════════
    # 🗺️ VIEWPORT
    # ═══════════════════════════════════════════════════════════════════════

    def data_bounds(self, padding_deg: float = 0.0) -> Optional[Bounds]:
        """Fit-to-data bounds over the full store."""
        return data_bounds(self.records, padding_deg)

    def fit_view(self) -> Optional[Dict[str, Any]]:
        """Camera settings for fitting the map to the data."""
        bounds = self.data_bounds()
        if bounds is None:
            return None
        return {
            "bounds": list(bounds),
            "padding": self.config.map_view.fit_padding_px,
            "maxZoom": self.config.map_view.fit_max_zoom,
        }

    def handle_shortcut(self, key: str) -> Optional[Any]:
        """
        Keyboard shortcuts (case-insensitive).

        Returns:
            "f": data bounds for fitting the view
            "r": FilterResult after resetting every facet
            "escape": FilterResult after clearing the search text
            anything else: None
        """
        key = (key or "").lower()
        if key == self.SHORTCUT_FIT:
            return self.data_bounds()
        if key == self.SHORTCUT_RESET:
            return self.reset_filters()
        if key == self.SHORTCUT_CLEAR_SEARCH:
            return self.clear_search()
        return None

    def close(self) -> None:
        self.coverage.shutdown(wait=False)
