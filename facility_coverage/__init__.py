"""
Facility Coverage Map

Multi-facet filtering, summary statistics and a nearest-facility coverage
heat layer over a point-of-interest dataset.
"""

from facility_coverage.config import CONFIG
from facility_coverage.coverage_grid import compute_coverage, compute_coverage_for_config
from facility_coverage.filtering import apply_filters
from facility_coverage.session import MapSession
from facility_coverage.statistics import summarize

__all__ = [
    "CONFIG",
    "MapSession",
    "apply_filters",
    "compute_coverage",
    "compute_coverage_for_config",
    "summarize",
]
