"""
Coverage Grid Parallel Processing Module

Splits the coverage grid into row bands and computes them through joblib.
- Thin worker calling the nearest-facility index
- Always uses parallel infrastructure (n_jobs=1 for sequential)

Module Structure:
- coverage_orchestrator.py: Band splitting, dispatch, decision logic
- coverage_worker.py: Thin worker for a single row band
"""

from facility_coverage.parallel.coverage_orchestrator import (
    dispatch_for_config,
    dispatch_row_bands,
    get_effective_worker_count,
    should_use_parallel,
    split_row_bands,
)
from facility_coverage.parallel.coverage_worker import worker_compute_row_band

__all__ = [
    "dispatch_for_config",
    "dispatch_row_bands",
    "get_effective_worker_count",
    "should_use_parallel",
    "split_row_bands",
    "worker_compute_row_band",
]
