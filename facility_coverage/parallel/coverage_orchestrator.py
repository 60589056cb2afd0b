"""
Orchestrator for parallel coverage grid computation.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Split the coverage grid into bands of rows, dispatch each
band to a worker, and stitch the results back together in row order.

Patterns:
- should_use_parallel() check for configuration and job size
- joblib Parallel with delayed for dispatch
- Always uses parallel infrastructure (n_jobs=1 for sequential execution)
- Inline sequential fallback if dispatch fails and fallback_on_error is set

Key Functions:
- dispatch_row_bands(): Run all bands and return an (n_rows, n_cols) array
- split_row_bands(): Contiguous [start, stop) row ranges
- should_use_parallel() / get_effective_worker_count(): Decision logic

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import os
import time
from typing import Any, Dict, List, Tuple, Union

import numpy as np
from joblib import Parallel, delayed

from facility_coverage.config_types import AppConfig, ParallelConfig, _normalize_config
from facility_coverage.parallel.coverage_worker import worker_compute_row_band

logger = logging.getLogger("FacilityCoverage.Parallel.Orchestrator")


def _parallel_section(
    config: Union[Dict[str, Any], AppConfig, ParallelConfig, None],
) -> ParallelConfig:
    if isinstance(config, ParallelConfig):
        return config
    return _normalize_config(config).parallel


# ═══════════════════════════════════════════════════════════════════════════
# 🔍 PARALLEL DECISION LOGIC
# ═══════════════════════════════════════════════════════════════════════════


def should_use_parallel(
    n_rows: int,
    config: Union[Dict[str, Any], AppConfig, ParallelConfig, None],
) -> Tuple[bool, str]:
    """
    Determine if parallel processing should be used.

    Args:
        n_rows: Number of grid rows to process.
        config: CONFIG dict, AppConfig or ParallelConfig.

    Returns:
        Tuple of (should_use: bool, reason: str).
    """
    parallel = _parallel_section(config)

    if not parallel.enabled:
        return False, "Parallel disabled in config"

    if n_rows < parallel.min_rows_for_parallel:
        return False, f"Only {n_rows} rows (< {parallel.min_rows_for_parallel} threshold)"

    return True, f"OK ({n_rows} rows)"


def get_effective_worker_count(
    n_rows: int,
    config: Union[Dict[str, Any], AppConfig, ParallelConfig, None],
) -> int:
    """
    Calculate worker count based on row count and config.

    Args:
        n_rows: Number of grid rows.
        config: CONFIG dict, AppConfig or ParallelConfig.

    Returns:
        Number of workers to use (at least 1).
    """
    parallel = _parallel_section(config)
    max_workers = parallel.max_workers

    if max_workers == -1:
        cpu_count = os.cpu_count() or 4
        max_workers = min(cpu_count, parallel.optimal_workers_default)

    # Don't use more workers than rows
    return max(1, min(max_workers, n_rows))


# ═══════════════════════════════════════════════════════════════════════════
# ✂️ BAND SPLITTING
# ═══════════════════════════════════════════════════════════════════════════


def split_row_bands(n_rows: int, n_bands: int) -> List[Tuple[int, int]]:
    """
    Split n_rows into at most n_bands contiguous [start, stop) ranges.

    Example:
        >>> split_row_bands(10, 3)
        [(0, 4), (4, 7), (7, 10)]
    """
    if n_rows <= 0:
        return []
    n_bands = max(1, min(n_bands, n_rows))
    base, extra = divmod(n_rows, n_bands)
    bands = []
    start = 0
    for b in range(n_bands):
        stop = start + base + (1 if b < extra else 0)
        bands.append((start, stop))
        start = stop
    return bands


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 DISPATCH
# ═══════════════════════════════════════════════════════════════════════════


def dispatch_row_bands(
    index,
    row_lats: np.ndarray,
    col_lngs: np.ndarray,
    n_jobs: int = 1,
    backend: str = "threading",
    verbose: int = 0,
    fallback_on_error: bool = True,
) -> np.ndarray:
    """
    Compute nearest distances for the whole grid, one band per worker.

    Args:
        index: NearestFacilityIndex over the valid facilities
        row_lats: Latitude of each grid row, shape (n_rows,)
        col_lngs: Longitude of each grid column, shape (n_cols,)
        n_jobs: Worker count (1 = sequential through the same path)
        backend: joblib backend
        verbose: joblib verbosity
        fallback_on_error: Run inline if the parallel backend fails

    Returns:
        Distances in meters, shape (n_rows, n_cols), row order preserved
    """
    row_lats = np.asarray(row_lats, dtype=float)
    col_lngs = np.asarray(col_lngs, dtype=float)
    n_rows = len(row_lats)
    bands = split_row_bands(n_rows, n_jobs)

    if not bands:
        return np.empty((0, len(col_lngs)), dtype=float)

    start_time = time.time()
    try:
        results = Parallel(n_jobs=n_jobs, backend=backend, verbose=verbose)(
            delayed(worker_compute_row_band)(
                band_index, index, row_lats[start:stop], col_lngs
            )
            for band_index, (start, stop) in enumerate(bands)
        )
    except (ImportError, RuntimeError, OSError) as e:
        logger.warning(f"⚠️ Parallel dispatch failed: {e}")
        if not fallback_on_error:
            raise
        logger.info("📋 Falling back to inline sequential processing...")
        results = [
            worker_compute_row_band(band_index, index, row_lats[start:stop], col_lngs)
            for band_index, (start, stop) in enumerate(bands)
        ]

    results = sorted(results, key=lambda r: r[0])
    distances = np.vstack([band for _, band in results])

    elapsed = time.time() - start_time
    logger.debug(
        f"   ⏱️ {len(bands)} band(s) on {n_jobs} worker(s) in {elapsed * 1000:.1f}ms"
    )
    return distances


def dispatch_for_config(
    index,
    row_lats: np.ndarray,
    col_lngs: np.ndarray,
    config: Union[Dict[str, Any], AppConfig, ParallelConfig, None],
) -> np.ndarray:
    """dispatch_row_bands() with worker count and backend taken from config."""
    parallel = _parallel_section(config)
    n_rows = len(row_lats)
    use_parallel, reason = should_use_parallel(n_rows, parallel)
    n_jobs = get_effective_worker_count(n_rows, parallel) if use_parallel else 1
    logger.info(f"   ⚡ Row-band dispatch: n_jobs={n_jobs} ({reason})")
    return dispatch_row_bands(
        index,
        row_lats,
        col_lngs,
        n_jobs=n_jobs,
        backend=parallel.backend,
        verbose=parallel.verbose,
        fallback_on_error=parallel.fallback_on_error,
    )
