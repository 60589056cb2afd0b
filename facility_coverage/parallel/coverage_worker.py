"""
Thin worker for one band of coverage grid rows.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Compute nearest-facility distances for a contiguous band of
grid rows. Holds no logic of its own beyond building the query points for
the band; the nearest-neighbor work is delegated to the index object.

Called by coverage_orchestrator.dispatch_row_bands() through joblib, with
n_jobs=1 for sequential execution.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from typing import Tuple

import numpy as np

logger = logging.getLogger("FacilityCoverage.Parallel.Worker")


def worker_compute_row_band(
    band_index: int,
    index,
    row_lats: np.ndarray,
    col_lngs: np.ndarray,
) -> Tuple[int, np.ndarray]:
    """
    Compute nearest distances for every cell in a band of rows.

    Args:
        band_index: Position of this band (used to restore row order)
        index: NearestFacilityIndex built over the valid facilities
        row_lats: Latitudes of the rows in this band, shape (r,)
        col_lngs: Longitudes of every grid column, shape (n,)

    Returns:
        Tuple of (band_index, distances) with distances shaped (r, n)
    """
    n_rows = len(row_lats)
    n_cols = len(col_lngs)
    if n_rows == 0:
        return band_index, np.empty((0, n_cols), dtype=float)

    # i-major, j-minor flattening of the band
    query_lats = np.repeat(np.asarray(row_lats, dtype=float), n_cols)
    query_lngs = np.tile(np.asarray(col_lngs, dtype=float), n_rows)

    distances = index.nearest_distances(query_lats, query_lngs)
    logger.debug(f"   Band {band_index}: {n_rows} rows x {n_cols} cols")
    return band_index, distances.reshape(n_rows, n_cols)
