"""
Coverage grid sampler.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Sample a bounding box on a regular N x N grid, find the
distance from every grid point to its nearest facility, and turn that into a
normalized, gamma-scaled intensity for a heat layer.

    latStep = (north - south) / N        lat_i = south + i * latStep
    lngStep = (east - west)   / N        lng_j = west  + j * lngStep
    normalized = min(distance / max_distance_m, 1)
    intensity  = normalized ** gamma

Higher intensity means farther from service. Cells are emitted i-major
(latitude row), j-minor (longitude column).

Key Features:
- Facilities with missing / non-finite coordinates never enter the scan
- No valid facilities: every cell is saturated (intensity 1)
- Pluggable nearest-neighbor strategy with identical results:
  brute-force scan (default), scipy KDTree (planar), sklearn BallTree
  (haversine)
- Row bands dispatched through joblib (parallel/)

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import math
import numbers
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence, Tuple, Union

import numpy as np
from scipy.spatial import KDTree
from sklearn.neighbors import BallTree

from facility_coverage.config_types import (
    AppConfig,
    CoverageBounds,
    _normalize_config,
)
from facility_coverage.distance import (
    DEFAULT_METERS_PER_DEGREE_LNG,
    EARTH_RADIUS_METERS,
    METERS_PER_DEGREE_LAT,
    DistanceModel,
    get_distance_model,
)
from facility_coverage.models import FacilityRecord
from facility_coverage.parallel.coverage_orchestrator import (
    dispatch_for_config,
    dispatch_row_bands,
)

logger = logging.getLogger("FacilityCoverage.Grid")

INDEX_STRATEGIES = ("brute_force", "kdtree", "balltree")

# Upper bound on query x facility distance matrix entries per brute-force chunk
_BRUTE_FORCE_CHUNK_ELEMENTS = 2_000_000


# ═══════════════════════════════════════════════════════════════════════════════
# 📦 RESULT TYPES
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class CoverageCell:
    """One grid sample: position, intensity in [0, 1], raw nearest distance."""

    longitude: float
    latitude: float
    intensity: float
    distance_m: float


@dataclass(frozen=True)
class CoverageGrid:
    """
    Derived coverage dataset (N x N cells, i-major / j-minor).

    Attributes:
        grid_size: Samples per axis
        bounds: Sampled region
        max_distance_m: Saturation distance
        gamma: Contrast exponent
        distance: Distance function used ("planar" / "haversine")
        index: Nearest-neighbor strategy used
        cells: grid_size ** 2 cells
        facility_count: Number of valid facilities scanned
    """

    grid_size: int
    bounds: CoverageBounds
    max_distance_m: float
    gamma: float
    distance: str
    index: str
    cells: Tuple[CoverageCell, ...]
    facility_count: int = 0

    def __len__(self) -> int:
        return len(self.cells)

    @property
    def intensities(self) -> np.ndarray:
        return np.fromiter((c.intensity for c in self.cells), dtype=float, count=len(self.cells))

    @property
    def distances(self) -> np.ndarray:
        return np.fromiter((c.distance_m for c in self.cells), dtype=float, count=len(self.cells))

    def cell(self, i: int, j: int) -> CoverageCell:
        """Cell at latitude row i, longitude column j."""
        if not (0 <= i < self.grid_size and 0 <= j < self.grid_size):
            raise IndexError(f"Cell ({i}, {j}) outside {self.grid_size}x{self.grid_size} grid")
        return self.cells[i * self.grid_size + j]

    def summary(self) -> Dict[str, Any]:
        """Headline numbers for logging and the HTTP surface."""
        intensities = self.intensities
        return {
            "grid_size": self.grid_size,
            "cell_count": len(self.cells),
            "facility_count": self.facility_count,
            "max_distance_m": self.max_distance_m,
            "gamma": self.gamma,
            "distance": self.distance,
            "index": self.index,
            "mean_intensity": float(intensities.mean()) if len(intensities) else 0.0,
            "saturated_cells": int(np.count_nonzero(intensities >= 1.0)),
        }

    def to_feature_collection(self) -> Dict[str, Any]:
        """
        One GeoJSON Point Feature per cell carrying `intensity`.

        `distance_m` is None when no facility was available (JSON has no inf).
        """
        features = []
        for cell in self.cells:
            distance = cell.distance_m if math.isfinite(cell.distance_m) else None
            features.append(
                {
                    "type": "Feature",
                    "geometry": {
                        "type": "Point",
                        "coordinates": [cell.longitude, cell.latitude],
                    },
                    "properties": {
                        "intensity": cell.intensity,
                        "distance_m": distance,
                    },
                }
            )
        return {"type": "FeatureCollection", "features": features}


# ═══════════════════════════════════════════════════════════════════════════════
# ✅ ARGUMENT VALIDATION
# ═══════════════════════════════════════════════════════════════════════════════


def validate_grid_size(grid_size: Any) -> int:
    """
    Return grid_size as int.

    Raises:
        ValueError: If grid_size is not a finite whole number >= 1
    """
    if isinstance(grid_size, bool) or not isinstance(grid_size, numbers.Real):
        raise ValueError(f"grid_size must be a number, got {grid_size!r}")
    if not math.isfinite(grid_size) or grid_size != int(grid_size) or grid_size < 1:
        raise ValueError(f"grid_size must be a whole number >= 1, got {grid_size!r}")
    return int(grid_size)


def _validate_positive(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValueError(f"{name} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be finite and > 0, got {value!r}")
    return value


# ═══════════════════════════════════════════════════════════════════════════════
# 📐 GRID GEOMETRY
# ═══════════════════════════════════════════════════════════════════════════════


def grid_axes(bounds: CoverageBounds, grid_size: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Row latitudes and column longitudes of the sampling grid.

    Returns:
        (row_lats, col_lngs), each of length grid_size
    """
    bounds.validate()
    n = validate_grid_size(grid_size)
    lat_step = bounds.lat_span / n
    lng_step = bounds.lng_span / n
    steps = np.arange(n, dtype=float)
    return bounds.south + steps * lat_step, bounds.west + steps * lng_step


def grid_points(bounds: CoverageBounds, grid_size: int) -> List[Tuple[float, float]]:
    """(lat, lng) of every grid point in i-major, j-minor order."""
    row_lats, col_lngs = grid_axes(bounds, grid_size)
    return [(float(lat), float(lng)) for lat in row_lats for lng in col_lngs]


def valid_facility_coordinates(
    records: Sequence[FacilityRecord],
) -> Tuple[np.ndarray, np.ndarray]:
    """Latitude and longitude arrays of the records with finite coordinates."""
    lats = []
    lngs = []
    for record in records:
        if record.has_valid_coordinates:
            lng, lat = record.coordinates
            lats.append(lat)
            lngs.append(lng)
    return np.asarray(lats, dtype=float), np.asarray(lngs, dtype=float)


# ═══════════════════════════════════════════════════════════════════════════════
# 🌡️ INTENSITY
# ═══════════════════════════════════════════════════════════════════════════════


def distance_to_intensity(
    distances: Union[np.ndarray, float],
    max_distance_m: float,
    gamma: float,
) -> np.ndarray:
    """
    Map raw nearest distances to display intensity.

    normalized = min(d / max_distance_m, 1), intensity = normalized ** gamma.
    Infinite or NaN distances (no facility available) saturate to 1.
    """
    d = np.asarray(distances, dtype=float)
    normalized = np.minimum(d / max_distance_m, 1.0)
    normalized = np.where(np.isnan(normalized), 1.0, normalized)
    normalized = np.clip(normalized, 0.0, 1.0)
    return np.power(normalized, gamma)


# ═══════════════════════════════════════════════════════════════════════════════
# 🧭 NEAREST-FACILITY STRATEGIES
# ═══════════════════════════════════════════════════════════════════════════════


class NearestFacilityIndex:
    """
    Nearest-facility lookup over a fixed set of facility coordinates.

    Subclasses implement nearest_distances(); every strategy returns the
    same distances for the same distance model.
    """

    name = "base"

    def __init__(self, lats: np.ndarray, lngs: np.ndarray) -> None:
        self.lats = np.asarray(lats, dtype=float)
        self.lngs = np.asarray(lngs, dtype=float)

    def __len__(self) -> int:
        return len(self.lats)

    def nearest_distances(self, query_lats: np.ndarray, query_lngs: np.ndarray) -> np.ndarray:
        """
        Distance in meters from each query point to its nearest facility.

        Returns inf for every query point when there are no facilities.
        """
        raise NotImplementedError


class BruteForceIndex(NearestFacilityIndex):
    """Linear scan of every facility for every query point (numpy-vectorized)."""

    name = "brute_force"

    def __init__(
        self,
        lats: np.ndarray,
        lngs: np.ndarray,
        model: DistanceModel,
        meters_per_degree_lng: float = DEFAULT_METERS_PER_DEGREE_LNG,
    ) -> None:
        super().__init__(lats, lngs)
        self.model = model
        self.meters_per_degree_lng = meters_per_degree_lng

    def nearest_distances(self, query_lats: np.ndarray, query_lngs: np.ndarray) -> np.ndarray:
        query_lats = np.asarray(query_lats, dtype=float)
        query_lngs = np.asarray(query_lngs, dtype=float)
        n_queries = len(query_lats)
        if len(self) == 0:
            return np.full(n_queries, np.inf)

        result = np.empty(n_queries, dtype=float)
        chunk = max(1, _BRUTE_FORCE_CHUNK_ELEMENTS // len(self))
        for start in range(0, n_queries, chunk):
            stop = min(start + chunk, n_queries)
            matrix = self.model.array(
                query_lats[start:stop, np.newaxis],
                query_lngs[start:stop, np.newaxis],
                self.lats[np.newaxis, :],
                self.lngs[np.newaxis, :],
                self.meters_per_degree_lng,
            )
            result[start:stop] = matrix.min(axis=1)
        return result


class PlanarKDTreeIndex(NearestFacilityIndex):
    """
    scipy KDTree over facilities projected into the planar metric.

    Scaling latitude by 111 km/deg and longitude by meters_per_degree_lng
    makes plain Euclidean distance equal the planar approximation.
    """

    name = "kdtree"

    def __init__(
        self,
        lats: np.ndarray,
        lngs: np.ndarray,
        meters_per_degree_lng: float = DEFAULT_METERS_PER_DEGREE_LNG,
    ) -> None:
        super().__init__(lats, lngs)
        self.meters_per_degree_lng = meters_per_degree_lng
        self._tree = KDTree(self._project(self.lats, self.lngs)) if len(self) else None

    def _project(self, lats: np.ndarray, lngs: np.ndarray) -> np.ndarray:
        return np.column_stack(
            (lats * METERS_PER_DEGREE_LAT, lngs * self.meters_per_degree_lng)
        )

    def nearest_distances(self, query_lats: np.ndarray, query_lngs: np.ndarray) -> np.ndarray:
        query_lats = np.asarray(query_lats, dtype=float)
        query_lngs = np.asarray(query_lngs, dtype=float)
        if self._tree is None:
            return np.full(len(query_lats), np.inf)
        distances, _ = self._tree.query(self._project(query_lats, query_lngs), k=1)
        return np.asarray(distances, dtype=float)


class HaversineBallTreeIndex(NearestFacilityIndex):
    """sklearn BallTree with the haversine metric (radians in, radians out)."""

    name = "balltree"

    def __init__(self, lats: np.ndarray, lngs: np.ndarray) -> None:
        super().__init__(lats, lngs)
        self._tree = (
            BallTree(np.radians(np.column_stack((self.lats, self.lngs))), metric="haversine")
            if len(self)
            else None
        )

    def nearest_distances(self, query_lats: np.ndarray, query_lngs: np.ndarray) -> np.ndarray:
        query_lats = np.asarray(query_lats, dtype=float)
        query_lngs = np.asarray(query_lngs, dtype=float)
        if self._tree is None:
            return np.full(len(query_lats), np.inf)
        query = np.radians(np.column_stack((query_lats, query_lngs)))
        distances, _ = self._tree.query(query, k=1)
        return distances[:, 0] * EARTH_RADIUS_METERS


def build_index(
    records: Sequence[FacilityRecord],
    distance: str = "planar",
    index: str = "brute_force",
    meters_per_degree_lng: float = DEFAULT_METERS_PER_DEGREE_LNG,
) -> NearestFacilityIndex:
    """
    Build a nearest-facility index over the records with valid coordinates.

    Args:
        records: Facility store (invalid coordinates are skipped)
        distance: "planar" or "haversine"
        index: "brute_force", "kdtree" (planar only) or "balltree"
            (haversine only)
        meters_per_degree_lng: Longitude degree length for the planar model

    Raises:
        ValueError: Unknown names or a strategy that does not implement the
            chosen distance model
    """
    model = get_distance_model(distance)
    if index not in INDEX_STRATEGIES:
        raise ValueError(
            f"Unknown index strategy '{index}'. Expected one of: {list(INDEX_STRATEGIES)}"
        )
    if index == "kdtree" and model.name != "planar":
        raise ValueError("kdtree index only supports the planar distance")
    if index == "balltree" and model.name != "haversine":
        raise ValueError("balltree index only supports the haversine distance")

    lats, lngs = valid_facility_coordinates(records)
    skipped = len(records) - len(lats)
    if skipped:
        logger.info(f"   ⚠️ {skipped} facilities without valid coordinates skipped")

    if index == "kdtree":
        return PlanarKDTreeIndex(lats, lngs, meters_per_degree_lng)
    if index == "balltree":
        return HaversineBallTreeIndex(lats, lngs)
    return BruteForceIndex(lats, lngs, model, meters_per_degree_lng)


# ═══════════════════════════════════════════════════════════════════════════════
# 🚀 MAIN ENTRY POINTS
# ═══════════════════════════════════════════════════════════════════════════════


def _assemble_grid(
    row_lats: np.ndarray,
    col_lngs: np.ndarray,
    distances: np.ndarray,
    bounds: CoverageBounds,
    grid_size: int,
    max_distance_m: float,
    gamma: float,
    distance: str,
    index: NearestFacilityIndex,
) -> CoverageGrid:
    intensities = distance_to_intensity(distances, max_distance_m, gamma)
    cells = tuple(
        CoverageCell(
            longitude=float(col_lngs[j]),
            latitude=float(row_lats[i]),
            intensity=float(intensities[i, j]),
            distance_m=float(distances[i, j]),
        )
        for i in range(grid_size)
        for j in range(grid_size)
    )
    return CoverageGrid(
        grid_size=grid_size,
        bounds=bounds,
        max_distance_m=max_distance_m,
        gamma=gamma,
        distance=distance,
        index=index.name,
        cells=cells,
        facility_count=len(index),
    )


RowDispatch = Callable[[NearestFacilityIndex, np.ndarray, np.ndarray], np.ndarray]


def _compute_with_dispatch(
    records: Sequence[FacilityRecord],
    bounds: CoverageBounds,
    grid_size: int,
    max_distance_m: float,
    gamma: float,
    distance: str,
    index: str,
    meters_per_degree_lng: float,
    dispatch: RowDispatch,
) -> CoverageGrid:
    """Validate, build the index, run dispatch over the row axis, assemble."""
    n = validate_grid_size(grid_size)
    max_distance_m = _validate_positive("max_distance_m", max_distance_m)
    gamma = _validate_positive("gamma", gamma)
    row_lats, col_lngs = grid_axes(bounds, n)

    start_time = time.time()
    nn_index = build_index(records, distance, index, meters_per_degree_lng)
    logger.info(
        f"🌡️ Coverage grid {n}x{n} over {len(nn_index)} facilities "
        f"({distance}, {nn_index.name})"
    )

    distances = dispatch(nn_index, row_lats, col_lngs)
    grid = _assemble_grid(
        row_lats, col_lngs, distances, bounds, n, max_distance_m, gamma, distance, nn_index
    )

    elapsed = time.time() - start_time
    logger.info(f"   ✅ {len(grid)} cells in {elapsed * 1000:.0f}ms")
    return grid


def compute_coverage(
    records: Sequence[FacilityRecord],
    bounds: CoverageBounds,
    grid_size: int,
    max_distance_m: float,
    gamma: float,
    distance: str = "planar",
    index: str = "brute_force",
    meters_per_degree_lng: float = DEFAULT_METERS_PER_DEGREE_LNG,
    n_jobs: int = 1,
    backend: str = "threading",
) -> CoverageGrid:
    """
    Sample the coverage grid over the full facility store.

    Args:
        records: Facility store (the full set, not a filtered subset)
        bounds: Region to sample
        grid_size: Samples per axis (N); output has N * N cells
        max_distance_m: Distance at which a cell saturates to 1
        gamma: Contrast exponent
        distance: "planar" (default) or "haversine"
        index: Nearest-neighbor strategy
        meters_per_degree_lng: Longitude degree length for the planar model
        n_jobs: Row-band workers (1 = sequential)
        backend: joblib backend for n_jobs > 1

    Returns:
        CoverageGrid with cells in i-major, j-minor order

    Raises:
        ValueError: Invalid grid_size, bounds, max_distance_m, gamma or
            strategy names
    """
    return _compute_with_dispatch(
        records,
        bounds,
        grid_size,
        max_distance_m,
        gamma,
        distance,
        index,
        meters_per_degree_lng,
        lambda nn_index, row_lats, col_lngs: dispatch_row_bands(
            nn_index, row_lats, col_lngs, n_jobs=n_jobs, backend=backend
        ),
    )


def compute_coverage_for_config(
    records: Sequence[FacilityRecord],
    config: Union[Dict[str, Any], AppConfig, None] = None,
) -> CoverageGrid:
    """
    compute_coverage() with every knob taken from configuration.

    Worker count follows the parallel section (should_use_parallel /
    get_effective_worker_count).
    """
    app_config = _normalize_config(config)
    coverage = app_config.coverage
    return _compute_with_dispatch(
        records,
        coverage.bounds,
        coverage.grid_size,
        coverage.max_distance_m,
        coverage.gamma,
        coverage.distance,
        coverage.index,
        coverage.meters_per_degree_lng,
        lambda nn_index, row_lats, col_lngs: dispatch_for_config(
            nn_index, row_lats, col_lngs, app_config
        ),
    )
