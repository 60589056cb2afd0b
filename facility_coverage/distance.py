"""
Distance model: planar approximation and great-circle distance.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Two interchangeable distance functions over (lat, lng) pairs,
both taking degrees and returning meters.

- planar: treats a metro-sized region as flat. One degree of latitude is
  111 km; one degree of longitude is a constant tuned for the metro's
  latitude band (85 km for New York). Cheap enough for the tens of thousands
  of evaluations the coverage grid needs, valid over a few tens of km.
- haversine: great-circle distance on a 6,371 km sphere. Globally accurate,
  more expensive (trig per call).

Each has a scalar form (plain floats) and a numpy form that broadcasts over
arrays of targets. The two forms return the same values.

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import math
from typing import Callable, Dict, NamedTuple, Union

import numpy as np

# ═══════════════════════════════════════════════════════════════════════════════
# 📏 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════════

EARTH_RADIUS_METERS = 6371000.0
METERS_PER_DEGREE_LAT = 111000.0
# Longitude degree length around 40.7°N
DEFAULT_METERS_PER_DEGREE_LNG = 85000.0


# ═══════════════════════════════════════════════════════════════════════════════
# 📐 SCALAR DISTANCES
# ═══════════════════════════════════════════════════════════════════════════════


def planar_distance_m(
    lat1: float,
    lng1: float,
    lat2: float,
    lng2: float,
    meters_per_degree_lng: float = DEFAULT_METERS_PER_DEGREE_LNG,
) -> float:
    """
    Fast planar approximation of the distance between two points.

    Args:
        lat1, lng1: First point (degrees)
        lat2, lng2: Second point (degrees)
        meters_per_degree_lng: Longitude degree length at the target latitude

    Returns:
        Euclidean distance in meters
    """
    dx = (lat2 - lat1) * METERS_PER_DEGREE_LAT
    dy = (lng2 - lng1) * meters_per_degree_lng
    return math.hypot(dx, dy)


def haversine_distance_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two points.

    The haversine term is clamped to [0, 1] so floating-point overshoot at
    antipodal points cannot push asin/sqrt out of domain.

    Returns:
        Distance in meters
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = phi2 - phi1
    dlambda = math.radians(lng2 - lng1)

    h = (
        math.sin(dphi / 2.0) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2.0) ** 2
    )
    h = min(max(h, 0.0), 1.0)
    return 2.0 * EARTH_RADIUS_METERS * math.asin(math.sqrt(h))


# ═══════════════════════════════════════════════════════════════════════════════
# 🔢 VECTORIZED DISTANCES
# ═══════════════════════════════════════════════════════════════════════════════


def planar_distance_array(
    lat: Union[np.ndarray, float],
    lng: Union[np.ndarray, float],
    lats: np.ndarray,
    lngs: np.ndarray,
    meters_per_degree_lng: float = DEFAULT_METERS_PER_DEGREE_LNG,
) -> np.ndarray:
    """numpy form of planar_distance_m; broadcasts origins against targets."""
    dx = (np.asarray(lats, dtype=float) - lat) * METERS_PER_DEGREE_LAT
    dy = (np.asarray(lngs, dtype=float) - lng) * meters_per_degree_lng
    return np.hypot(dx, dy)


def haversine_distance_array(
    lat: Union[np.ndarray, float],
    lng: Union[np.ndarray, float],
    lats: np.ndarray,
    lngs: np.ndarray,
    meters_per_degree_lng: float = DEFAULT_METERS_PER_DEGREE_LNG,
) -> np.ndarray:
    """numpy form of haversine_distance_m (meters_per_degree_lng is unused)."""
    phi1 = np.radians(lat)
    phi2 = np.radians(np.asarray(lats, dtype=float))
    dphi = phi2 - phi1
    dlambda = np.radians(np.asarray(lngs, dtype=float) - lng)

    h = np.sin(dphi / 2.0) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlambda / 2.0) ** 2
    h = np.clip(h, 0.0, 1.0)
    return 2.0 * EARTH_RADIUS_METERS * np.arcsin(np.sqrt(h))


# ═══════════════════════════════════════════════════════════════════════════════
# 🗂️ REGISTRY
# ═══════════════════════════════════════════════════════════════════════════════


class DistanceModel(NamedTuple):
    """A named distance function in scalar and numpy form."""

    name: str
    scalar: Callable[..., float]
    array: Callable[..., np.ndarray]


DISTANCE_MODELS: Dict[str, DistanceModel] = {
    "planar": DistanceModel("planar", planar_distance_m, planar_distance_array),
    "haversine": DistanceModel(
        "haversine", haversine_distance_m, haversine_distance_array
    ),
}


def get_distance_model(name: str) -> DistanceModel:
    """
    Look up a distance model by name.

    Raises:
        ValueError: If the name is not "planar" or "haversine"
    """
    try:
        return DISTANCE_MODELS[name]
    except KeyError:
        raise ValueError(
            f"Unknown distance function '{name}'. "
            f"Expected one of: {sorted(DISTANCE_MODELS)}"
        ) from None


def get_distance_function(name: str) -> Callable[..., float]:
    """Scalar distance function for the given name."""
    return get_distance_model(name).scalar
