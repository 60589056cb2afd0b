"""
Typed configuration for the facility coverage map.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Typed, immutable views over the CONFIG dictionary in
config.py. Create AppConfig once with AppConfig.from_dict(CONFIG) and pass it
(or a sub-config) to the functions that need settings.

- Frozen dataclasses for immutability
- from_dict() class methods for dict compatibility
- Complete type hints on all fields

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple, Union


# ═══════════════════════════════════════════════════════════════════════════════
# 🗺️ 1. COVERAGE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class CoverageBounds:
    """North / south / east / west extent in WGS84 degrees."""

    north: float
    south: float
    east: float
    west: float

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CoverageBounds":
        """Create CoverageBounds from CONFIG['coverage']['bounds']."""
        return cls(
            north=float(d.get("north", 40.95)),
            south=float(d.get("south", 40.45)),
            east=float(d.get("east", -73.65)),
            west=float(d.get("west", -74.30)),
        )

    @property
    def lat_span(self) -> float:
        return self.north - self.south

    @property
    def lng_span(self) -> float:
        return self.east - self.west

    def validate(self) -> None:
        """
        Reject bounds that cannot be sampled.

        Raises:
            ValueError: If any edge is non-finite or the box has zero or
                negative area.
        """
        edges = (self.north, self.south, self.east, self.west)
        if not all(math.isfinite(v) for v in edges):
            raise ValueError(f"Bounds must be finite: {self}")
        if self.lat_span <= 0 or self.lng_span <= 0:
            raise ValueError(
                f"Bounds must have positive area "
                f"(north > south, east > west): {self}"
            )

    def as_dict(self) -> Dict[str, float]:
        return {
            "north": self.north,
            "south": self.south,
            "east": self.east,
            "west": self.west,
        }


@dataclass(frozen=True)
class CoverageConfig:
    """
    Configuration for the coverage grid sampler.

    Attributes:
        bounds: Sampled region.
        grid_size: Samples per axis (grid is grid_size x grid_size).
        max_distance_m: Distance at which a cell saturates to intensity 1.
        gamma: Contrast exponent applied to the normalized distance.
        distance: Distance function name ("planar" or "haversine").
        index: Nearest-neighbor strategy ("brute_force", "kdtree", "balltree").
        meters_per_degree_lng: Longitude degree length for the planar model.
    """

    bounds: CoverageBounds = field(
        default_factory=lambda: CoverageBounds.from_dict({})
    )
    grid_size: int = 100
    max_distance_m: float = 1000.0
    gamma: float = 0.6
    distance: str = "planar"
    index: str = "brute_force"
    meters_per_degree_lng: float = 85000.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CoverageConfig":
        """Create CoverageConfig from CONFIG['coverage'] dictionary."""
        return cls(
            bounds=CoverageBounds.from_dict(d.get("bounds", {})),
            grid_size=d.get("grid_size", 100),
            max_distance_m=d.get("max_distance_m", 1000.0),
            gamma=d.get("gamma", 0.6),
            distance=d.get("distance", "planar"),
            index=d.get("index", "brute_force"),
            meters_per_degree_lng=d.get("meters_per_degree_lng", 85000.0),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# ⚡ 2. PARALLEL PROCESSING CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ParallelConfig:
    """
    Configuration for row-band parallel dispatch of the coverage grid.

    Attributes:
        enabled: Master toggle for parallel processing.
        max_workers: Number of workers (-1 = auto).
        optimal_workers_default: Default worker count when auto-detecting.
        min_rows_for_parallel: Minimum grid rows to justify parallel dispatch.
        fallback_on_error: Run the bands inline if parallel dispatch fails.
        backend: Joblib backend ("threading" or "loky").
        verbose: Joblib verbosity level (0-10).
    """

    enabled: bool = False
    max_workers: int = -1
    optimal_workers_default: int = 4
    min_rows_for_parallel: int = 50
    fallback_on_error: bool = True
    backend: str = "threading"
    verbose: int = 0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ParallelConfig":
        """Create ParallelConfig from CONFIG['parallel'] dictionary."""
        return cls(
            enabled=d.get("enabled", False),
            max_workers=d.get("max_workers", -1),
            optimal_workers_default=d.get("optimal_workers_default", 4),
            min_rows_for_parallel=d.get("min_rows_for_parallel", 50),
            fallback_on_error=d.get("fallback_on_error", True),
            backend=d.get("backend", "threading"),
            verbose=d.get("verbose", 0),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🎨 3. MAP / STYLE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class MapViewConfig:
    """Initial viewport and camera settings handed to the map client."""

    center: Tuple[float, float] = (-73.935242, 40.730610)
    zoom: float = 11
    fit_padding_px: int = 50
    fit_max_zoom: float = 15
    near_me_zoom: float = 14

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MapViewConfig":
        """Create MapViewConfig from CONFIG['map'] dictionary."""
        return cls(
            center=tuple(d.get("center", (-73.935242, 40.730610))),
            zoom=d.get("zoom", 11),
            fit_padding_px=d.get("fit_padding_px", 50),
            fit_max_zoom=d.get("fit_max_zoom", 15),
            near_me_zoom=d.get("near_me_zoom", 14),
        )


DEFAULT_STATUS_COLORS: Dict[str, str] = {
    "Operational": "#22c55e",
    "Not Operational": "#ef4444",
    "Closed for Construction": "#f59e0b",
}
DEFAULT_STATUS_RADII: Dict[str, int] = {"Operational": 8, "Not Operational": 6}
DEFAULT_ACCESSIBILITY_ICONS: Dict[str, str] = {
    "Fully Accessible": "♿",
    "Partially Accessible": "🚪",
}
DEFAULT_LOCATION_TYPE_ICONS: Dict[str, str] = {"Park": "🌳", "Library": "📚"}


@dataclass(frozen=True)
class StyleConfig:
    """
    Visual categories for facility markers and popups.

    Unrecognized values fall back to the default_* entries. A table missing
    from the source dict keeps the built-in categories.
    """

    status_colors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_STATUS_COLORS))
    default_status_color: str = "#6b7280"
    status_radii: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_STATUS_RADII))
    default_status_radius: int = 5
    accessibility_icons: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ACCESSIBILITY_ICONS))
    default_accessibility_icon: str = "❓"
    location_type_icons: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_LOCATION_TYPE_ICONS))
    default_location_type_icon: str = "🏛️"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StyleConfig":
        """Create StyleConfig from CONFIG['styles'] dictionary."""
        return cls(
            status_colors=dict(d.get("status_colors", DEFAULT_STATUS_COLORS)),
            default_status_color=d.get("default_status_color", "#6b7280"),
            status_radii=dict(d.get("status_radii", DEFAULT_STATUS_RADII)),
            default_status_radius=d.get("default_status_radius", 5),
            accessibility_icons=dict(d.get("accessibility_icons", DEFAULT_ACCESSIBILITY_ICONS)),
            default_accessibility_icon=d.get("default_accessibility_icon", "❓"),
            location_type_icons=dict(d.get("location_type_icons", DEFAULT_LOCATION_TYPE_ICONS)),
            default_location_type_icon=d.get("default_location_type_icon", "🏛️"),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🌐 4. SERVER / FILE PATH CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ServerConfig:
    """Flask server settings."""

    host: str = "127.0.0.1"
    port: int = 5052
    debug: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ServerConfig":
        """Create ServerConfig from CONFIG['server'] dictionary."""
        return cls(
            host=d.get("host", "127.0.0.1"),
            port=d.get("port", 5052),
            debug=d.get("debug", False),
        )


@dataclass(frozen=True)
class FilePathsConfig:
    """Input and output locations, relative to the working directory."""

    facilities_geojson: str = "data/public_restrooms.geojson"
    log_dir: str = "logs"
    output_dir: str = "output"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FilePathsConfig":
        """Create FilePathsConfig from CONFIG['file_paths'] dictionary."""
        return cls(
            facilities_geojson=d.get(
                "facilities_geojson", "data/public_restrooms.geojson"
            ),
            log_dir=d.get("log_dir", "logs"),
            output_dir=d.get("output_dir", "output"),
        )

    @property
    def facilities_path(self) -> Path:
        return Path(self.facilities_geojson)

    @property
    def log_path(self) -> Path:
        return Path(self.log_dir)

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)


# ═══════════════════════════════════════════════════════════════════════════════
# 🎯 5. APP CONFIG (MASTER FACADE)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AppConfig:
    """
    Master configuration object for the facility coverage map.

    Attributes:
        coverage: Coverage grid sampler settings.
        parallel: Row-band dispatch settings.
        map_view: Initial viewport for the map client.
        styles: Visual category lookup tables.
        server: Flask server settings.
        file_paths: Input / output locations.

    Example:
        from facility_coverage.config import CONFIG
        from facility_coverage.config_types import AppConfig

        app_config = AppConfig.from_dict(CONFIG)
        grid_size = app_config.coverage.grid_size
    """

    coverage: CoverageConfig = field(default_factory=CoverageConfig)
    parallel: ParallelConfig = field(default_factory=ParallelConfig)
    map_view: MapViewConfig = field(default_factory=MapViewConfig)
    styles: StyleConfig = field(default_factory=StyleConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    file_paths: FilePathsConfig = field(default_factory=FilePathsConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "AppConfig":
        """
        Create AppConfig from the CONFIG dictionary.

        Args:
            config_dict: The CONFIG dictionary from config.py.

        Returns:
            AppConfig instance with all settings populated.
        """
        return cls(
            coverage=CoverageConfig.from_dict(config_dict.get("coverage", {})),
            parallel=ParallelConfig.from_dict(config_dict.get("parallel", {})),
            map_view=MapViewConfig.from_dict(config_dict.get("map", {})),
            styles=StyleConfig.from_dict(config_dict.get("styles", {})),
            server=ServerConfig.from_dict(config_dict.get("server", {})),
            file_paths=FilePathsConfig.from_dict(config_dict.get("file_paths", {})),
        )


def _normalize_config(config: Union[Dict[str, Any], AppConfig, None]) -> AppConfig:
    """
    Normalize config to AppConfig for internal use.

    Accepts either a raw CONFIG dictionary, an AppConfig object, or None
    (meaning the module-level CONFIG from config.py).
    """
    if isinstance(config, AppConfig):
        return config
    if config is None:
        from facility_coverage.config import CONFIG

        return AppConfig.from_dict(CONFIG)
    return AppConfig.from_dict(config)
