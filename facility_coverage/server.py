#!/usr/bin/env python3
"""
Facility Coverage Map - Flask Server

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: JSON API for the map client. Serves the filtered facility
layer, its summary statistics, fit-to-data bounds and the coverage heat
layer (toggled on demand and computed in the background).

Key Interactions:
- DataLoader reads the facility GeoJSON once at startup
- MapSession owns the query state and the coverage layer
- The client polls /api/coverage after toggling until the grid is ready

Navigation Guide:
- FRONTEND CONFIG: get_frontend_config()
- APP FACTORY: create_app() with all routes
- STARTUP: initialize_services() / main()

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union
import io
import logging
import sys

import pandas as pd
from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from facility_coverage.config_types import AppConfig, _normalize_config
from facility_coverage.data_loader import DataLoader
from facility_coverage.models import QueryState, records_to_dicts
from facility_coverage.session import MapSession

logger = logging.getLogger("FacilityCoverage.Server")

# Global services - initialized on startup
app: Optional[Flask] = None
data_loader: Optional[DataLoader] = None
session: Optional[MapSession] = None

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 FRONTEND CONFIG
# ═══════════════════════════════════════════════════════════════════════════


def get_frontend_config(config: Union[Dict[str, Any], AppConfig, None] = None) -> Dict[str, Any]:
    """
    Settings the map client needs at startup.

    Returns:
        Dict with map viewport, style tables and coverage flags.
    """
    app_config = _normalize_config(config)
    map_view = app_config.map_view
    styles = app_config.styles
    coverage = app_config.coverage
    return {
        "map": {
            "center": list(map_view.center),
            "zoom": map_view.zoom,
            "fitPaddingPx": map_view.fit_padding_px,
            "fitMaxZoom": map_view.fit_max_zoom,
            "nearMeZoom": map_view.near_me_zoom,
        },
        "styles": {
            "statusColors": dict(styles.status_colors),
            "defaultStatusColor": styles.default_status_color,
            "statusRadii": dict(styles.status_radii),
            "defaultStatusRadius": styles.default_status_radius,
            "accessibilityIcons": dict(styles.accessibility_icons),
            "defaultAccessibilityIcon": styles.default_accessibility_icon,
            "locationTypeIcons": dict(styles.location_type_icons),
            "defaultLocationTypeIcon": styles.default_location_type_icon,
        },
        "coverage": {
            "gridSize": coverage.grid_size,
            "maxDistanceM": coverage.max_distance_m,
            "gamma": coverage.gamma,
            "distance": coverage.distance,
            "bounds": coverage.bounds.as_dict(),
        },
    }


def _query_from_args() -> QueryState:
    """QueryState from ?search=&status=&accessibility=&locationType=."""
    return QueryState.from_dict(request.args)


# ═══════════════════════════════════════════════════════════════════════════
# 🌐 APP FACTORY
# ═══════════════════════════════════════════════════════════════════════════


def create_app(map_session: MapSession, loader: Optional[DataLoader] = None) -> Flask:
    """
    Build the Flask app around a session.

    Args:
        map_session: Session holding the facility store and coverage layer
        loader: Source loader for /api/data/info (optional)

    Returns:
        Configured Flask app with CORS enabled
    """
    flask_app = Flask(__name__)
    CORS(flask_app)

    @flask_app.errorhandler(ValueError)
    def handle_value_error(e: ValueError):
        logger.warning(f"⚠️ Bad request: {e}")
        return jsonify({"error": str(e)}), 400

    # ═══════════════════════════════════════════════════════════════════════
    # 🛣️ DATA ROUTES
    # ═══════════════════════════════════════════════════════════════════════

    @flask_app.route("/api/config")
    def get_config():
        """Frontend configuration settings."""
        return jsonify(get_frontend_config(map_session.config))

    @flask_app.route("/api/data/info")
    def get_data_info():
        """Loaded data timestamps and counts."""
        if loader is None:
            return jsonify({"error": "No data loader configured"}), 404
        return jsonify(loader.get_data_info())

    @flask_app.route("/api/facilities")
    def get_facilities():
        """
        Filtered facilities as a GeoJSON FeatureCollection.

        Query Parameters:
            search, status, accessibility, locationType
        """
        result = map_session.apply_filters(_query_from_args())
        return jsonify(result.to_feature_collection(map_session.config))

    @flask_app.route("/api/statistics")
    def get_statistics():
        """Summary counts for the filtered subset."""
        result = map_session.apply_filters(_query_from_args())
        return jsonify(result.stats.as_dict())

    @flask_app.route("/api/bounds")
    def get_bounds():
        """Fit-to-data bounds as [west, south, east, north] plus camera settings."""
        view = map_session.fit_view()
        if view is None:
            return jsonify({"error": "No facilities with valid coordinates"}), 404
        return jsonify(view)

    @flask_app.route("/api/facilities/export.csv")
    def export_facilities_csv() -> Response:
        """Filtered facilities as a CSV download."""
        result = map_session.apply_filters(_query_from_args())
        df = pd.DataFrame(records_to_dicts(result.records))

        output = io.StringIO()
        df.to_csv(output, index=False)
        return Response(
            output.getvalue(),
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=facilities_export.csv"},
        )

    # ═══════════════════════════════════════════════════════════════════════
    # 🌡️ COVERAGE ROUTES
    # ═══════════════════════════════════════════════════════════════════════

    @flask_app.route("/api/coverage/toggle", methods=["POST"])
    def toggle_coverage():
        """
        Show or hide the coverage layer.

        Request Body:
            {"visible": bool}

        Returns:
            {"visible": bool, "computing": bool, "ready": bool}
        """
        data = request.get_json(silent=True)
        if not data or "visible" not in data:
            return jsonify({"error": "Missing visible in request body"}), 400
        visible = data["visible"]
        if not isinstance(visible, bool):
            return jsonify({"error": "visible must be a boolean"}), 400

        map_session.coverage.toggle(visible)
        return jsonify(map_session.coverage.status())

    @flask_app.route("/api/coverage")
    def get_coverage():
        """
        Coverage grid as a GeoJSON FeatureCollection of intensity points.

        Returns 202 while computing, 409 while the layer is hidden and 500
        if the last computation failed.
        """
        layer = map_session.coverage
        status = layer.status()
        if not status["visible"]:
            return jsonify({"error": "Coverage layer is hidden", **status}), 409

        grid = layer.visible_grid()
        if grid is not None:
            return jsonify(grid.to_feature_collection())
        if status["computing"]:
            return jsonify({"computing": True}), 202
        if layer.last_error is not None:
            return jsonify({"error": f"Coverage computation failed: {layer.last_error}"}), 500
        return jsonify({"computing": True}), 202

    return flask_app


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 STARTUP
# ═══════════════════════════════════════════════════════════════════════════


def initialize_services(
    data_path: Optional[Path] = None,
    config: Union[Dict[str, Any], AppConfig, None] = None,
) -> bool:
    """
    Load the facility store and build the session and app.

    Args:
        data_path: GeoJSON file (defaults to file_paths.facilities_geojson)
        config: CONFIG dict or AppConfig (defaults to config.CONFIG)

    Returns:
        True if initialization successful, False otherwise.
    """
    global app, data_loader, session

    app_config = _normalize_config(config)
    path = Path(data_path) if data_path is not None else app_config.file_paths.facilities_path

    try:
        logger.info(f"🚀 Initializing services from: {path}")
        data_loader = DataLoader(path)
        records = data_loader.load()
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"❌ Failed to initialize services: {e}")
        return False

    session = MapSession(records, app_config)
    app = create_app(session, data_loader)
    logger.info(f"✅ Loaded {len(records)} facilities")
    return True


def main() -> None:
    """Main entry point - initialize and start server."""
    from facility_coverage.main import setup_logging

    setup_logging()

    data_path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    if not initialize_services(data_path):
        logger.error("Failed to initialize. Check the data file exists.")
        sys.exit(1)

    server = session.config.server
    logger.info(f"🌐 Starting server at http://{server.host}:{server.port}")
    try:
        app.run(host=server.host, port=server.port, debug=server.debug)
    finally:
        session.close()


if __name__ == "__main__":
    main()
