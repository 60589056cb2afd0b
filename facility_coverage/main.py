#!/usr/bin/env python3
"""
Facility Coverage Map - Command Line Entry Point

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Wire logging, configuration and data loading together and
run one of the top-level workflows.

Commands:
    summary   Load the store, print counts and optionally the filtered subset
    coverage  Compute the coverage grid and write it to the output folder
    export    Write the (filtered) facilities as CSV to the output folder
    serve     Start the Flask JSON API

Execution Flow:
1. setup_logging() - console handler, optional file handler
2. AppConfig.from_dict(CONFIG) - typed configuration
3. DataLoader.load() - immutable facility store
4. Command-specific work

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import argparse
import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd

from facility_coverage.config import CONFIG
from facility_coverage.config_types import AppConfig
from facility_coverage.coverage_grid import compute_coverage_for_config
from facility_coverage.data_loader import DataLoader, records_to_geodataframe
from facility_coverage.models import QueryState
from facility_coverage.session import MapSession

LOGGER_NAME = "FacilityCoverage"

# ═══════════════════════════════════════════════════════════════════════════
# 📝 LOGGING
# ═══════════════════════════════════════════════════════════════════════════


def setup_logging(
    log_dir: Optional[Path] = None, verbose: bool = False
) -> logging.Logger:
    """Configure the package logger with console and optional file handlers.

    Args:
        log_dir: Folder for a timestamped run log (None = console only)
        verbose: DEBUG instead of INFO

    Returns:
        The "FacilityCoverage" logger (parent of every module logger)
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%m%d_%H%M")
        fh = logging.FileHandler(log_dir / f"run_{timestamp}.log", encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        logger.addHandler(fh)

    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(ch)

    return logger


# ═══════════════════════════════════════════════════════════════════════════
# 🧰 COMMANDS
# ═══════════════════════════════════════════════════════════════════════════


def _query_from_args(args: argparse.Namespace) -> QueryState:
    return QueryState.from_dict(
        {
            "search": args.search,
            "status": args.status,
            "accessibility": args.accessibility,
            "locationType": args.location_type,
        }
    )


def run_summary(
    session: MapSession, query: QueryState, logger: logging.Logger
) -> None:
    result = session.apply_filters(query)
    stats = result.stats
    logger.info("\n📊 Facility summary")
    logger.info(f"   Query: {query.as_dict()}")
    logger.info(f"   Total:            {stats.total}")
    logger.info(f"   Operational:      {stats.operational_count}")
    logger.info(f"   Fully accessible: {stats.fully_accessible_count}")
    logger.info(f"   Parks:            {stats.park_count}")

    bounds = session.data_bounds()
    if bounds is not None:
        west, south, east, north = bounds
        logger.info(f"   Extent: W {west:.5f} S {south:.5f} E {east:.5f} N {north:.5f}")


def run_coverage(
    session: MapSession, output_dir: Path, logger: logging.Logger
) -> Path:
    """Compute the coverage grid and write GeoJSON plus a cell CSV."""
    grid = compute_coverage_for_config(session.records, session.config)
    output_dir.mkdir(parents=True, exist_ok=True)

    geojson_path = output_dir / "coverage_grid.geojson"
    with open(geojson_path, "w", encoding="utf-8") as f:
        json.dump(grid.to_feature_collection(), f)

    csv_path = output_dir / "coverage_grid.csv"
    pd.DataFrame(
        {
            "longitude": [c.longitude for c in grid.cells],
            "latitude": [c.latitude for c in grid.cells],
            "intensity": grid.intensities,
            "distance_m": grid.distances,
        }
    ).to_csv(csv_path, index=False)

    summary = grid.summary()
    logger.info(f"   Mean intensity: {summary['mean_intensity']:.3f}")
    logger.info(f"   Saturated cells: {summary['saturated_cells']}/{summary['cell_count']}")
    logger.info(f"   💾 Saved: {geojson_path}")
    logger.info(f"   💾 Saved: {csv_path}")
    return geojson_path


def run_export(
    session: MapSession,
    query: QueryState,
    output_dir: Path,
    logger: logging.Logger,
) -> Path:
    """Write the facilities matching the query (valid coordinates only) as CSV."""
    output_dir.mkdir(parents=True, exist_ok=True)
    gdf = records_to_geodataframe(session.apply_filters(query).records)

    csv_path = output_dir / "facilities.csv"
    pd.DataFrame(gdf.drop(columns="geometry")).to_csv(csv_path, index=False)
    logger.info(f"   💾 Saved {len(gdf)} facilities: {csv_path}")
    return csv_path


def run_serve(session: MapSession, loader: DataLoader, logger: logging.Logger) -> None:
    from facility_coverage.server import create_app

    server = session.config.server
    app = create_app(session, loader)
    logger.info(f"🌐 Starting server at http://{server.host}:{server.port}")
    try:
        app.run(host=server.host, port=server.port, debug=server.debug)
    finally:
        session.close()


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 CLI ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Facility map filtering and coverage heat layer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    facility-coverage summary --status Operational
    facility-coverage coverage --data restrooms.geojson
    facility-coverage export --search library
    facility-coverage serve
        """,
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="summary",
        choices=["summary", "coverage", "export", "serve"],
        help="Workflow to run (default: summary)",
    )
    parser.add_argument("--data", "-d", help="GeoJSON FeatureCollection to load")
    parser.add_argument("--output", "-o", help="Output folder for coverage / export")
    parser.add_argument("--search", default="", help="Search text")
    parser.add_argument("--status", default="", help="Exact status filter")
    parser.add_argument("--accessibility", default="", help="Exact accessibility filter")
    parser.add_argument("--location-type", default="", help="Exact location type filter")
    parser.add_argument("--log-file", action="store_true", help="Also write a run log")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug output")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point."""
    args = build_parser().parse_args(argv)
    app_config = AppConfig.from_dict(CONFIG)

    log_dir = app_config.file_paths.log_path if args.log_file else None
    logger = setup_logging(log_dir, verbose=args.verbose)

    start = time.perf_counter()
    try:
        data_path = Path(args.data) if args.data else app_config.file_paths.facilities_path
        output_dir = Path(args.output) if args.output else app_config.file_paths.output_path

        loader = DataLoader(data_path)
        session = MapSession(loader.load(), app_config)
        query = _query_from_args(args)

        if args.command == "summary":
            run_summary(session, query, logger)
        elif args.command == "coverage":
            run_coverage(session, output_dir, logger)
        elif args.command == "export":
            run_export(session, query, output_dir, logger)
        else:
            run_serve(session, loader, logger)
            return 0
        session.close()
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"❌ ERROR: {e}")
        return 1

    logger.info(f"\n⏱️ Done in {time.perf_counter() - start:.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
