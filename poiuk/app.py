"""HTTP API server for points of interest."""

from __future__ import annotations

import argparse
import logging
import os
import sqlite3
import threading
from typing import Sequence

from flask import Flask, Response, jsonify, request, send_file

from poiuk.markers import MarkerIndex
from poiuk.refdata import load_ref_data
from poiuk.search import ATTRIBUTION, parse_bbox, parse_categories, search_pois

logger = logging.getLogger(__name__)

DEFAULT_DB = "./data/poi_uk.gpkg"
DEFAULT_MAPPINGS = "./data/markers.json"
DEFAULT_MARKERS_DIR = "./data/markers"
DEFAULT_PORT = 8080

_INTERNAL_ERROR = "An internal server error occurred"
_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Methods": "GET,POST,PUT,PATCH,DELETE,HEAD,OPTIONS",
    "Access-Control-Allow-Headers": "Origin,Content-Length,Content-Type",
    "Access-Control-Max-Age": str(12 * 60 * 60),
}


def create_app(
    db_path: str,
    mappings_path: str = DEFAULT_MAPPINGS,
    markers_dir: str = DEFAULT_MARKERS_DIR,
) -> Flask:
    """Open the database, precompute reference data and build the application."""
    if not os.path.exists(db_path):
        raise FileNotFoundError(f"database file does not exist: {db_path}")
    db = sqlite3.connect(db_path, check_same_thread=False)
    lock = threading.Lock()
    logger.info("connected to database: %s", db_path)

    ref_data = load_ref_data(db).to_dict()
    markers = MarkerIndex.from_file(mappings_path, markers_dir)

    app = Flask(__name__)
    app.json.sort_keys = False
    app.extensions["poiuk_db"] = db

    @app.before_request
    def cors_preflight():
        headers = request.headers
        if request.method == "OPTIONS" and headers.get("Origin") and headers.get("Access-Control-Request-Method"):
            return Response(status=204, headers=_PREFLIGHT_HEADERS)
        return None

    @app.after_request
    def add_headers(response):
        response.headers["Cache-Control"] = "public, max-age=31536000, immutable"
        if request.headers.get("Origin"):
            response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    @app.get("/healthz")
    def healthz():
        try:
            with lock:
                db.execute("SELECT 1").fetchone()
            passed = True
        except sqlite3.Error as exc:
            logger.error("health check failed: %s", exc)
            passed = False
        return jsonify([{"name": "sql", "pass": passed}]), 200 if passed else 503

    @app.get("/v1/poi/ref-data")
    def ref_data_view():
        return jsonify(ref_data)

    @app.get("/v1/poi/search")
    def search_view():
        try:
            bbox = parse_bbox(request.args.get("bbox", ""))
            categories = parse_categories(request.args.get("categories", ""))
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        try:
            with lock:
                pois = search_pois(db, bbox, categories)
        except (sqlite3.Error, ValueError) as exc:
            logger.error("error querying database: %s", exc)
            return jsonify({"error": _INTERNAL_ERROR}), 500
        results = [poi.to_dict() for poi in pois] or None
        return jsonify({"results": results, "attribution": list(ATTRIBUTION)})

    @app.get("/v1/poi/marker/<category>")
    def marker_view(category):
        try:
            path = markers.resolve(category)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        except KeyError:
            return jsonify({"error": "category not found"}), 404
        if not path.is_file():
            return Response("404 page not found", status=404, mimetype="text/plain")
        return send_file(path.resolve(), mimetype="image/png")

    return app


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="http", description="POI UK API server")
    parser.add_argument("--db", default=DEFAULT_DB, help="Path to GeoPackage SQLite database")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Port to run HTTP server on")
    parser.add_argument("--mappings", default=DEFAULT_MAPPINGS, help="Category to marker icon mapping file")
    parser.add_argument("--markers", default=DEFAULT_MARKERS_DIR, help="Directory of marker images")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    try:
        app = create_app(args.db, args.mappings, args.markers)
    except (OSError, sqlite3.Error, LookupError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    logger.info("Starting HTTP API Server on port %d...", args.port)
    app.run(host="0.0.0.0", port=args.port)
    return 0