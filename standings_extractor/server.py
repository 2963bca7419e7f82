"""
HTTP Microservice
=================
Flask-based HTTP API for the standings extractor.

The admin upload screen posts the standings PDF here and gets back the
parsed rows and detected class for review before import. When the class is
known (sent as "race_class" or detected from the document) the response
also carries "prepared": the rows ready for the standings table, with ranks
recomputed from points and existing flags/logos kept.

Endpoints:
    POST   /api/parse        → Parse an uploaded PDF
    POST   /api/parse/text   → Parse an already extracted text stream
    GET    /api/health       → Health check
    GET    /api/info         → Extractor version info
"""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from . import __version__
from .engine import ExtractorConfig, StandingsExtractor
from .errors import StandingsError
from .models import ParseResult, RaceClass
from .ranking import prepare_import

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

TRUTHY = {"1", "true", "yes", "on"}

EXTENSION_KEY = "standings_extractor"


def create_app(config: Optional[dict] = None) -> Flask:
    """Create and configure the Flask app."""
    if config:
        app.config.update(config)

    app.config.setdefault("MAX_CONTENT_LENGTH", 20 * 1024 * 1024)  # 20MB
    app.config.setdefault("IGNORE_CASE_DEFAULT", False)
    app.config.setdefault("LOG_LEVEL", "INFO")

    # One extractor per app: logging is configured here, not per request
    app.extensions[EXTENSION_KEY] = StandingsExtractor(ExtractorConfig(
        case_insensitive_detection=bool(app.config["IGNORE_CASE_DEFAULT"]),
        log_level=app.config["LOG_LEVEL"],
    ))

    return app


def _ignore_case(value) -> bool:
    if value is None:
        return bool(app.config.get("IGNORE_CASE_DEFAULT", False))
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUTHY


def _extractor() -> StandingsExtractor:
    extractor = app.extensions.get(EXTENSION_KEY)
    if extractor is None:
        create_app()
        extractor = app.extensions[EXTENSION_KEY]
    return extractor


def _race_class(value) -> Optional[RaceClass]:
    """Parse an optional race class field; raises ValueError if unknown."""
    if value in (None, ""):
        return None
    return RaceClass(value)


def _result_response(
    result: ParseResult,
    race_class: Optional[RaceClass],
    existing: Optional[dict] = None,
):
    payload = result.model_dump(by_alias=True, mode="json")

    race_class = race_class or result.detected_class
    if race_class is not None:
        rows = prepare_import(result.standings, race_class, existing)
        payload["prepared"] = [row.model_dump(mode="json") for row in rows]

    return jsonify(payload), 200


def _error_response(error: StandingsError):
    logger.warning(f"Parse failed ({error.code}): {error.message}")
    return jsonify({"error": error.message, "code": error.code}), 422


def _bad_class_response(value):
    allowed = [c.value for c in RaceClass]
    return jsonify({
        "error": f"Unknown race_class {value!r}, expected one of {allowed}"
    }), 400


# ─── Health Check ─────────────────────────────────────────────────────────────


@app.route("/api/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "standings-extractor",
        "version": __version__,
    })


@app.route("/api/info", methods=["GET"])
def info():
    """Extractor version and capability info."""
    return jsonify({
        "version": __version__,
        "engine": "PyMuPDF",
        "classes": ["LMP2", "GT3 PRO"],
        "capabilities": [
            "text_extraction",
            "class_detection",
            "standings_parsing",
            "validation_report",
        ],
        "supported_formats": ["pdf"],
    })


# ─── Parse Endpoints ──────────────────────────────────────────────────────────


@app.route("/api/parse", methods=["POST"])
def parse_pdf():
    """
    Parse an uploaded standings PDF (multipart/form-data, field "file").

    Optional form fields: "ignore_case", "race_class".
    Returns the ParseResult with detectedClass / rawText keys.
    """
    if "file" not in request.files:
        return jsonify({"error": "Provide a PDF upload in the 'file' field"}), 400

    file = request.files["file"]
    if not file.filename:
        return jsonify({"error": "No file selected"}), 400

    if not file.filename.lower().endswith(".pdf"):
        return jsonify({"error": "Apenas ficheiros PDF são permitidos."}), 400

    try:
        race_class = _race_class(request.form.get("race_class"))
    except ValueError:
        return _bad_class_response(request.form.get("race_class"))

    ignore_case = _ignore_case(request.form.get("ignore_case"))

    try:
        result = _extractor().parse_bytes(
            file.read(), file.filename, case_insensitive=ignore_case
        )
    except StandingsError as e:
        return _error_response(e)

    return _result_response(result, race_class)


@app.route("/api/parse/text", methods=["POST"])
def parse_text():
    """
    Parse an already extracted text stream.

    JSON body:
        {"text": "...", "file_name": "...", "ignore_case": false,
         "race_class": "LMP2", "existing": {"77": {"country_code": "DE",
         "car_logo_url": "..."}}}
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get("text"), str):
        return jsonify({"error": "Provide a JSON body with a 'text' string"}), 400

    try:
        race_class = _race_class(data.get("race_class"))
    except ValueError:
        return _bad_class_response(data.get("race_class"))

    existing = data.get("existing")
    if existing is not None and not (
        isinstance(existing, dict)
        and all(isinstance(row, dict) for row in existing.values())
    ):
        return jsonify({"error": "'existing' must map car numbers to rows"}), 400

    file_name = data.get("file_name") or ""
    ignore_case = _ignore_case(data.get("ignore_case"))

    try:
        result = _extractor().parse_text(
            data["text"], file_name, case_insensitive=ignore_case
        )
    except StandingsError as e:
        return _error_response(e)

    return _result_response(result, race_class, existing)


# ─── Run Server ──────────────────────────────────────────────────────────────


def run_server(
    host: str = "0.0.0.0",
    port: int = 5000,
    debug: bool = False,
):
    """Start the microservice server."""
    create_app()
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_server(debug=True)
