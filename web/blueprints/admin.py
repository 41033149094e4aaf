"""
Admin Blueprint.

Read-only administrator routes over the collected records:
- GET /api/locations, /api/media - Current newest-first lists
- GET /api/locations/stream, /api/media/stream - Live lists (server-sent events)
- POST /api/locations/export, /api/media/export - Spreadsheet download
- GET /api/status - Session and pipeline state
"""

from flask import Blueprint, Response, current_app, jsonify, send_file, stream_with_context

from core.errors import FieldReportError, describe_error
from logging_config import get_logger
from web.services import records_service

logger = get_logger(__name__)

admin_bp = Blueprint("admin", __name__)

CONTEXT_KEY = "APP_CONTEXT"


def _context():
    return current_app.config[CONTEXT_KEY]


@admin_bp.route("/api/<any(locations, media):kind>", methods=["GET"])
def list_records(kind):
    """Current records of a collection."""
    try:
        records = records_service.list_records(_context(), kind)
    except FieldReportError as e:
        logger.error(f"Listing {kind} failed: {e}")
        return jsonify({"status": "error", "error": describe_error(e)}), 503
    return jsonify({"status": "success", "records": records, "count": len(records)})


@admin_bp.route("/api/<any(locations, media):kind>/stream", methods=["GET"])
def stream_records(kind):
    """Live record list as server-sent events."""
    events = records_service.stream_events(_context(), kind)
    return Response(
        stream_with_context(events),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@admin_bp.route("/api/<any(locations, media):kind>/export", methods=["POST"])
def export_records(kind):
    """Exports a collection to .xlsx and sends the file."""
    try:
        path = records_service.export_collection(_context(), kind)
    except FieldReportError as e:
        logger.error(f"Export of {kind} failed: {e}")
        return jsonify({"status": "error", "error": describe_error(e)}), 500

    logger.info(f"Sending export {path.name}")
    return send_file(
        path,
        as_attachment=True,
        download_name=path.name,
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


@admin_bp.route("/api/status", methods=["GET"])
def status():
    try:
        payload = records_service.status_payload(_context())
    except FieldReportError as e:
        logger.error(f"Status unavailable: {e}")
        return jsonify({"status": "error", "error": describe_error(e)}), 503
    return jsonify(payload)
