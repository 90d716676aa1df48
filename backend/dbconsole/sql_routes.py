import logging

from flask import Blueprint, Response, jsonify, request

from db import get_db_client
from .errors import ValidationError
from .models import QueryError
from .sql_console import CSV_MIMETYPE, csv_filename, execute_query, to_csv

logger = logging.getLogger(__name__)

sql_bp = Blueprint('sql', __name__)


def _json_object():
    if not request.is_json:
        return None, (jsonify({"error": "Request must be JSON"}), 400)
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return None, (jsonify({"error": "Request body must be a JSON object"}), 400)
    return payload, None


@sql_bp.route('/api/sql/execute', methods=['POST'])
def execute_sql():
    """
    Runs raw SQL from {"query": "..."}.

    A database-side failure is not an HTTP error: it comes back as
    {"status": "error", "error": <message>} with status 200.
    """
    payload, error = _json_object()
    if error:
        return error

    try:
        result, elapsed_ms = execute_query(get_db_client(), payload.get('query'))
    except ValidationError as e:
        return jsonify({"error": e.message}), 400

    if isinstance(result, QueryError):
        return jsonify({"status": "error", "error": result.message, "elapsedMs": elapsed_ms}), 200

    return jsonify({
        "status": "rows",
        "columns": list(result.columns),
        "rows": list(result.rows),
        "rowCount": len(result.rows),
        "elapsedMs": elapsed_ms,
    }), 200


@sql_bp.route('/api/sql/export', methods=['POST'])
def export_csv():
    """Turns {"rows": [...]} into a CSV download."""
    payload, error = _json_object()
    if error:
        return error
    rows = payload.get('rows')
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        return jsonify({"error": "'rows' must be a list of objects"}), 400
    if not rows:
        return jsonify({"error": "No results to export"}), 400

    filename = csv_filename()
    logger.info("Exporting %d rows as %s", len(rows), filename)
    return Response(
        to_csv(rows),
        mimetype=CSV_MIMETYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
