import logging

from flask import Blueprint, current_app, jsonify, request

from db import get_db_client
from .errors import ExecutorError, FetchError, NotFoundError
from .helpers import build_where_clause, existing_identifier, quote_identifier

logger = logging.getLogger(__name__)

tables_bp = Blueprint('tables', __name__)

MAX_PAGE_SIZE = 1000


@tables_bp.route('/api/tables', methods=['GET'])
def list_tables():
    """All base tables with their columns. A failed fetch degrades to an empty list."""
    try:
        tables = get_db_client().get_tables()
    except FetchError as e:
        logger.error("Error fetching tables: %s", e.message)
        tables = []
    return jsonify({"tables": [table.to_dict() for table in tables]}), 200


@tables_bp.route('/api/tables/<table_name>/rows', methods=['GET'])
def get_table_rows(table_name):
    safe_table_name = existing_identifier(table_name)
    if not safe_table_name:
        return jsonify({"error": "Invalid table name provided"}), 400

    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', current_app.config['DEFAULT_PAGE_SIZE'], type=int)
    if page < 1 or per_page < 1 or per_page > MAX_PAGE_SIZE:
        return jsonify({"error": f"page must be >= 1 and per_page between 1 and {MAX_PAGE_SIZE}"}), 400

    start = (page - 1) * per_page
    end = start + per_page - 1
    try:
        rows, total = get_db_client().get_table_rows(safe_table_name, start, end)
    except NotFoundError as e:
        return jsonify({"error": e.message}), 404
    except ExecutorError as e:
        return jsonify({"error": e.message}), 500

    return jsonify({"rows": rows, "totalCount": total, "page": page, "perPage": per_page}), 200


def _json_payload():
    if not request.is_json:
        return None, (jsonify({"error": "Request must be JSON"}), 400)
    payload = request.get_json()
    if not payload or not isinstance(payload, dict):
        return None, (jsonify({"error": "No JSON data received"}), 400)
    return payload, None


def _run_dml(operation, sql, params, many=False):
    logger.debug("Generated DML: %s | params: %s", sql, params)
    try:
        affected_rows = get_db_client().execute_statement(sql, params, many=many)
    except NotFoundError as e:
        return jsonify({"error": e.message}), 404
    except ExecutorError as e:
        return jsonify({"error": f"Database error: {e.message}", "sql_attempted": sql}), 400

    message = f"{operation} successful. Rows affected: {affected_rows}"
    if operation in ('UPDATE', 'DELETE') and affected_rows == 0:
        message = f"{operation} executed, but no rows matched the WHERE condition(s)."
    logger.info(message)
    return jsonify({"message": message, "affectedRows": affected_rows}), 200


@tables_bp.route('/api/tables/<table_name>/rows', methods=['POST'])
def insert_rows(table_name):
    """Inserts one or more rows: {"values": [{col: val}, ...]}."""
    payload, error = _json_payload()
    if error:
        return error
    safe_table_name = existing_identifier(table_name)
    values_data = payload.get('values')
    if not safe_table_name:
        return jsonify({"error": "Missing table name"}), 400
    if not values_data or not isinstance(values_data, list) or not all(isinstance(v, dict) for v in values_data):
        return jsonify({"error": "Missing or invalid 'values' list for INSERT operation"}), 400

    # All rows share the first row's columns
    raw_columns = list(values_data[0].keys())
    columns = [existing_identifier(col) for col in raw_columns]
    if not columns or not all(columns):
        return jsonify({"error": "Invalid column name(s) provided for INSERT"}), 400

    placeholders = ", ".join(['%s'] * len(columns))
    column_list = ", ".join(quote_identifier(col) for col in columns)
    sql = f"INSERT INTO {quote_identifier(safe_table_name)} ({column_list}) VALUES ({placeholders});"
    params = [tuple(row.get(col) for col in raw_columns) for row in values_data]
    return _run_dml('INSERT', sql, params, many=True)


@tables_bp.route('/api/tables/<table_name>/rows', methods=['PATCH'])
def update_rows(table_name):
    """Updates matching rows: {"set": {col: val}, "where": [{column, operator, value}, ...]}."""
    payload, error = _json_payload()
    if error:
        return error
    safe_table_name = existing_identifier(table_name)
    set_data = payload.get('set') or {}
    if not safe_table_name:
        return jsonify({"error": "Missing table name"}), 400
    if not isinstance(set_data, dict) or not set_data:
        return jsonify({"error": "Missing SET data for UPDATE"}), 400
    if not payload.get('where'):
        return jsonify({"error": "Missing WHERE conditions for UPDATE"}), 400
    try:
        where_clause_sql, where_params = build_where_clause(payload.get('where'))
        if not where_clause_sql:
            raise ValueError("Valid WHERE conditions are required for UPDATE.")
    except ValueError as ve:
        return jsonify({"error": f"Invalid WHERE clause: {ve}"}), 400

    set_clauses = []
    set_values = []
    for col, val in set_data.items():
        safe_col = existing_identifier(col)
        if not safe_col:
            return jsonify({"error": f"Invalid column name in SET: {col}"}), 400
        set_clauses.append(f"{quote_identifier(safe_col)} = %s")
        set_values.append(val)

    sql = f"UPDATE {quote_identifier(safe_table_name)} SET {', '.join(set_clauses)} WHERE {where_clause_sql};"
    return _run_dml('UPDATE', sql, set_values + where_params)


@tables_bp.route('/api/tables/<table_name>/rows', methods=['DELETE'])
def delete_rows(table_name):
    """Deletes matching rows: {"where": [{column, operator, value}, ...]}."""
    payload, error = _json_payload()
    if error:
        return error
    safe_table_name = existing_identifier(table_name)
    if not safe_table_name:
        return jsonify({"error": "Missing table name"}), 400
    if not payload.get('where'):
        return jsonify({"error": "Missing WHERE conditions for DELETE"}), 400
    try:
        where_clause_sql, where_params = build_where_clause(payload.get('where'))
        if not where_clause_sql:
            raise ValueError("Valid WHERE conditions are required for DELETE.")
    except ValueError as ve:
        return jsonify({"error": f"Invalid WHERE clause: {ve}"}), 400

    sql = f"DELETE FROM {quote_identifier(safe_table_name)} WHERE {where_clause_sql};"
    return _run_dml('DELETE', sql, where_params)
