import logging

from flask import Blueprint, jsonify, request

from db import get_db_client
from .ddl import (DATA_TYPES, build_add_column_sql, build_create_table_sql,
                  build_drop_column_sql, build_modify_column_sql)
from .errors import ExecutorError, NotFoundError, ValidationError
from .helpers import existing_identifier

logger = logging.getLogger(__name__)

schema_bp = Blueprint('schema', __name__)


@schema_bp.route('/api/data_types', methods=['GET'])
def list_data_types():
    return jsonify({"dataTypes": DATA_TYPES}), 200


@schema_bp.route('/api/schema/<table_name>', methods=['GET'])
def get_table_schema(table_name):
    """Ordered column descriptors for one table, or 404 when it does not exist."""
    safe_table_name = existing_identifier(table_name)
    if not safe_table_name:
        return jsonify({"error": "Invalid table name provided"}), 400
    client = get_db_client()
    try:
        columns = client.get_table_schema(safe_table_name)
    except NotFoundError as e:
        return jsonify({"error": e.message}), 404
    except ExecutorError as e:
        logger.error("Error fetching schema for table %s: %s", safe_table_name, e.message)
        return jsonify({"error": e.message}), 500

    return jsonify({
        "table_schema": client.database,
        "table_name": safe_table_name,
        "columns": [column.to_dict() for column in columns],
    }), 200


def _apply_ddl(sql, success_message, status=200, **extra):
    logger.info("Executing DDL: %s", sql)
    try:
        get_db_client().execute_statement(sql)
    except NotFoundError as e:
        return jsonify({"error": e.message}), 404
    except ExecutorError as e:
        return jsonify({"error": f"Database error: {e.message}", "sql_attempted": sql}), 400
    return jsonify({"message": success_message, "sql": sql, **extra}), status


def _json_payload():
    if not request.is_json:
        raise ValidationError("Request must be JSON")
    payload = request.get_json()
    if not payload or not isinstance(payload, dict):
        raise ValidationError("No JSON data received")
    return payload


@schema_bp.route('/api/schema', methods=['POST'])
def create_table():
    """Creates a table: {"name": ..., "columns": [column definition, ...]}."""
    payload = _json_payload()
    table_name, sql = build_create_table_sql(payload.get('name'), payload.get('columns'))
    return _apply_ddl(sql, f"Table {table_name} created.", status=201, table_name=table_name)


@schema_bp.route('/api/schema/<table_name>/columns', methods=['POST'])
def add_column(table_name):
    column = _json_payload()
    sql = build_add_column_sql(table_name, column)
    return _apply_ddl(sql, f"Column {column.get('name')} has been added to {table_name}", status=201)


@schema_bp.route('/api/schema/<table_name>/columns/<column_name>', methods=['PATCH'])
def modify_column(table_name, column_name):
    sql = build_modify_column_sql(table_name, column_name, _json_payload())
    return _apply_ddl(sql, f"Column {column_name} in {table_name} has been updated")


@schema_bp.route('/api/schema/<table_name>/columns/<column_name>', methods=['DELETE'])
def drop_column(table_name, column_name):
    sql = build_drop_column_sql(table_name, column_name)
    return _apply_ddl(sql, f"Column {column_name} has been deleted from {table_name}")
