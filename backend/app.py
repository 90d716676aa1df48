import logging
from datetime import date, time, timedelta

from flask import Flask, jsonify
from flask.json.provider import DefaultJSONProvider
from flask_cors import CORS
from mysql.connector import Error

from config import Config
from db import DatabaseClient, get_db_client
from dbconsole.errors import ConsoleError
from dbconsole.relationship_routes import relationships_bp
from dbconsole.schema_routes import schema_bp
from dbconsole.sql_routes import sql_bp
from dbconsole.table_routes import tables_bp

logger = logging.getLogger(__name__)


class ConsoleJSONProvider(DefaultJSONProvider):
    """JSON for MySQL column values: ISO dates and times, TIME as H:MM:SS, SET as a list."""

    # Keep result columns in the order the database returned them
    sort_keys = False

    @staticmethod
    def default(o):
        if isinstance(o, (date, time)):
            return o.isoformat()
        if isinstance(o, timedelta):
            return str(o)
        if isinstance(o, (set, frozenset)):
            return sorted(o, key=str)
        return DefaultJSONProvider.default(o)


def create_app(config=None, db_client=None):
    """
    Builds the console backend.

    `db_client` defaults to a DatabaseClient built from `config`; it is created
    once here and shared by every request through app.extensions.
    """
    config = config or Config()
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    app = Flask(__name__)
    app.config.update(config.as_dict())
    app.json = ConsoleJSONProvider(app)
    CORS(app)  # Initialize CORS for the app

    app.extensions['db_client'] = db_client or DatabaseClient.from_config(config)

    app.register_blueprint(tables_bp)
    app.register_blueprint(schema_bp)
    app.register_blueprint(relationships_bp)
    app.register_blueprint(sql_bp)

    @app.errorhandler(ConsoleError)
    def handle_console_error(error):
        return jsonify({"error": error.message}), error.status_code

    @app.route('/api/ping', methods=['GET'])
    def ping_pong():
        return jsonify(message='pong!')

    @app.route('/api/db_test', methods=['GET'])
    def test_db():
        try:
            info = get_db_client().server_info()
            return jsonify(message="Database connection successful!", **info)
        except Error as e:
            logger.error("Database connection error: %s", e)
            return jsonify(error=f"Database connection error: {e}"), 500

    logger.info("Console backend ready (database %s on %s)", config.MYSQL_DB, config.MYSQL_HOST)
    return app


if __name__ == '__main__':
    create_app().run(debug=True, port=5000)
