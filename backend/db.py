"""
Database client for the console.

One DatabaseClient is created by the application factory and handed to the
blueprints; nothing in here is a module-level singleton. Each call opens its
own MySQL connection and closes it before returning.
"""
import logging
from collections import OrderedDict
from contextlib import contextmanager

import mysql.connector
from flask import current_app
from mysql.connector import Error

from dbconsole.errors import ExecutorError, FetchError, NotFoundError
from dbconsole.helpers import quote_identifier
from dbconsole.models import ColumnSchema, Relationship, TableSchema

logger = logging.getLogger(__name__)

# MySQL error codes the console reacts to
ER_NO_SUCH_TABLE = 1146

RELATIONSHIPS_SQL = """
SELECT TABLE_NAME AS table_name, COLUMN_NAME AS column_name,
       REFERENCED_TABLE_NAME AS foreign_table, REFERENCED_COLUMN_NAME AS foreign_column,
       CONSTRAINT_NAME AS constraint_name
FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE
WHERE TABLE_SCHEMA = %s AND REFERENCED_TABLE_NAME IS NOT NULL
ORDER BY TABLE_NAME, CONSTRAINT_NAME, ORDINAL_POSITION;
"""

TABLES_SQL = """
SELECT c.TABLE_NAME AS table_name, c.COLUMN_NAME AS column_name, c.COLUMN_TYPE AS data_type
FROM INFORMATION_SCHEMA.COLUMNS c
JOIN INFORMATION_SCHEMA.TABLES t
  ON t.TABLE_SCHEMA = c.TABLE_SCHEMA AND t.TABLE_NAME = c.TABLE_NAME
WHERE c.TABLE_SCHEMA = %s AND t.TABLE_TYPE = 'BASE TABLE'
ORDER BY c.TABLE_NAME, c.ORDINAL_POSITION;
"""

TABLE_SCHEMA_SQL = """
SELECT c.COLUMN_NAME AS column_name, c.COLUMN_TYPE AS data_type, c.IS_NULLABLE AS is_nullable,
       c.COLUMN_DEFAULT AS column_default, c.COLUMN_KEY AS column_key,
       k.REFERENCED_TABLE_NAME AS foreign_key_table, k.REFERENCED_COLUMN_NAME AS foreign_key_column
FROM INFORMATION_SCHEMA.COLUMNS c
LEFT JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE k
  ON k.TABLE_SCHEMA = c.TABLE_SCHEMA AND k.TABLE_NAME = c.TABLE_NAME
 AND k.COLUMN_NAME = c.COLUMN_NAME AND k.REFERENCED_TABLE_NAME IS NOT NULL
WHERE c.TABLE_SCHEMA = %s AND c.TABLE_NAME = %s
ORDER BY c.ORDINAL_POSITION;
"""


def _plain_value(value):
    # BLOB/JSON columns can come back as bytes; the console shows them as text
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode('utf-8', errors='replace')
    return value


def _plain_row(row):
    return {key: _plain_value(value) for key, value in row.items()}


class DatabaseClient:
    """Thin wrapper over the MySQL query and metadata surface."""

    def __init__(self, host='localhost', port=3306, user='root', password='', database='mydatabase'):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database

    @classmethod
    def from_config(cls, config):
        return cls(
            host=config.MYSQL_HOST,
            port=config.MYSQL_PORT,
            user=config.MYSQL_USER,
            password=config.MYSQL_PASSWORD,
            database=config.MYSQL_DB,
        )

    @contextmanager
    def connection(self):
        conn = mysql.connector.connect(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            database=self.database,
        )
        try:
            yield conn
        finally:
            if conn.is_connected():
                conn.close()

    @contextmanager
    def cursor(self, dictionary=True):
        with self.connection() as conn:
            cursor = conn.cursor(dictionary=dictionary)
            try:
                yield conn, cursor
            finally:
                cursor.close()

    def server_info(self):
        with self.cursor(dictionary=False) as (conn, cursor):
            cursor.execute("SELECT DATABASE();")
            (database,) = cursor.fetchone()
            return {"server_info": conn.get_server_info(), "database": database}

    # --- Metadata ---

    def get_table_relationships(self):
        """All foreign keys in the current database, one entry per constrained column."""
        try:
            with self.cursor() as (_, cursor):
                cursor.execute(RELATIONSHIPS_SQL, (self.database,))
                return [Relationship.from_row(row) for row in cursor.fetchall()]
        except Error as e:
            raise FetchError(f"Database error fetching relationships: {e}") from e

    def get_tables(self):
        """Base tables of the current database with their columns, in name order."""
        try:
            with self.cursor() as (_, cursor):
                cursor.execute(TABLES_SQL, (self.database,))
                rows = cursor.fetchall()
        except Error as e:
            raise FetchError(f"Database error fetching tables: {e}") from e

        tables = OrderedDict()
        for row in rows:
            table = tables.setdefault(
                row['table_name'], TableSchema(table_name=row['table_name'], table_schema=self.database))
            table.columns.append(ColumnSchema(column_name=row['column_name'], data_type=row['data_type']))
        return list(tables.values())

    def get_table_schema(self, table_name):
        """Ordered column descriptors of one table. Raises NotFoundError when the table is absent."""
        try:
            with self.cursor() as (_, cursor):
                cursor.execute(TABLE_SCHEMA_SQL, (self.database, table_name))
                rows = cursor.fetchall()
        except Error as e:
            raise ExecutorError(f"Database error fetching schema for {table_name}: {e.msg}", e.errno) from e

        if not rows:
            raise NotFoundError(f"Table '{table_name}' not found.")

        columns = OrderedDict()
        for row in rows:
            # A column referencing two tables shows up twice; the first reference wins
            if row['column_name'] in columns:
                continue
            columns[row['column_name']] = ColumnSchema(
                column_name=row['column_name'],
                data_type=row['data_type'],
                is_nullable=row['is_nullable'] == 'YES',
                column_default=row['column_default'],
                is_primary_key=row['column_key'] == 'PRI',
                is_foreign_key=row['foreign_key_table'] is not None,
                foreign_key_table=row['foreign_key_table'],
                foreign_key_column=row['foreign_key_column'],
            )
        return list(columns.values())

    # --- Data ---

    def get_table_rows(self, table_name, start, end):
        """
        Rows `start`..`end` (inclusive, zero-based) of a table plus its total row count.

        Returns a tuple: (rows, total_count)
        """
        if start < 0 or end < start:
            raise ValueError(f"Invalid row range: {start}..{end}")
        table = quote_identifier(table_name)
        try:
            with self.cursor() as (_, cursor):
                cursor.execute(f"SELECT COUNT(*) AS total FROM {table};")
                total = cursor.fetchone()['total']
                cursor.execute(f"SELECT * FROM {table} LIMIT %s OFFSET %s;", (end - start + 1, start))
                rows = [_plain_row(row) for row in cursor.fetchall()]
                return rows, total
        except Error as e:
            if e.errno == ER_NO_SUCH_TABLE:
                raise NotFoundError(f"Table '{table_name}' not found.") from e
            raise ExecutorError(f"Database error fetching rows of {table_name}: {e.msg}", e.errno) from e

    def execute_statement(self, sql, params=None, many=False):
        """
        Runs one DDL/DML statement and commits it. Returns the affected row count.

        Rolls back and raises ExecutorError (or NotFoundError for a missing
        table) when the database rejects the statement.
        """
        logger.debug("Executing SQL: %s | params: %s", sql, params)
        try:
            with self.cursor(dictionary=False) as (conn, cursor):
                try:
                    if many:
                        cursor.executemany(sql, params or [])
                    else:
                        cursor.execute(sql, params or ())
                    conn.commit()
                    return cursor.rowcount
                except Error:
                    conn.rollback()
                    raise
        except Error as e:
            logger.warning("Database rejected statement (%s): %s", e.errno, e.msg)
            if e.errno == ER_NO_SUCH_TABLE:
                raise NotFoundError(e.msg) from e
            raise ExecutorError(e.msg or str(e), e.errno) from e

    def execute_sql_query(self, query):
        """
        Forwards raw query text verbatim to MySQL.

        Returns {"success": bool, "data": rows | None, "error": str | None};
        statements that produce no result set succeed with an empty row list.
        """
        try:
            with self.cursor() as (conn, cursor):
                cursor.execute(query)
                if cursor.with_rows:
                    data = [_plain_row(row) for row in cursor.fetchall()]
                else:
                    data = []
                    conn.commit()
                return {"success": True, "data": data, "error": None}
        except Error as e:
            logger.info("Query rejected by database: %s", e)
            message = e.msg if getattr(e, 'msg', None) else str(e)
            return {"success": False, "data": None, "error": message}


def get_db_client():
    """The DatabaseClient the running app was created with."""
    return current_app.extensions['db_client']
