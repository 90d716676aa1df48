"""
Ad-hoc SQL execution and CSV export of its results.

The query text is forwarded verbatim; the database is the only judge of
whether it is acceptable.
"""
import logging
import time
from datetime import datetime, timezone

from .errors import ValidationError
from .models import QueryError, QueryRows

logger = logging.getLogger(__name__)

CSV_MIMETYPE = 'text/csv'


def execute_query(client, query_text):
    """
    Runs `query_text` through `client.execute_sql_query`.

    Returns a tuple: (QueryRows | QueryError, elapsed_ms). Blank text raises
    ValidationError and the client is never called.
    """
    if query_text is None or not str(query_text).strip():
        raise ValidationError("Query is empty. Please enter a SQL query to execute.")

    started = time.perf_counter()
    response = client.execute_sql_query(query_text)
    elapsed_ms = (time.perf_counter() - started) * 1000

    if not response.get('success'):
        message = response.get('error') or "An error occurred while executing the query"
        logger.info("Query failed after %.1f ms: %s", elapsed_ms, message)
        return QueryError(message=message), elapsed_ms

    rows = list(response.get('data') or [])
    columns = list(rows[0].keys()) if rows else []
    logger.info("Query returned %d rows in %.1f ms", len(rows), elapsed_ms)
    return QueryRows(columns=columns, rows=rows), elapsed_ms


def _csv_field(value):
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return '"' + value.replace('"', '""') + '"'
    return str(value)


def to_csv(rows):
    """
    Header from the first row's keys, then one line per row in that key order.

    Strings are always double-quoted (inner quotes doubled), None is an empty
    field, booleans are true/false, anything else goes through str(). No rows
    gives "".
    """
    rows = list(rows)
    if not rows:
        return ""
    columns = list(rows[0].keys())
    lines = [",".join(columns)]
    for row in rows:
        lines.append(",".join(_csv_field(row.get(column)) for column in columns))
    return "\n".join(lines)


def csv_filename(now=None):
    """query-results-<ISO timestamp to the second, ':' replaced by '-'>.csv"""
    now = now or datetime.now(timezone.utc)
    stamp = now.strftime('%Y-%m-%dT%H:%M:%S').replace(':', '-')
    return f"query-results-{stamp}.csv"
