"""
DDL statement builders for the schema editor.

Column definitions arrive from the UI as dicts:
    {"name", "dataType", "isNullable", "defaultValue", "isPrimaryKey",
     "isForeignKey", "referencedTable", "referencedColumn"}
New identifiers are sanitized, existing ones are quoted as given, and types are
checked against DATA_TYPES before any SQL text is produced.
"""
import re

from .errors import ValidationError
from .helpers import existing_identifier, quote_identifier, sanitize_identifier, sanitize_new_identifier

DATA_TYPES = [
    {"label": "Integer", "value": "INT", "description": "4 bytes, -2147483648 to +2147483647"},
    {"label": "Bigint", "value": "BIGINT", "description": "8 bytes, -9223372036854775808 to 9223372036854775807"},
    {"label": "Varchar", "value": "VARCHAR(255)", "description": "Variable length with limit"},
    {"label": "Text", "value": "TEXT", "description": "Variable length, up to 64 KB"},
    {"label": "Boolean", "value": "BOOLEAN", "description": "true/false (TINYINT(1))"},
    {"label": "UUID", "value": "CHAR(36)", "description": "Universally unique identifier as text"},
    {"label": "JSON", "value": "JSON", "description": "Validated JSON document"},
    {"label": "Date", "value": "DATE", "description": "Calendar date (year, month, day)"},
    {"label": "Time", "value": "TIME", "description": "Time of day"},
    {"label": "Datetime", "value": "DATETIME", "description": "Date and time (no time zone)"},
    {"label": "Timestamp", "value": "TIMESTAMP", "description": "Date and time, stored as UTC"},
    {"label": "Decimal", "value": "DECIMAL(10,2)", "description": "Exact fixed-point number"},
    {"label": "Float", "value": "FLOAT", "description": "4-byte floating-point number"},
    {"label": "Double", "value": "DOUBLE", "description": "8-byte floating-point number"},
]

ALLOWED_TYPES = {data_type["value"] for data_type in DATA_TYPES}

# Defaults passed through unquoted
DEFAULT_KEYWORDS = {'NULL', 'CURRENT_TIMESTAMP', 'TRUE', 'FALSE'}

_NUMBER_RE = re.compile(r'^-?\d+(\.\d+)?$')


def normalize_type(data_type):
    normalized = re.sub(r'\s+', '', str(data_type or '')).upper()
    if normalized not in ALLOWED_TYPES:
        raise ValidationError(f"Unsupported data type: {data_type}")
    return normalized


def format_default(value):
    """Renders a default value as a SQL literal. Returns None when there is no default."""
    if value is None:
        return None
    if isinstance(value, bool):
        return 'TRUE' if value else 'FALSE'
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).strip()
    if text == '':
        return None
    if text.upper() in DEFAULT_KEYWORDS:
        return text.upper()
    if _NUMBER_RE.match(text):
        return text
    return "'" + text.replace('\\', '\\\\').replace("'", "''") + "'"


def column_definition(column, new=True):
    """
    Returns a tuple: (safe_column_name, definition_sql)

    `new` sanitizes the column name and steers it off reserved words; existing
    columns keep their name as is.
    """
    if not isinstance(column, dict):
        raise ValidationError(f"Invalid column definition: {column}")
    if new:
        name = sanitize_new_identifier(column.get('name'), prefix='col')
    else:
        name = existing_identifier(column.get('name'))
    if not name:
        raise ValidationError(f"Column is missing a name: {column}")
    data_type = normalize_type(column.get('dataType'))

    is_primary_key = bool(column.get('isPrimaryKey', False))
    is_nullable = bool(column.get('isNullable', True)) and not is_primary_key

    parts = [quote_identifier(name), data_type]
    parts.append("NULL" if is_nullable else "NOT NULL")
    default = format_default(column.get('defaultValue'))
    if default is not None:
        parts.append(f"DEFAULT {default}")
    return name, " ".join(parts)


def _foreign_key_clause(table_name, column_name, column):
    referenced_table = existing_identifier(column.get('referencedTable'))
    referenced_column = existing_identifier(column.get('referencedColumn'))
    if not referenced_table or not referenced_column:
        raise ValidationError(f"Foreign key on {column_name} needs a referenced table and column")
    constraint_name = sanitize_identifier(f"fk_{table_name}_{column_name}_{referenced_table}")[:64]
    return (
        f"CONSTRAINT {quote_identifier(constraint_name)} FOREIGN KEY ({quote_identifier(column_name)}) "
        f"REFERENCES {quote_identifier(referenced_table)} ({quote_identifier(referenced_column)})"
    )


def build_create_table_sql(table_name, columns):
    safe_table_name = sanitize_new_identifier(table_name)
    if not safe_table_name:
        raise ValidationError("Missing table name")
    if not isinstance(columns, list) or not columns:
        raise ValidationError(f"Table {safe_table_name} has no columns defined")

    column_definitions = []
    primary_keys = []
    foreign_keys = []
    seen = set()
    for column in columns:
        name, definition = column_definition(column)
        if name in seen:
            raise ValidationError(f"Duplicate column name: {name}")
        seen.add(name)
        column_definitions.append(definition)
        if column.get('isPrimaryKey', False):
            primary_keys.append(quote_identifier(name))
        if column.get('isForeignKey', False):
            foreign_keys.append(_foreign_key_clause(safe_table_name, name, column))

    items = list(column_definitions)
    if primary_keys:
        items.append(f"PRIMARY KEY ({', '.join(primary_keys)})")
    items.extend(foreign_keys)

    sql = f"CREATE TABLE {quote_identifier(safe_table_name)} (\n"
    sql += ",\n".join(f"    {item}" for item in items)
    sql += "\n);"
    return safe_table_name, sql


def build_add_column_sql(table_name, column):
    """ALTER TABLE ... ADD COLUMN, plus PRIMARY KEY / FOREIGN KEY clauses when requested."""
    safe_table_name = existing_identifier(table_name)
    if not safe_table_name:
        raise ValidationError("Missing table name")
    name, definition = column_definition(column)
    clauses = [f"ADD COLUMN {definition}"]
    if column.get('isPrimaryKey', False):
        clauses.append(f"ADD PRIMARY KEY ({quote_identifier(name)})")
    if column.get('isForeignKey', False):
        clauses.append(f"ADD {_foreign_key_clause(safe_table_name, name, column)}")
    return f"ALTER TABLE {quote_identifier(safe_table_name)} " + ", ".join(clauses) + ";"


def build_modify_column_sql(table_name, column_name, column):
    """
    Changes type, nullability and default of an existing column.

    A different 'name' in `column` renames it (CHANGE COLUMN).
    """
    safe_table_name = existing_identifier(table_name)
    safe_column_name = existing_identifier(column_name)
    if not safe_table_name or not safe_column_name:
        raise ValidationError("Missing table or column name")
    column = dict(column)
    column.setdefault('name', safe_column_name)
    new_name, definition = column_definition(column, new=column['name'] != column_name)
    table = quote_identifier(safe_table_name)
    if new_name != safe_column_name:
        return f"ALTER TABLE {table} CHANGE COLUMN {quote_identifier(safe_column_name)} {definition};"
    return f"ALTER TABLE {table} MODIFY COLUMN {definition};"


def build_drop_column_sql(table_name, column_name):
    safe_table_name = existing_identifier(table_name)
    safe_column_name = existing_identifier(column_name)
    if not safe_table_name or not safe_column_name:
        raise ValidationError("Missing table or column name")
    return f"ALTER TABLE {quote_identifier(safe_table_name)} DROP COLUMN {quote_identifier(safe_column_name)};"
