import logging

logger = logging.getLogger(__name__)

ALLOWED_OPERATORS = {'=', '!=', '>', '<', '>=', '<=', 'LIKE', 'NOT LIKE', 'IS NULL', 'IS NOT NULL'}

RESERVED_KEYWORDS = {
    'TABLE', 'SELECT', 'INSERT', 'UPDATE', 'DELETE', 'WHERE', 'FROM', 'CREATE',
    'ALTER', 'DROP', 'INDEX', 'KEY', 'PRIMARY', 'FOREIGN', 'GROUP', 'BY', 'ORDER',
    'HAVING', 'JOIN', 'ON', 'AS', 'AND', 'OR', 'NOT', 'NULL', 'IS', 'IN', 'LIKE',
    'LIMIT', 'OFFSET', 'DISTINCT', 'UNION', 'REFERENCES', 'CONSTRAINT', 'DEFAULT',
}


def sanitize_identifier(name, prefix='tbl'):
    """
    Maps a user-supplied table/column name onto a safe MySQL identifier.

    Anything other than letters, digits and '_' becomes '_'. Names that do not
    start with a letter or '_' get `prefix` prepended. Returns None for empty input.
    """
    if name is None:
        return None
    name = str(name).strip()
    if not name:
        return None
    sanitized = "".join(c if c.isalnum() or c == '_' else '_' for c in name.replace(' ', '_'))
    if not (sanitized[0].isalpha() or sanitized[0] == '_'):
        sanitized = f"{prefix}_{sanitized}"
    return sanitized


def sanitize_new_identifier(name, prefix='tbl'):
    """Like sanitize_identifier, but also steers new names away from reserved keywords."""
    sanitized = sanitize_identifier(name, prefix=prefix)
    if sanitized and sanitized.upper() in RESERVED_KEYWORDS:
        sanitized = f"{prefix}_{sanitized}"
    return sanitized


def existing_identifier(name):
    """
    Name of a table or column that already exists, kept exactly as given.

    MySQL accepts names like `2024_sales` or `order-items`, so nothing is
    rewritten here; quote_identifier makes them safe. Returns None for blank input.
    """
    if name is None:
        return None
    name = str(name)
    if not name.strip():
        return None
    return name


def quote_identifier(name):
    """Backtick-quotes an identifier, doubling any backtick inside it."""
    return f"`{name.replace('`', '``')}`"


def build_where_clause(conditions_list):
    """
    Builds a WHERE clause string and parameter list from a list of condition objects.
    Handles AND/OR connectors between conditions.

    Each condition is a dict with 'column', 'operator' (default '='), 'value'
    and, from the second condition on, an optional 'connector' (default AND).
    """
    where_clause_parts = []
    where_params = []
    if not isinstance(conditions_list, list):
        raise ValueError("WHERE conditions must be a list")

    for index, condition in enumerate(conditions_list):
        if not isinstance(condition, dict):
            raise ValueError(f"Invalid where condition: {condition}")
        column = existing_identifier(condition.get('column'))
        operator = str(condition.get('operator', '=')).strip().upper()
        value = condition.get('value')
        connector = str(condition.get('connector', 'AND')).strip().upper() if index > 0 else None

        if not column:
            raise ValueError(f"Incomplete where condition (missing column): {condition}")
        if operator not in ALLOWED_OPERATORS:
            raise ValueError(f"Invalid where operator: {operator}")
        if connector and connector not in ('AND', 'OR'):
            raise ValueError(f"Invalid connector: {connector}")

        if connector:
            where_clause_parts.append(connector)

        if operator in ('IS NULL', 'IS NOT NULL'):
            where_clause_parts.append(f"{quote_identifier(column)} {operator}")
            if value is not None and str(value).strip() != '':
                logger.warning("Value %r provided for WHERE operator %s on column %s will be ignored.",
                               value, operator, column)
        else:
            where_clause_parts.append(f"{quote_identifier(column)} {operator} %s")
            where_params.append(value)

    if not where_clause_parts:
        return "", []

    return " ".join(where_clause_parts), where_params
