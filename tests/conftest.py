import pytest

from app import create_app
from config import Config
from dbconsole.errors import FetchError, NotFoundError
from dbconsole.models import ColumnSchema, Relationship, TableSchema
from dbconsole.surfaces import DrawingSurface


class FakeDatabaseClient:
    """In-memory stand-in for db.DatabaseClient."""

    database = 'testdb'

    def __init__(self):
        self.relationships = []
        self.tables = []
        self.schemas = {}
        self.table_rows = {}
        self.sql_response = {"success": True, "data": [], "error": None}
        self.fail_fetch = False
        self.statement_error = None
        self.rowcount = 1
        self.queries = []
        self.statements = []

    def server_info(self):
        return {"server_info": "8.0.36", "database": self.database}

    def get_table_relationships(self):
        if self.fail_fetch:
            raise FetchError("Database error fetching relationships: connection refused")
        return list(self.relationships)

    def get_tables(self):
        if self.fail_fetch:
            raise FetchError("Database error fetching tables: connection refused")
        return list(self.tables)

    def get_table_schema(self, table_name):
        if table_name not in self.schemas:
            raise NotFoundError(f"Table '{table_name}' not found.")
        return self.schemas[table_name]

    def get_table_rows(self, table_name, start, end):
        if table_name not in self.table_rows:
            raise NotFoundError(f"Table '{table_name}' not found.")
        rows = self.table_rows[table_name]
        return rows[start:end + 1], len(rows)

    def execute_statement(self, sql, params=None, many=False):
        self.statements.append((sql, params, many))
        if self.statement_error:
            raise self.statement_error
        return self.rowcount

    def execute_sql_query(self, query):
        self.queries.append(query)
        return self.sql_response


class RecordingSurface(DrawingSurface):
    """Keeps every primitive call as a (name, args) tuple."""

    def __init__(self, width=800, height=500):
        super().__init__(width, height)
        self.calls = []
        self.clear_count = 0

    def clear(self):
        self.calls = []
        self.clear_count += 1

    def draw_circle(self, x, y, radius, fill, stroke, line_width=2):
        self.calls.append(('circle', (x, y, radius)))

    def draw_line(self, x1, y1, x2, y2, color, line_width=2):
        self.calls.append(('line', (x1, y1, x2, y2)))

    def draw_filled_polygon(self, points, fill):
        self.calls.append(('polygon', tuple(points)))

    def draw_text(self, text, x, y, color, font_size=12, font_family='sans-serif'):
        self.calls.append(('text', (text, x, y)))

    def named(self, name):
        return [args for call, args in self.calls if call == name]


def make_relationship(source, target, column='id', constraint=None):
    return Relationship(
        table_name=source,
        column_name=f"{target}_id",
        foreign_table=target,
        foreign_column=column,
        constraint_name=constraint or f"fk_{source}_{target}",
    )


@pytest.fixture
def fake_client():
    client = FakeDatabaseClient()
    client.relationships = [
        make_relationship('orders', 'customers'),
        make_relationship('order_items', 'orders'),
        make_relationship('order_items', 'products'),
    ]
    client.tables = [
        TableSchema('customers', [ColumnSchema('id', 'int'), ColumnSchema('name', 'varchar(255)')], 'testdb'),
        TableSchema('orders', [ColumnSchema('id', 'int'), ColumnSchema('customers_id', 'int')], 'testdb'),
    ]
    client.schemas['orders'] = [
        ColumnSchema('id', 'int', is_nullable=False, is_primary_key=True),
        ColumnSchema('customers_id', 'int', is_foreign_key=True,
                     foreign_key_table='customers', foreign_key_column='id'),
    ]
    client.table_rows['customers'] = [{"id": i, "name": f"customer {i}"} for i in range(1, 121)]
    return client


@pytest.fixture
def app(fake_client):
    config = Config(LOG_LEVEL='WARNING', DEFAULT_PAGE_SIZE=50, DIAGRAM_WIDTH=800, DIAGRAM_HEIGHT=500)
    flask_app = create_app(config=config, db_client=fake_client)
    flask_app.config['TESTING'] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def surface():
    return RecordingSurface(800, 500)
