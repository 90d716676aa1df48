from datetime import date, datetime, timedelta
from decimal import Decimal
from xml.etree import ElementTree

import pytest

from dbconsole.errors import ExecutorError
from dbconsole.models import ColumnSchema


def test_ping(client):
    assert client.get('/api/ping').get_json() == {"message": "pong!"}


def test_db_test(client):
    body = client.get('/api/db_test').get_json()
    assert body["database"] == "testdb"


# --- tables ---

def test_list_tables(client):
    body = client.get('/api/tables').get_json()
    assert [t["table_name"] for t in body["tables"]] == ["customers", "orders"]
    assert body["tables"][0]["columns"][1]["column_name"] == "name"


def test_list_tables_degrades_to_empty(client, fake_client):
    fake_client.fail_fetch = True
    response = client.get('/api/tables')
    assert response.status_code == 200
    assert response.get_json() == {"tables": []}


def test_table_rows_paging(client):
    body = client.get('/api/tables/customers/rows?page=3&per_page=50').get_json()
    assert body["totalCount"] == 120
    assert len(body["rows"]) == 20
    assert body["rows"][0] == {"id": 101, "name": "customer 101"}


def test_table_rows_default_page(client):
    body = client.get('/api/tables/customers/rows').get_json()
    assert len(body["rows"]) == 50
    assert body["page"] == 1


def test_table_rows_not_found(client):
    assert client.get('/api/tables/nope/rows').status_code == 404


def test_table_rows_bad_paging(client):
    assert client.get('/api/tables/customers/rows?page=0').status_code == 400


def test_update_rows(client, fake_client):
    response = client.patch('/api/tables/customers/rows', json={
        "set": {"name": "renamed"},
        "where": [{"column": "id", "operator": "=", "value": 7}],
    })
    assert response.status_code == 200
    sql, params, many = fake_client.statements[-1]
    assert sql == "UPDATE `customers` SET `name` = %s WHERE `id` = %s;"
    assert params == ["renamed", 7]
    assert many is False


def test_update_requires_where(client, fake_client):
    response = client.patch('/api/tables/customers/rows', json={"set": {"name": "x"}})
    assert response.status_code == 400
    assert fake_client.statements == []


def test_delete_rows_none_matched(client, fake_client):
    fake_client.rowcount = 0
    response = client.delete('/api/tables/customers/rows', json={
        "where": [{"column": "id", "operator": "=", "value": 999}],
    })
    assert response.status_code == 200
    assert "no rows matched" in response.get_json()["message"]


def test_insert_rows(client, fake_client):
    response = client.post('/api/tables/customers/rows', json={
        "values": [{"id": 200, "name": "a"}, {"name": "b", "id": 201}],
    })
    assert response.status_code == 200
    sql, params, many = fake_client.statements[-1]
    assert sql == "INSERT INTO `customers` (`id`, `name`) VALUES (%s, %s);"
    assert params == [(200, "a"), (201, "b")]
    assert many is True


def test_dml_database_error(client, fake_client):
    fake_client.statement_error = ExecutorError("Duplicate entry '200' for key 'PRIMARY'", 1062)
    response = client.post('/api/tables/customers/rows', json={"values": [{"id": 200}]})
    assert response.status_code == 400
    assert "Duplicate entry" in response.get_json()["error"]


# --- schema ---

def test_get_schema(client):
    body = client.get('/api/schema/orders').get_json()
    assert body["table_name"] == "orders"
    columns = body["columns"]
    assert [c["column_name"] for c in columns] == ["id", "customers_id"]
    assert columns[0]["is_primary_key"] is True
    assert columns[1]["foreign_key_table"] == "customers"


def test_get_schema_not_found(client):
    response = client.get('/api/schema/missing')
    assert response.status_code == 404
    assert "not found" in response.get_json()["error"]


def test_create_table(client, fake_client):
    response = client.post('/api/schema', json={
        "name": "tags",
        "columns": [{"name": "id", "dataType": "INT", "isPrimaryKey": True}],
    })
    assert response.status_code == 201
    assert fake_client.statements[-1][0].startswith("CREATE TABLE `tags`")


def test_create_table_invalid(client, fake_client):
    response = client.post('/api/schema', json={"name": "tags", "columns": []})
    assert response.status_code == 400
    assert fake_client.statements == []


def test_schema_requires_json(client):
    response = client.post('/api/schema', data="name=tags")
    assert response.status_code == 400


def test_add_modify_drop_column(client, fake_client):
    assert client.post('/api/schema/orders/columns',
                       json={"name": "note", "dataType": "TEXT"}).status_code == 201
    assert client.patch('/api/schema/orders/columns/note',
                        json={"dataType": "VARCHAR(255)"}).status_code == 200
    assert client.delete('/api/schema/orders/columns/note').status_code == 200
    assert [s[0] for s in fake_client.statements] == [
        "ALTER TABLE `orders` ADD COLUMN `note` TEXT NULL;",
        "ALTER TABLE `orders` MODIFY COLUMN `note` VARCHAR(255) NULL;",
        "ALTER TABLE `orders` DROP COLUMN `note`;",
    ]


def test_ddl_rejected_by_database(client, fake_client):
    fake_client.statement_error = ExecutorError("Duplicate column name 'note'", 1060)
    response = client.post('/api/schema/orders/columns', json={"name": "note", "dataType": "TEXT"})
    assert response.status_code == 400
    assert "Duplicate column name" in response.get_json()["error"]


def test_data_types(client):
    values = [t["value"] for t in client.get('/api/data_types').get_json()["dataTypes"]]
    assert "VARCHAR(255)" in values


# --- relationships ---

def test_relationships(client):
    body = client.get('/api/relationships').get_json()
    assert len(body["relationships"]) == 3
    assert body["relationships"][0]["constraint_name"] == "fk_orders_customers"
    assert body["tables"] == ["orders", "order_items", "customers", "products"]


def test_relationships_fetch_failure(client, fake_client):
    fake_client.fail_fetch = True
    body = client.get('/api/relationships').get_json()
    assert body == {"relationships": [], "tables": []}


def test_diagram_svg(client):
    response = client.get('/api/relationships/diagram.svg?width=600&height=400')
    assert response.status_code == 200
    assert response.mimetype == 'image/svg+xml'
    root = ElementTree.fromstring(response.data)
    assert root.get('width') == '600'
    assert len(root.findall('{http://www.w3.org/2000/svg}circle')) == 4
    assert len(root.findall('{http://www.w3.org/2000/svg}polygon')) == 3


def test_diagram_svg_empty(client, fake_client):
    fake_client.relationships = []
    root = ElementTree.fromstring(client.get('/api/relationships/diagram.svg').data)
    assert root.get('width') == '800'
    assert root.findall('{http://www.w3.org/2000/svg}circle') == []


def test_diagram_svg_bad_size(client):
    assert client.get('/api/relationships/diagram.svg?width=0').status_code == 400


# --- sql ---

def test_execute_sql_rows(client, fake_client):
    fake_client.sql_response = {"success": True, "data": [{"b": 2, "a": 1}], "error": None}
    body = client.post('/api/sql/execute', json={"query": "SELECT 2 AS b, 1 AS a"}).get_json()
    assert body["status"] == "rows"
    assert body["columns"] == ["b", "a"]
    assert body["rowCount"] == 1
    assert body["elapsedMs"] >= 0


def test_execute_sql_empty_result(client, fake_client):
    fake_client.sql_response = {"success": True, "data": [], "error": None}
    body = client.post('/api/sql/execute', json={"query": "SELECT * FROM t WHERE 1=0"}).get_json()
    assert body["status"] == "rows"
    assert body["columns"] == []
    assert body["rows"] == []


def test_execute_sql_error(client, fake_client):
    fake_client.sql_response = {"success": False, "data": None, "error": "syntax error at or near X"}
    response = client.post('/api/sql/execute', json={"query": "SELEC"})
    body = response.get_json()
    assert response.status_code == 200
    assert body["status"] == "error"
    assert body["error"] == "syntax error at or near X"
    assert "rows" not in body


def test_execute_sql_blank(client, fake_client):
    response = client.post('/api/sql/execute', json={"query": "   "})
    assert response.status_code == 400
    assert fake_client.queries == []


def test_export_csv(client):
    response = client.post('/api/sql/export', json={"rows": [{"a": "x,y", "b": None}, {"a": 'He said "hi"', "b": 5}]})
    assert response.status_code == 200
    assert response.mimetype == 'text/csv'
    disposition = response.headers['Content-Disposition']
    assert disposition.startswith('attachment; filename=query-results-')
    assert disposition.endswith('.csv')
    assert ':' not in disposition.split('filename=')[1]
    assert response.get_data(as_text=True) == 'a,b\n"x,y",\n"He said ""hi""",5'


def test_export_csv_needs_rows(client):
    assert client.post('/api/sql/export', json={"rows": []}).status_code == 400


# --- column values and table names as MySQL returns them ---

def test_execute_sql_encodes_temporal_and_set_values(client, fake_client):
    fake_client.sql_response = {"success": True, "error": None, "data": [{
        "t": timedelta(hours=9, minutes=30),
        "d": date(2024, 3, 5),
        "dt": datetime(2024, 3, 5, 14, 0, 1),
        "p": Decimal("1.50"),
        "tags": {"red", "blue"},
    }]}
    response = client.post('/api/sql/execute', json={"query": "SELECT * FROM shifts"})
    assert response.status_code == 200
    assert response.get_json()["rows"] == [{
        "t": "9:30:00", "d": "2024-03-05", "dt": "2024-03-05T14:00:01", "p": "1.50", "tags": ["blue", "red"],
    }]


def test_table_rows_with_time_column(client, fake_client):
    fake_client.table_rows['shifts'] = [{"id": 1, "starts_at": timedelta(hours=8), "day": date(2024, 3, 5)}]
    response = client.get('/api/tables/shifts/rows')
    assert response.status_code == 200
    assert response.get_json()["rows"] == [{"id": 1, "starts_at": "8:00:00", "day": "2024-03-05"}]


def test_schema_of_hyphenated_table(client, fake_client):
    fake_client.schemas['order-items'] = [ColumnSchema('id', 'int', is_nullable=False, is_primary_key=True)]
    response = client.get('/api/schema/order-items')
    assert response.status_code == 200
    assert response.get_json()["table_name"] == 'order-items'


def test_rows_of_table_starting_with_digit(client, fake_client):
    fake_client.table_rows['2024_sales'] = [{"id": 1}]
    response = client.get('/api/tables/2024_sales/rows')
    assert response.status_code == 200
    assert response.get_json()["rows"] == [{"id": 1}]


def test_lookalike_table_is_not_substituted(client, fake_client):
    fake_client.table_rows['order_items'] = [{"id": 1}]
    assert client.get('/api/tables/order-items/rows').status_code == 404


def test_delete_rows_keeps_existing_names(client, fake_client):
    response = client.delete('/api/tables/order-items/rows', json={
        "where": [{"column": "unit-price", "operator": ">", "value": 10}],
    })
    assert response.status_code == 200
    sql, params, _ = fake_client.statements[-1]
    assert sql == "DELETE FROM `order-items` WHERE `unit-price` > %s;"
    assert params == [10]


@pytest.mark.parametrize("path", ['/api/sql/execute', '/api/sql/export'])
def test_sql_routes_require_json_object(client, fake_client, path):
    response = client.post(path, json=["SELECT 1"])
    assert response.status_code == 400
    assert fake_client.queries == []
