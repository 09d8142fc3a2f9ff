from __future__ import annotations

import pytest

from conftest import RecordingConnection, SQLiteMsqlConnection
from dbtable import Msql2Backend, MsqlBackend, Table, record_sql
from dbtable.errors import TypeDefinitionError, UnsupportedTypeError

COLUMNS = "NAME,BALANCE,LASTPAID,ACCTYPE"


def test_statements_are_bare(msql_backend: MsqlBackend, account_fields: list[str]):
    table = Table("accounts", account_fields).bind(msql_backend)
    with record_sql() as sqls:
        table.create()
        table.insert([("a", 10)])
        table.update("balance", 5, "name", "a")
        table.delete("name", "a")
        table.drop()
    assert sqls == [
        "CREATE TABLE accounts (NAME char(20) not null primary key,BALANCE real not null,"
        "LASTPAID real,ACCTYPE char(2))",
        f"INSERT INTO accounts ({COLUMNS}) VALUES ('a',10,NULL,NULL)",
        "UPDATE accounts SET BALANCE=5 WHERE NAME='a'",
        "DELETE FROM accounts WHERE NAME='a'",
        "DROP TABLE accounts",
    ]


def test_or_group_leads_without_brackets(msql_accounts: Table):
    with record_sql() as sqls:
        msql_accounts.select("name", "a", "balance", [10, 20])
    assert sqls == [f"SELECT {COLUMNS} FROM accounts WHERE BALANCE=10 OR BALANCE=20 AND NAME='a'"]


def test_null_compares_with_equals(msql_accounts: Table):
    with record_sql() as sqls:
        msql_accounts.select("last_paid", None, fields=["name"])
    assert sqls == ["SELECT NAME FROM accounts WHERE LASTPAID=NULL"]


def test_select_and_select_max(msql_accounts: Table):
    msql_accounts.insert([("a", 10, None, "ch"), ("b", 30, 2.5, "sv"), ("c", 20, None, "ch")])

    rows = msql_accounts.select("account_type", "ch", fields=["name", "balance"])
    assert sorted(rows, key=lambda row: row["name"]) == [
        {"name": "a", "balance": 10.0},
        {"name": "c", "balance": 20.0},
    ]

    with record_sql() as sqls:
        top = msql_accounts.select_max("balance")
    assert sqls == [f"SELECT {COLUMNS} FROM accounts ORDER BY BALANCE DESC"]
    assert top == {"name": "b", "balance": 30.0, "last_paid": 2.5, "account_type": "sv"}


def test_clike_is_filtered_locally(msql_accounts: Table):
    msql_accounts.insert([("alpha", 1), ("Alpine", 2), ("beta", 1)])

    with record_sql() as sqls:
        rows = msql_accounts.clike("name", "AL%", fields=["name"])
    assert sqls == ["SELECT NAME FROM accounts"]
    assert sorted(row["name"] for row in rows) == ["Alpine", "alpha"]

    with record_sql() as sqls:
        rows = msql_accounts.clike("name", "%A", "balance", 1, fields=["balance"])
    assert sqls == ["SELECT BALANCE,NAME FROM accounts WHERE BALANCE=1"]
    assert rows == [{"balance": 1.0}, {"balance": 1.0}]

    assert msql_accounts.clike("name", "_lpi%", fields=["name"]) == [{"name": "Alpine"}]


def test_like_is_sent_to_the_server(msql_accounts: Table):
    with record_sql() as sqls:
        msql_accounts.like("name", "al%", "balance", 1, fields=["name"])
    assert sqls == ["SELECT NAME FROM accounts WHERE BALANCE=1 AND NAME LIKE 'al%'"]


def test_msql2_has_native_clike(account_fields: list[str]):
    connection = RecordingConnection(rows=[("Alpha",)])
    table = Table("accounts", account_fields).bind(Msql2Backend(connection))

    rows = table.clike("name", "al%", fields=["name"])
    assert connection.statements == ["SELECT NAME FROM accounts WHERE NAME CLIKE 'al%'"]
    assert rows == [{"name": "Alpha"}]


def test_strings_are_quoted_by_the_driver(account_fields: list[str]):
    connection = RecordingConnection()
    table = Table("accounts", account_fields).bind(MsqlBackend(connection))
    table.insert([("o'neil", 1)], fields=["name", "balance"])
    assert connection.statements == ["INSERT INTO accounts (NAME,BALANCE) VALUES ('o\\'neil',1)"]


def test_select_max_reads_only_the_first_row(account_fields: list[str]):
    connection = RecordingConnection(rows=[("b", 30, None, None), ("a", 10, None, None)])
    table = Table("accounts", account_fields).bind(MsqlBackend(connection))

    assert table.select_max("balance") == {"name": "b", "balance": 30.0, "last_paid": None, "account_type": None}
    (cursor,) = connection.cursors
    assert cursor.fetched == 1
    assert cursor.closed


def test_exists_asks_the_driver(account_fields: list[str]):
    connection = RecordingConnection(tables=["accounts"])
    backend = MsqlBackend(connection)
    assert Table("accounts", account_fields).bind(backend).exists() is True
    assert Table("other", account_fields).bind(backend).exists() is False
    assert connection.statements == []


def test_type_sets_differ_between_versions(msql_backend: MsqlBackend, msql2_backend: Msql2Backend):
    with pytest.raises(UnsupportedTypeError):
        Table("notes", ["BODY", "body", "text:200"]).bind(msql_backend)

    notes = Table("notes", ["ID", "id", "uint:NK", "BODY", "body", "text:200"]).bind(msql2_backend)
    with record_sql() as sqls:
        notes.create()
    assert sqls == ["CREATE TABLE notes (ID uint not null primary key,BODY text(200))"]

    with pytest.raises(ValueError):
        notes.field("id").encode(-1)
    assert notes.field("id").encode("7") == "7"

    with pytest.raises(TypeDefinitionError):
        Table("bad", ["BODY", "body", "text"]).bind(msql2_backend)


def test_factory_connection_is_closed_with_the_backend(account_fields: list[str]):
    opened: list[SQLiteMsqlConnection] = []

    def connect() -> SQLiteMsqlConnection:
        connection = SQLiteMsqlConnection()
        opened.append(connection)
        return connection

    with MsqlBackend(connect) as backend:
        Table("accounts", account_fields).bind(backend).create()
    (connection,) = opened
    assert connection.closed
