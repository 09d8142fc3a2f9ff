from __future__ import annotations

import sqlite3
from typing import Any, Iterator, Sequence

import pytest

from dbtable import Msql2Backend, MsqlBackend, SQLiteBackend, Table

ACCOUNT_FIELDS = [
    "NAME", "name", "char:20NK",
    "BALANCE", "balance", "real:N",
    "LASTPAID", "last_paid", "real",
    "ACCTYPE", "account_type", "char:2",
]


class SQLiteMsqlConnection:
    """mSQL-shaped driver connection backed by an in-memory sqlite database."""

    def __init__(self) -> None:
        self._conn = sqlite3.connect(":memory:")
        self.closed = False

    def execute(self, sql: str) -> None:
        self._conn.execute(sql)
        self._conn.commit()

    def query(self, sql: str) -> sqlite3.Cursor:
        return self._conn.execute(sql)

    def quote(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    def list_tables(self) -> list[str]:
        return [name for (name,) in self._conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")]

    def close(self) -> None:
        self._conn.close()
        self.closed = True


class ListCursor:
    def __init__(self, rows: Sequence[Sequence[Any]]) -> None:
        self._rows = list(rows)
        self.fetched = 0
        self.closed = False

    def fetchone(self) -> Sequence[Any] | None:
        if self.fetched >= len(self._rows):
            return None
        row = self._rows[self.fetched]
        self.fetched += 1
        return row

    def close(self) -> None:
        self.closed = True


class RecordingConnection:
    """Connection that only records statements and answers queries with canned rows."""

    def __init__(self, rows: Sequence[Sequence[Any]] = (), tables: Sequence[str] = ()) -> None:
        self.rows = list(rows)
        self.tables = list(tables)
        self.statements: list[str] = []
        self.cursors: list[ListCursor] = []
        self.closed = False

    def execute(self, sql: str) -> None:
        self.statements.append(sql)

    def query(self, sql: str) -> ListCursor:
        self.statements.append(sql)
        cursor = ListCursor(self.rows)
        self.cursors.append(cursor)
        return cursor

    def quote(self, value: str) -> str:
        return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"

    def list_tables(self) -> list[str]:
        return list(self.tables)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def account_fields() -> list[str]:
    return list(ACCOUNT_FIELDS)


@pytest.fixture
def sqlite_backend() -> Iterator[SQLiteBackend]:
    backend = SQLiteBackend(lambda: sqlite3.connect(":memory:"))
    yield backend
    backend.close()


@pytest.fixture
def accounts(sqlite_backend: SQLiteBackend) -> Table:
    table = Table("accounts", ACCOUNT_FIELDS)
    table.bind(sqlite_backend)
    table.create()
    return table


@pytest.fixture
def msql_backend() -> Iterator[MsqlBackend]:
    backend = MsqlBackend(SQLiteMsqlConnection)
    yield backend
    backend.close()


@pytest.fixture
def msql_accounts(msql_backend: MsqlBackend) -> Table:
    table = Table("accounts", ACCOUNT_FIELDS)
    table.bind(msql_backend)
    table.create()
    return table


@pytest.fixture
def msql2_backend() -> Iterator[Msql2Backend]:
    backend = Msql2Backend(SQLiteMsqlConnection)
    yield backend
    backend.close()
