from __future__ import annotations

import sqlite3

import pytest

from dbtable import SQLiteBackend, Table, record_sql
from dbtable.runtime.sql_recorder import SQL_DEBUG_ENV, push_sql


def test_recorders_nest_and_restore():
    with record_sql() as outer:
        push_sql("SELECT 1;", echo=False)
        with record_sql() as inner:
            push_sql("SELECT 2;", echo=False)
        push_sql("SELECT 3;", echo=False)
    push_sql("SELECT 4;", echo=False)

    assert outer == ["SELECT 1;", "SELECT 3;"]
    assert inner == ["SELECT 2;"]


def test_sql_debug_env_echoes_to_stderr(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]):
    monkeypatch.delenv(SQL_DEBUG_ENV, raising=False)
    push_sql("SELECT quiet;", echo=False)
    assert capsys.readouterr().err == ""

    monkeypatch.setenv(SQL_DEBUG_ENV, "1")
    push_sql("SELECT loud;", echo=False)
    assert capsys.readouterr().err == "[dbtable] SQL: SELECT loud;\n"


def test_backend_echo(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], account_fields: list[str]):
    monkeypatch.delenv(SQL_DEBUG_ENV, raising=False)
    backend = SQLiteBackend(sqlite3.connect(":memory:"), echo_sql=True)
    table = Table("accounts", account_fields).bind(backend)

    with record_sql() as sqls:
        table.create()
    err = capsys.readouterr().err
    assert err == f"[dbtable] SQL: {sqls[0]}\n"
    assert sqls[0].startswith("CREATE TABLE \"accounts\"")
    backend.close()
