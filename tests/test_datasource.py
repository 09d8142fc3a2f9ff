from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from conftest import SQLiteMsqlConnection
from dbtable import (
    DatabaseCatalog,
    DataSourceConfig,
    MsqlBackend,
    SQLiteBackend,
    Table,
    build_type_registry,
    create_backend,
    open_sqlite_connection,
)
from dbtable.errors import UnknownBackendKindError, UnknownDatabaseError


def test_open_sqlite_connection_urls(tmp_path: Path):
    for url in (None, "sqlite://", "sqlite:///:memory:"):
        connection = open_sqlite_connection(url)
        assert isinstance(connection, sqlite3.Connection)
        connection.close()

    db_path = tmp_path / "ledger.db"
    connection = open_sqlite_connection(f"sqlite:///{db_path.as_posix()}")
    connection.execute("CREATE TABLE t (x)")
    connection.close()
    assert db_path.exists()

    with pytest.raises(ValueError):
        open_sqlite_connection("postgres://localhost/db")


def test_catalog_opens_backends_by_name(tmp_path: Path, account_fields: list[str]):
    db_path = tmp_path / "ledger.db"
    catalog = DatabaseCatalog.from_mapping(
        {
            "ledger": {"provider": "sqlite", "url": f"sqlite:///{db_path.as_posix()}"},
            "legacy": DataSourceConfig(provider="msql", connector=SQLiteMsqlConnection),
        }
    )
    assert catalog.names() == ("ledger", "legacy")

    with catalog.open("ledger") as backend:
        assert isinstance(backend, SQLiteBackend)
        table = Table("accounts", account_fields).bind(backend)
        table.create()
        table.insert([("a", 1)])

    with catalog.open("ledger") as backend:
        table = Table("accounts", account_fields).bind(backend)
        assert table.select(fields=["name"]) == [{"name": "a"}]

    legacy = catalog.open("legacy")
    assert isinstance(legacy, MsqlBackend)
    assert legacy.list_tables() == []
    legacy.close()


def test_unknown_database_name():
    catalog = DatabaseCatalog()
    with pytest.raises(UnknownDatabaseError) as excinfo:
        catalog.open("nowhere")
    assert "Unknown database 'nowhere'" in str(excinfo.value)
    assert isinstance(excinfo.value, LookupError)


def test_datasource_needs_a_way_to_connect():
    with pytest.raises(KeyError):
        DataSourceConfig.from_mapping({"url": "sqlite://"})
    with pytest.raises(ValueError):
        DataSourceConfig(provider="msql").connection_factory()


def test_catalog_shares_an_explicit_registry():
    registry = build_type_registry(["sqlite"])
    catalog = DatabaseCatalog()
    catalog.register("a", DataSourceConfig(provider="sqlite"))
    catalog.register("b", DataSourceConfig(provider="sqlite"))

    first = catalog.open("a", registry=registry)
    second = catalog.open("b", registry=registry)
    assert first.registry is second.registry is registry


def test_create_backend_dispatch():
    connection = sqlite3.connect(":memory:")
    backend = create_backend("sqlite", connection)
    assert isinstance(backend, SQLiteBackend)
    assert create_backend("sqlite", backend) is backend

    with pytest.raises(UnknownBackendKindError):
        create_backend("oracle", connection)
    backend.close()
