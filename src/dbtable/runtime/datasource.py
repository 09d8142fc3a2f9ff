from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from dbtable.errors import UnknownDatabaseError
from dbtable.types import TypeRegistry

from .backends import BackendBase, create_backend

_SQLITE_PREFIX = "sqlite://"


def open_sqlite_connection(url: str | None) -> sqlite3.Connection:
    if url is None or url in {"sqlite://", "sqlite://:memory:", "sqlite:///:memory:"}:
        return sqlite3.connect(":memory:")
    if not url.startswith(_SQLITE_PREFIX):
        raise ValueError(f"Unsupported sqlite url: {url}")
    path = url[len(_SQLITE_PREFIX):]
    if path.startswith("/"):
        # sqlite:///relative.db and sqlite:////abs/path.db
        path = path[1:]
    if not path:
        raise ValueError(f"Missing database path in sqlite url: {url}")
    return sqlite3.connect(path)


@dataclass(slots=True, frozen=True)
class DataSourceConfig:
    provider: str
    url: str | None = None
    connector: Callable[[], Any] | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> DataSourceConfig:
        if "provider" not in data:
            raise KeyError("Datasource definition is missing 'provider'")
        return cls(provider=data["provider"], url=data.get("url"), connector=data.get("connector"))

    def connection_factory(self) -> Callable[[], Any]:
        if self.connector is not None:
            return self.connector
        if self.provider == "sqlite":
            url = self.url
            return lambda: open_sqlite_connection(url)
        raise ValueError(f"Datasource for provider '{self.provider}' needs a connector")


class DatabaseCatalog:
    """Symbolic database names and where each one lives.

    ```python
    catalog = DatabaseCatalog.from_mapping({"test": {"provider": "sqlite", "url": "sqlite://"}})
    backend = catalog.open("test")
    ```
    """

    def __init__(self) -> None:
        self._configs: dict[str, DataSourceConfig] = {}

    @classmethod
    def from_mapping(cls, definitions: Mapping[str, Mapping[str, Any] | DataSourceConfig]) -> DatabaseCatalog:
        catalog = cls()
        for name, definition in definitions.items():
            config = definition if isinstance(definition, DataSourceConfig) else DataSourceConfig.from_mapping(definition)
            catalog.register(name, config)
        return catalog

    def register(self, name: str, config: DataSourceConfig) -> None:
        self._configs[name] = config

    def lookup(self, name: str) -> DataSourceConfig:
        try:
            return self._configs[name]
        except KeyError:
            raise UnknownDatabaseError(f"Unknown database '{name}'") from None

    def names(self) -> tuple[str, ...]:
        return tuple(self._configs)

    def open(
        self,
        name: str,
        *,
        registry: TypeRegistry | None = None,
        echo_sql: bool = False,
    ) -> BackendBase:
        """Build the backend for ``name``; the connection itself opens on first use."""
        config = self.lookup(name)
        return create_backend(config.provider, config.connection_factory(), registry=registry, echo_sql=echo_sql)


__all__ = ["DataSourceConfig", "DatabaseCatalog", "open_sqlite_connection"]
