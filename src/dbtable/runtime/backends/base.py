from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import fields as dataclass_fields, is_dataclass
from typing import Any, Callable, ClassVar, Iterator, Mapping, Sequence

from pypika import Query, Table
from pypika.queries import Column, QueryBuilder
from pypika.terms import Criterion, LiteralValue

from dbtable.fields import FieldDescriptor
from dbtable.runtime.sql_recorder import push_sql
from dbtable.types import TypeBehavior, TypeRegistry

from .protocols import BackendProtocol, Condition, CursorProtocol, InsertRow, ResultRow
from .result_mapper import map_all, map_range
from .where_compiler import WhereCompiler

logger = logging.getLogger(__name__)


def like_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a SQL LIKE pattern into an anchored, case-insensitive regex."""
    parts: list[str] = []
    for char in pattern:
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


class BackendBase(BackendProtocol, ABC):
    kind: ClassVar[str]
    quote_char: str | None = '"'
    statement_terminator: str = ";"
    parenthesize_multiple: bool = True
    native_clike: bool = True
    query_cls: type[Query] = Query
    table_cls: type[Table] = Table

    def __init__(
        self,
        source: Any,
        *,
        registry: TypeRegistry | None = None,
        echo_sql: bool = False,
    ) -> None:
        if callable(source) and not self._is_connection(source):
            self._factory: Callable[[], Any] | None = source
            self._connection: Any | None = None
        elif self._is_connection(source):
            self._factory = None
            self._connection = source
        else:
            raise TypeError(f"{type(self).__name__} source must be a connection or a callable returning one")
        if registry is None:
            registry = TypeRegistry()
            type(self).register_types(registry)
        self.registry = registry
        self._echo_sql = echo_sql
        self.where_compiler = WhereCompiler(
            quote_char=self.quote_char,
            parenthesize_multiple=self.parenthesize_multiple,
        )

    @classmethod
    @abstractmethod
    def type_behaviors(cls) -> Mapping[str, TypeBehavior]:
        ...

    @classmethod
    def register_types(cls, registry: TypeRegistry) -> None:
        for type_name, behavior in cls.type_behaviors().items():
            registry.register(cls.kind, type_name, behavior)

    # connection handling

    @abstractmethod
    def _is_connection(self, candidate: object) -> bool:
        ...

    def _prepare_connection(self, connection: Any) -> Any:
        return connection

    def _acquire_connection(self) -> Any:
        if self._connection is None:
            if self._factory is None:
                raise RuntimeError(f"{type(self).__name__} connection has been closed")
            connection = self._factory()
            if not self._is_connection(connection):
                raise TypeError(f"{type(self).__name__} factory returned {type(connection).__name__}")
            logger.debug("opened %s connection", self.kind)
            self._connection = self._prepare_connection(connection)
        return self._connection

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.debug("closed %s connection", self.kind)

    @contextmanager
    def connection_scope(self) -> Iterator[Any]:
        """Hold the connection for a multi-statement sequence.

        A connection this backend opened itself is closed when the sequence
        fails, and reopened on next use.
        """
        connection = self._acquire_connection()
        try:
            yield connection
        except Exception:
            if self._factory is not None:
                self.close()
            raise

    def __enter__(self) -> BackendBase:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # primitives each backend supplies

    @abstractmethod
    def quote(self, value: str) -> str:
        ...

    @abstractmethod
    def list_tables(self) -> Sequence[str]:
        ...

    @abstractmethod
    def _execute_void(self, connection: Any, sql: str) -> None:
        ...

    @abstractmethod
    def _execute_cursor(self, connection: Any, sql: str) -> CursorProtocol:
        ...

    def execute_void(self, sql: str) -> None:
        connection = self._acquire_connection()
        self._log_sql(sql)
        self._execute_void(connection, sql)

    def execute_cursor(self, sql: str) -> CursorProtocol:
        connection = self._acquire_connection()
        self._log_sql(sql)
        return self._execute_cursor(connection, sql)

    # table operations

    def exists(self, table: str) -> bool:
        return table in self.list_tables()

    def drop(self, table: str) -> None:
        self.execute_void(self._statement(self._render(self.query_cls.drop_table(self.table_cls(table)))))

    def create(self, table: str, fields: Sequence[FieldDescriptor]) -> None:
        columns = [Column(field.storage_name, field.schema_fragment()) for field in fields]
        query = self.query_cls.create_table(self.table_cls(table)).columns(*columns)
        self.execute_void(self._statement(self._render(query)))

    def insert(self, table: str, fields: Sequence[FieldDescriptor], rows: Sequence[InsertRow]) -> None:
        sql_table = self.table_cls(table)
        column_names = [field.storage_name for field in fields]
        for row in rows:
            values = self._row_values(fields, row)
            query = (
                self.query_cls.into(sql_table)
                .columns(*column_names)
                .insert(*(LiteralValue(field.encode(value)) for field, value in zip(fields, values)))
            )
            self.execute_void(self._statement(self._render(query)))

    def update(
        self,
        table: str,
        field: FieldDescriptor,
        value: object,
        conditions: Sequence[Condition],
    ) -> None:
        query = self.query_cls.update(self.table_cls(table)).set(field.column, LiteralValue(field.encode(value)))
        self.execute_void(self._statement(self._render(query), self.where_compiler.allwhere(conditions)))

    def delete(self, table: str, conditions: Sequence[Condition]) -> None:
        query = self.query_cls.from_(self.table_cls(table)).delete()
        self.execute_void(self._statement(self._render(query), self.where_compiler.allwhere(conditions)))

    def select(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        conditions: Sequence[Condition],
    ) -> list[ResultRow]:
        sql = self._statement(self._render_select(table, fields), self.where_compiler.allwhere(conditions))
        return map_all(fields, self.execute_cursor(sql))

    def select_max(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        max_field: FieldDescriptor,
        conditions: Sequence[Condition],
    ) -> ResultRow | None:
        order_by = f"ORDER BY {max_field.column.get_sql(quote_char=self.quote_char)} DESC"
        sql = self._statement(
            self._render_select(table, fields),
            self.where_compiler.allwhere(conditions),
            order_by,
        )
        rows = map_range(fields, [0], self.execute_cursor(sql))
        return rows[0] if rows else None

    def like(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        field: FieldDescriptor,
        pattern: str,
        conditions: Sequence[Condition],
    ) -> list[ResultRow]:
        return self._select_matching(table, fields, conditions, self._like_criterion(field, pattern))

    def clike(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        field: FieldDescriptor,
        pattern: str,
        conditions: Sequence[Condition],
    ) -> list[ResultRow]:
        if self.native_clike:
            return self._select_matching(table, fields, conditions, self._clike_criterion(field, pattern))
        return self._emulated_clike(table, fields, field, pattern, conditions)

    def _like_criterion(self, field: FieldDescriptor, pattern: str) -> Criterion:
        return field.column.like(LiteralValue(self.quote(pattern)))

    def _clike_criterion(self, field: FieldDescriptor, pattern: str) -> Criterion:
        raise NotImplementedError(f"{type(self).__name__} has no native case-insensitive LIKE")

    def _select_matching(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        conditions: Sequence[Condition],
        criterion: Criterion,
    ) -> list[ResultRow]:
        match_sql = criterion.get_sql(quote_char=self.quote_char)
        sql = self._statement(
            self._render_select(table, fields),
            self.where_compiler.somewhere(conditions) + match_sql,
        )
        return map_all(fields, self.execute_cursor(sql))

    def _emulated_clike(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        field: FieldDescriptor,
        pattern: str,
        conditions: Sequence[Condition],
    ) -> list[ResultRow]:
        logger.debug("emulating case-insensitive LIKE on %s.%s", table, field.storage_name)
        fetch_fields = list(fields)
        if not any(candidate is field for candidate in fetch_fields):
            fetch_fields.append(field)
        regex = like_to_regex(pattern)
        rows = self.select(table, fetch_fields, conditions)
        wanted = [candidate.local_name for candidate in fields]
        results: list[ResultRow] = []
        for row in rows:
            value = row.get(field.local_name)
            if value is None or regex.fullmatch(str(value)) is None:
                continue
            results.append({name: row[name] for name in wanted})
        return results

    # rendering helpers

    def _render(self, query: QueryBuilder) -> str:
        return query.get_sql(quote_char=self.quote_char)

    def _render_select(self, table: str, fields: Sequence[FieldDescriptor]) -> str:
        query = self.query_cls.from_(self.table_cls(table)).select(*(field.column for field in fields))
        return self._render(query)

    def _statement(self, *parts: str) -> str:
        return " ".join(part for part in parts if part) + self.statement_terminator

    def _row_values(self, fields: Sequence[FieldDescriptor], row: InsertRow) -> list[object]:
        if isinstance(row, Mapping):
            return [row.get(field.local_name) for field in fields]
        if is_dataclass(row) and not isinstance(row, type):
            names = {item.name for item in dataclass_fields(row)}
            return [getattr(row, field.local_name) if field.local_name in names else None for field in fields]
        if isinstance(row, Sequence) and not isinstance(row, (str, bytes)):
            values = list(row)
            if len(values) > len(fields):
                raise ValueError(f"Row has {len(values)} values for {len(fields)} fields")
            return values + [None] * (len(fields) - len(values))
        raise TypeError(f"Unsupported insert row type {type(row).__name__}")

    def _log_sql(self, sql: str) -> None:
        push_sql(sql, echo=self._echo_sql)


__all__ = ["BackendBase", "like_to_regex"]
