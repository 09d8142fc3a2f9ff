from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Callable, Mapping, Protocol, Sequence, runtime_checkable

from dbtable.fields import FieldDescriptor
from dbtable.types import TypeRegistry

Condition = tuple[FieldDescriptor, object]
ResultRow = dict[str, Any]
InsertRow = Sequence[object] | Mapping[str, object] | object


@runtime_checkable
class CursorProtocol(Protocol):
    def fetchone(self) -> Sequence[Any] | None: ...

    def close(self) -> None: ...


@runtime_checkable
class ConnectionProtocol(Protocol):
    """The opaque server connection an adapter talks through."""

    def execute(self, sql: str) -> None: ...

    def query(self, sql: str) -> CursorProtocol: ...

    def quote(self, value: str) -> str: ...

    def list_tables(self) -> Sequence[str]: ...

    def close(self) -> None: ...


ConnectionFactory = Callable[[], ConnectionProtocol]


@runtime_checkable
class BackendProtocol(Protocol):
    kind: str
    registry: TypeRegistry
    quote_char: str | None

    def quote(self, value: str) -> str: ...

    def list_tables(self) -> Sequence[str]: ...

    def execute_void(self, sql: str) -> None: ...

    def execute_cursor(self, sql: str) -> CursorProtocol: ...

    def exists(self, table: str) -> bool: ...

    def create(self, table: str, fields: Sequence[FieldDescriptor]) -> None: ...

    def drop(self, table: str) -> None: ...

    def insert(self, table: str, fields: Sequence[FieldDescriptor], rows: Sequence[InsertRow]) -> None: ...

    def update(
        self,
        table: str,
        field: FieldDescriptor,
        value: object,
        conditions: Sequence[Condition],
    ) -> None: ...

    def delete(self, table: str, conditions: Sequence[Condition]) -> None: ...

    def select(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        conditions: Sequence[Condition],
    ) -> list[ResultRow]: ...

    def select_max(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        max_field: FieldDescriptor,
        conditions: Sequence[Condition],
    ) -> ResultRow | None: ...

    def like(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        field: FieldDescriptor,
        pattern: str,
        conditions: Sequence[Condition],
    ) -> list[ResultRow]: ...

    def clike(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        field: FieldDescriptor,
        pattern: str,
        conditions: Sequence[Condition],
    ) -> list[ResultRow]: ...

    def connection_scope(self) -> AbstractContextManager[Any]: ...

    def close(self) -> None: ...
