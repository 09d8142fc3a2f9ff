from __future__ import annotations

import sqlite3
from typing import Callable, Mapping, Sequence

from pypika.dialects import SQLLiteQuery
from pypika.enums import Comparator
from pypika.terms import BasicCriterion, Criterion, Field, LiteralValue

from dbtable.fields import FieldDescriptor
from dbtable.types import TypeBehavior, TypeDescriptor, TypeRegistry

from .base import BackendBase
from .behaviors import IntBehavior, IsNullMixin, RealBehavior, SizedStringBehavior, TextBehavior

SQLiteConnectionFactory = Callable[[], sqlite3.Connection]

_GLOB_ESCAPES = {"*": "[*]", "?": "[?]", "[": "[[]"}


class SQLiteMatching(Comparator):
    glob = " GLOB "


def like_to_glob(pattern: str) -> str:
    """Rewrite a LIKE pattern as GLOB, which SQLite matches case-sensitively."""
    parts: list[str] = []
    for char in pattern:
        if char == "%":
            parts.append("*")
        elif char == "_":
            parts.append("?")
        else:
            parts.append(_GLOB_ESCAPES.get(char, char))
    return "".join(parts)


class SQLiteChar(IsNullMixin, SizedStringBehavior):
    pass


class SQLiteText(IsNullMixin, TextBehavior):
    pass


class SQLiteInt(IsNullMixin, IntBehavior):
    def schema_fragment(self, descriptor: TypeDescriptor) -> str:
        # "integer" so a single-column key becomes the rowid alias
        fragment = super().schema_fragment(descriptor)
        return "integer" + fragment[len(descriptor.name):]


class SQLiteReal(IsNullMixin, RealBehavior):
    def encode_infinity(self, descriptor: TypeDescriptor, positive: bool) -> str:
        # an out-of-range literal is the only spelling SQLite reads as infinity
        return "9e999" if positive else "-9e999"


class SQLiteBackend(BackendBase):
    """Standard-SQL backend over the stdlib ``sqlite3`` driver.

    The OR group of a multi-valued condition is parenthesized since SQLite
    binds AND tighter than OR. ``like`` goes through GLOB to stay
    case-sensitive; ``clike`` is SQLite's own LIKE.
    """

    kind = "sqlite"
    quote_char = '"'
    statement_terminator = ";"
    parenthesize_multiple = True
    native_clike = True
    query_cls = SQLLiteQuery

    def __init__(
        self,
        source: sqlite3.Connection | SQLiteConnectionFactory,
        *,
        registry: TypeRegistry | None = None,
        echo_sql: bool = False,
    ) -> None:
        super().__init__(source, registry=registry, echo_sql=echo_sql)

    @classmethod
    def type_behaviors(cls) -> Mapping[str, TypeBehavior]:
        return {
            "char": SQLiteChar(),
            "text": SQLiteText(),
            "int": SQLiteInt(),
            "real": SQLiteReal(),
        }

    def _is_connection(self, candidate: object) -> bool:
        return isinstance(candidate, sqlite3.Connection)

    def quote(self, value: str) -> str:
        return "'" + str(value).replace("'", "''") + "'"

    def list_tables(self) -> Sequence[str]:
        query = self.query_cls.from_(self.table_cls("sqlite_master")).select(Field("name")).where(Field("type") == "table")
        cursor = self.execute_cursor(self._statement(self._render(query)))
        try:
            return [name for (name,) in cursor.fetchall()]
        finally:
            cursor.close()

    def _execute_void(self, connection: sqlite3.Connection, sql: str) -> None:
        cursor = connection.execute(sql)
        try:
            connection.commit()
        finally:
            cursor.close()

    def _execute_cursor(self, connection: sqlite3.Connection, sql: str) -> sqlite3.Cursor:
        return connection.execute(sql)

    def _like_criterion(self, field: FieldDescriptor, pattern: str) -> Criterion:
        return BasicCriterion(SQLiteMatching.glob, field.column, LiteralValue(self.quote(like_to_glob(pattern))))

    def _clike_criterion(self, field: FieldDescriptor, pattern: str) -> Criterion:
        return field.column.like(LiteralValue(self.quote(pattern)))


__all__ = ["SQLiteBackend", "SQLiteConnectionFactory", "like_to_glob"]
