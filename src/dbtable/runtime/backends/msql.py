from __future__ import annotations

from typing import Mapping, Sequence

from pypika.enums import Comparator
from pypika.terms import BasicCriterion, Criterion, LiteralValue

from dbtable.fields import FieldDescriptor
from dbtable.types import TypeBehavior, TypeRegistry

from .base import BackendBase
from .behaviors import IntBehavior, RealBehavior, SizedStringBehavior, UnsignedIntBehavior
from .protocols import ConnectionFactory, ConnectionProtocol, CursorProtocol


class MsqlMatching(Comparator):
    clike = " CLIKE "


class MsqlBackend(BackendBase):
    """mSQL 1.x over an opaque driver connection.

    mSQL scans a WHERE clause left to right and accepts no brackets, so the
    OR group of a multi-valued condition is emitted bare ahead of the AND
    terms. Identifiers are not quoted and NULL compares with ``= NULL``.
    There is no case-insensitive LIKE; ``clike`` filters locally.
    """

    kind = "msql"
    quote_char = None
    statement_terminator = ""
    parenthesize_multiple = False
    native_clike = False

    def __init__(
        self,
        source: ConnectionProtocol | ConnectionFactory,
        *,
        registry: TypeRegistry | None = None,
        echo_sql: bool = False,
    ) -> None:
        super().__init__(source, registry=registry, echo_sql=echo_sql)

    @classmethod
    def type_behaviors(cls) -> Mapping[str, TypeBehavior]:
        return {
            "char": SizedStringBehavior(),
            "int": IntBehavior(),
            "real": RealBehavior(),
        }

    def _is_connection(self, candidate: object) -> bool:
        # a connection class passes the structural check too; it is a factory
        return isinstance(candidate, ConnectionProtocol) and not isinstance(candidate, type)

    def quote(self, value: str) -> str:
        return self._acquire_connection().quote(value)

    def list_tables(self) -> Sequence[str]:
        return list(self._acquire_connection().list_tables())

    def _execute_void(self, connection: ConnectionProtocol, sql: str) -> None:
        connection.execute(sql)

    def _execute_cursor(self, connection: ConnectionProtocol, sql: str) -> CursorProtocol:
        return connection.query(sql)


class Msql2Backend(MsqlBackend):
    """mSQL 2.x: same dialect, plus ``text``/``uint`` columns and a native CLIKE."""

    kind = "msql2"
    native_clike = True

    @classmethod
    def type_behaviors(cls) -> Mapping[str, TypeBehavior]:
        return {
            **super().type_behaviors(),
            "text": SizedStringBehavior(),
            "uint": UnsignedIntBehavior(),
        }

    def _clike_criterion(self, field: FieldDescriptor, pattern: str) -> Criterion:
        return BasicCriterion(MsqlMatching.clike, field.column, LiteralValue(self.quote(pattern)))


__all__ = ["Msql2Backend", "MsqlBackend", "MsqlMatching"]
