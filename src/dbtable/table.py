from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from .errors import (
    AlreadyBoundError,
    FieldDefinitionError,
    MismatchedConditionsError,
    NoSuchFieldError,
    TableNotBoundError,
    UnnamedTableError,
)
from .fields import FieldDefinitions, FieldDescriptor, parse_field_list

if TYPE_CHECKING:
    from .runtime.backends.protocols import BackendProtocol, Condition, InsertRow, ResultRow

FieldSpec = str | FieldDescriptor


class Table:
    """A named, ordered list of fields that can be bound to one backend.

    ```python
    accounts = Table("accounts", [
        "NAME", "name", "char:20NK",
        "BALANCE", "balance", "real:N",
    ])
    accounts.bind(SQLiteBackend(sqlite3.connect(":memory:")))
    accounts.create()
    accounts.insert([{"name": "a", "balance": 10}, ("b", 20)])
    accounts.select("name", ["a", "b"])
    accounts.select_max("balance")
    ```

    A table built without a name is a reusable shape: ``clone`` it with a
    name for each concrete table and bind the clones.

    Conditions are passed flat, alternating a field (local name or
    ``FieldDescriptor``) and a match: a scalar for equality, or a
    list/tuple/set of values of which any may match. Only one field per
    call may carry several values.
    """

    def __init__(self, name: str | None, fields: FieldDefinitions | Sequence[FieldDescriptor]) -> None:
        self._name = name
        items = list(fields)
        if items and all(isinstance(item, FieldDescriptor) for item in items):
            self._fields: tuple[FieldDescriptor, ...] = tuple(items)  # type: ignore[arg-type]
        else:
            self._fields = tuple(parse_field_list(items))  # type: ignore[arg-type]
        if not self._fields:
            raise FieldDefinitionError(f"Table '{name}' needs at least one field")
        seen: set[str] = set()
        for field in self._fields:
            if field.local_name in seen:
                raise FieldDefinitionError(f"Duplicate local field name '{field.local_name}'")
            seen.add(field.local_name)
        self._backend: BackendProtocol | None = None

    def __repr__(self) -> str:
        state = "bound" if self.bound else "unbound"
        return f"<Table {self._name!r} {state} fields={[f.local_name for f in self._fields]}>"

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def fields(self) -> tuple[FieldDescriptor, ...]:
        return self._fields

    @property
    def bound(self) -> bool:
        return self._backend is not None

    @property
    def backend(self) -> BackendProtocol:
        return self._require_backend()

    def clone(self, name: str | None = None) -> Table:
        """Deep-copy the field list into a new unbound table, renamed if ``name`` is given."""
        return Table(name if name is not None else self._name, [field.clone() for field in self._fields])

    def bind(self, backend: BackendProtocol) -> Table:
        if self._backend is not None:
            if self._backend is backend:
                return self
            raise AlreadyBoundError(f"Table '{self._name}' is already bound to another backend")
        if self._name is None:
            raise UnnamedTableError("Cannot bind a table without a name; clone it with a name first")
        bound: list[FieldDescriptor] = []
        try:
            for field in self._fields:
                field.bind(backend)
                bound.append(field)
        except Exception:
            for field in bound:
                field.unbind()
            raise
        self._backend = backend
        return self

    def unbind(self) -> None:
        for field in self._fields:
            field.unbind()
        self._backend = None

    def field(self, local_name: str) -> FieldDescriptor:
        for field in self._fields:
            if field.local_name == local_name:
                return field
        raise NoSuchFieldError(f"No such field '{local_name}' in table '{self._name}'")

    def field_index(self, spec: FieldSpec) -> int | None:
        """Position of the field in ``fields``, or ``None`` when absent."""
        local_name = spec.local_name if isinstance(spec, FieldDescriptor) else spec
        for index, field in enumerate(self._fields):
            if field.local_name == local_name:
                return index
        return None

    # whole-table operations

    def exists(self) -> bool:
        return self._require_backend().exists(self._table_name())

    def create(self) -> None:
        self._require_backend().create(self._table_name(), self._fields)

    def drop(self) -> None:
        self._require_backend().drop(self._table_name())

    def recreate(self, rows: Sequence[InsertRow] = ()) -> None:
        """Drop the table if present, create it afresh and load ``rows``."""
        backend = self._require_backend()
        with backend.connection_scope():
            if self.exists():
                self.drop()
            self.create()
            self.insert(rows)

    # row operations

    def insert(self, rows: Sequence[InsertRow], fields: Sequence[FieldSpec] | None = None) -> None:
        backend = self._require_backend()
        target = self._resolve_fields(fields)
        backend.insert(self._table_name(), target, rows)

    def update(self, field: FieldSpec, value: object, *conditions: object) -> None:
        backend = self._require_backend()
        backend.update(self._table_name(), self._resolve(field), value, self._resolve_conditions(conditions))

    def delete(self, *conditions: object) -> None:
        backend = self._require_backend()
        backend.delete(self._table_name(), self._resolve_conditions(conditions))

    def select(self, *conditions: object, fields: Sequence[FieldSpec] | None = None) -> list[ResultRow]:
        backend = self._require_backend()
        return backend.select(self._table_name(), self._resolve_fields(fields), self._resolve_conditions(conditions))

    def select_max(self, field: FieldSpec, *conditions: object) -> ResultRow | None:
        """The row with the greatest ``field`` among rows matching the conditions."""
        backend = self._require_backend()
        return backend.select_max(
            self._table_name(),
            self._fields,
            self._resolve(field),
            self._resolve_conditions(conditions),
        )

    def like(
        self,
        field: FieldSpec,
        pattern: str,
        *conditions: object,
        fields: Sequence[FieldSpec] | None = None,
    ) -> list[ResultRow]:
        backend = self._require_backend()
        return backend.like(
            self._table_name(),
            self._resolve_fields(fields),
            self._resolve(field),
            pattern,
            self._resolve_conditions(conditions),
        )

    def clike(
        self,
        field: FieldSpec,
        pattern: str,
        *conditions: object,
        fields: Sequence[FieldSpec] | None = None,
    ) -> list[ResultRow]:
        """Case-insensitive ``like``."""
        backend = self._require_backend()
        return backend.clike(
            self._table_name(),
            self._resolve_fields(fields),
            self._resolve(field),
            pattern,
            self._resolve_conditions(conditions),
        )

    # resolution helpers

    def _require_backend(self) -> BackendProtocol:
        if self._backend is None:
            raise TableNotBoundError(f"Table '{self._name}' is not bound to a backend")
        return self._backend

    def _table_name(self) -> str:
        if self._name is None:
            raise UnnamedTableError("Table has no name; clone it with a name first")
        return self._name

    def _resolve(self, spec: FieldSpec) -> FieldDescriptor:
        if isinstance(spec, FieldDescriptor):
            return spec
        if isinstance(spec, str):
            return self.field(spec)
        raise TypeError(f"Field specifier must be a local name or FieldDescriptor, not {type(spec).__name__}")

    def _resolve_fields(self, fields: Sequence[FieldSpec] | None) -> tuple[FieldDescriptor, ...]:
        if fields is None:
            return self._fields
        if isinstance(fields, (str, FieldDescriptor)):
            fields = [fields]
        resolved = tuple(self._resolve(spec) for spec in fields)
        if not resolved:
            raise FieldDefinitionError(f"Empty field list for table '{self._name}'")
        return resolved

    def _resolve_conditions(self, conditions: Sequence[object]) -> list[Condition]:
        if len(conditions) % 2:
            raise MismatchedConditionsError(f"Mismatched select conditions ({len(conditions)} arguments)")
        return [
            (self._resolve(conditions[i]), conditions[i + 1])  # type: ignore[arg-type]
            for i in range(0, len(conditions), 2)
        ]


__all__ = ["FieldSpec", "Table"]
