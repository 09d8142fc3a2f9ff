from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Sequence

from pypika.terms import Criterion, Field

from .errors import FieldDefinitionError
from .types import TypeDescriptor

if TYPE_CHECKING:
    from .runtime.backends.protocols import BackendProtocol

FieldDefinitions = Sequence[str] | Sequence[tuple[str, str, str]]


@dataclass(slots=True, eq=False)
class FieldDescriptor:
    """A column: the name the backend stores, the name callers use, and its type."""

    storage_name: str
    local_name: str
    type: TypeDescriptor

    def clone(self) -> FieldDescriptor:
        return FieldDescriptor(self.storage_name, self.local_name, self.type.clone())

    def bind(self, backend: BackendProtocol) -> FieldDescriptor:
        self.type.bind(backend)
        return self

    def unbind(self) -> None:
        self.type.unbind()

    @property
    def column(self) -> Field:
        return Field(self.storage_name)

    def encode(self, value: Any) -> str:
        return self.type.encode(value)

    def decode(self, raw: Any) -> Any:
        return self.type.decode(raw)

    def schema_fragment(self) -> str:
        return self.type.schema_fragment()

    def criterion(self, value: Any) -> Criterion:
        return self.type.criterion(self.column, value)


def parse_field_list(definitions: FieldDefinitions) -> list[FieldDescriptor]:
    """Build field descriptors from ``(storage, local, type spec)`` triples.

    ``definitions`` is either a flat sequence of strings whose length is a
    multiple of three, or a sequence of 3-tuples.
    """
    items = list(definitions)
    if items and all(isinstance(item, (tuple, list)) for item in items):
        triples = []
        for item in items:
            if len(item) != 3:
                raise FieldDefinitionError(f"Invalid field definition {item!r}")
            triples.append(tuple(item))
    else:
        if len(items) % 3:
            raise FieldDefinitionError(f"Invalid field definition list ({len(items)} items)")
        triples = [tuple(items[i:i + 3]) for i in range(0, len(items), 3)]

    fields: list[FieldDescriptor] = []
    for storage_name, local_name, spec in triples:
        if not all(isinstance(part, str) for part in (storage_name, local_name, spec)):
            raise FieldDefinitionError(f"Field definition parts must be strings: {(storage_name, local_name, spec)!r}")
        fields.append(FieldDescriptor(storage_name, local_name, TypeDescriptor.parse(spec)))
    return fields


__all__ = ["FieldDefinitions", "FieldDescriptor", "parse_field_list"]
