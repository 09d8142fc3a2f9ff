from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping

from pypika.enums import Equality
from pypika.terms import BasicCriterion, Criterion, Field, LiteralValue

from .errors import (
    AlreadyBoundError,
    DuplicateRegistrationError,
    TypeNotBoundError,
    TypeSpecError,
    UnknownBackendKindError,
    UnsupportedTypeError,
)

if TYPE_CHECKING:
    from .runtime.backends.protocols import BackendProtocol

NULL_LITERAL = "NULL"

_TYPE_SPEC = re.compile(r"(?P<name>[^:]+)(?::(?P<size>\d*)(?P<not_null>N?)(?P<key>K?))?")

BEHAVIOR_NAMES = frozenset({"encode", "decode", "schema_fragment", "criterion", "pre_bind", "post_bind"})


class TypeBehavior:
    """Backend-specific handling of one abstract type.

    Every hook receives the bound ``TypeDescriptor`` first, so a single
    behavior instance serves all fields of that type on a backend kind.
    The defaults pass values through untouched and build a generic column
    definition from the descriptor attributes.
    """

    def encode(self, descriptor: TypeDescriptor, value: Any) -> str:
        if value is None:
            return NULL_LITERAL
        return str(value)

    def decode(self, descriptor: TypeDescriptor, raw: Any) -> Any:
        return raw

    def schema_fragment(self, descriptor: TypeDescriptor) -> str:
        definition = descriptor.name
        if descriptor.size is not None:
            definition += f"({descriptor.size})"
        if descriptor.not_null:
            definition += " not null"
        if descriptor.key:
            definition += " primary key"
        return definition

    def criterion(self, descriptor: TypeDescriptor, column: Field, value: Any) -> Criterion:
        return BasicCriterion(Equality.eq, column, LiteralValue(self.encode(descriptor, value)))

    def pre_bind(self, descriptor: TypeDescriptor) -> None:
        return None

    def post_bind(self, descriptor: TypeDescriptor) -> None:
        return None


class MappedTypeBehavior(TypeBehavior):
    """Behavior assembled from loose callables, any of them optional."""

    def __init__(self, callables: Mapping[str, Callable[..., Any]]) -> None:
        unknown = set(callables) - BEHAVIOR_NAMES
        if unknown:
            raise TypeError(f"Unknown type behaviors: {', '.join(sorted(unknown))}")
        self._callables = dict(callables)

    def encode(self, descriptor: TypeDescriptor, value: Any) -> str:
        if value is None:
            return NULL_LITERAL
        func = self._callables.get("encode")
        return func(descriptor, value) if func is not None else super().encode(descriptor, value)

    def decode(self, descriptor: TypeDescriptor, raw: Any) -> Any:
        func = self._callables.get("decode")
        return func(descriptor, raw) if func is not None else super().decode(descriptor, raw)

    def schema_fragment(self, descriptor: TypeDescriptor) -> str:
        func = self._callables.get("schema_fragment")
        return func(descriptor) if func is not None else super().schema_fragment(descriptor)

    def criterion(self, descriptor: TypeDescriptor, column: Field, value: Any) -> Criterion:
        func = self._callables.get("criterion")
        return func(descriptor, column, value) if func is not None else super().criterion(descriptor, column, value)

    def pre_bind(self, descriptor: TypeDescriptor) -> None:
        func = self._callables.get("pre_bind")
        if func is not None:
            func(descriptor)

    def post_bind(self, descriptor: TypeDescriptor) -> None:
        func = self._callables.get("post_bind")
        if func is not None:
            func(descriptor)


class TypeRegistry:
    """Maps ``(backend kind, type name)`` to the behavior used once bound.

    Backends populate a registry once when they are set up; after that it is
    only read. A registry is handed to each backend explicitly.
    """

    def __init__(self) -> None:
        self._behaviors: dict[str, dict[str, TypeBehavior]] = {}

    def register(
        self,
        kind: str,
        type_name: str,
        behavior: TypeBehavior | Mapping[str, Callable[..., Any]] | None = None,
    ) -> TypeBehavior:
        by_type = self._behaviors.setdefault(kind, {})
        if type_name in by_type:
            raise DuplicateRegistrationError(f"Type '{type_name}' already registered for '{kind}' backends")
        if behavior is None:
            resolved = TypeBehavior()
        elif isinstance(behavior, TypeBehavior):
            resolved = behavior
        else:
            resolved = MappedTypeBehavior(behavior)
        by_type[type_name] = resolved
        return resolved

    def lookup(self, kind: str, type_name: str) -> TypeBehavior:
        by_type = self._behaviors.get(kind)
        if by_type is None:
            raise UnknownBackendKindError(f"Unknown backend kind '{kind}'")
        behavior = by_type.get(type_name)
        if behavior is None:
            raise UnsupportedTypeError(f"Type '{type_name}' is not supported by '{kind}' backends")
        return behavior

    def kinds(self) -> tuple[str, ...]:
        return tuple(self._behaviors)

    def type_names(self, kind: str) -> tuple[str, ...]:
        return tuple(self._behaviors.get(kind, {}))

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, tuple) or len(item) != 2:
            return False
        kind, type_name = item
        return type_name in self._behaviors.get(kind, {})


@dataclass(slots=True, eq=False)
class TypeDescriptor:
    name: str
    size: int | None = None
    not_null: bool = False
    key: bool = False
    _behavior: TypeBehavior | None = field(default=None, repr=False)
    _backend: BackendProtocol | None = field(default=None, repr=False)

    @classmethod
    def parse(cls, spec: str) -> TypeDescriptor:
        """Parse ``name[:[digits][N][K]]`` into an unbound descriptor."""
        match = _TYPE_SPEC.fullmatch(spec)
        if match is None:
            raise TypeSpecError(f"Invalid type specification '{spec}'")
        size = match.group("size")
        return cls(
            name=match.group("name"),
            size=int(size) if size else None,
            not_null=bool(match.group("not_null")),
            key=bool(match.group("key")),
        )

    @property
    def bound(self) -> bool:
        return self._behavior is not None

    @property
    def backend(self) -> BackendProtocol:
        if self._backend is None:
            raise TypeNotBoundError(f"Type '{self.name}' is not bound to a backend")
        return self._backend

    def clone(self) -> TypeDescriptor:
        return TypeDescriptor(name=self.name, size=self.size, not_null=self.not_null, key=self.key)

    def bind(self, backend: BackendProtocol) -> TypeDescriptor:
        if self.bound:
            raise AlreadyBoundError(f"Type '{self.name}' is already bound")
        behavior = backend.registry.lookup(backend.kind, self.name)
        behavior.pre_bind(self)
        self._behavior = behavior
        self._backend = backend
        try:
            behavior.post_bind(self)
        except Exception:
            self.unbind()
            raise
        return self

    def unbind(self) -> None:
        self._behavior = None
        self._backend = None

    def encode(self, value: Any) -> str:
        return self._require_behavior().encode(self, value)

    def decode(self, raw: Any) -> Any:
        return self._require_behavior().decode(self, raw)

    def schema_fragment(self) -> str:
        return self._require_behavior().schema_fragment(self)

    def criterion(self, column: Field, value: Any) -> Criterion:
        return self._require_behavior().criterion(self, column, value)

    def _require_behavior(self) -> TypeBehavior:
        if self._behavior is None:
            raise TypeNotBoundError(f"Type '{self.name}' is not bound to a backend")
        return self._behavior


__all__ = [
    "NULL_LITERAL",
    "MappedTypeBehavior",
    "TypeBehavior",
    "TypeDescriptor",
    "TypeRegistry",
]
