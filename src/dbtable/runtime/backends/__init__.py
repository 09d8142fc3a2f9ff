from __future__ import annotations

from typing import Any, Iterable

from dbtable.errors import UnknownBackendKindError
from dbtable.types import TypeRegistry

from .base import BackendBase
from .msql import Msql2Backend, MsqlBackend
from .protocols import (
    BackendProtocol,
    Condition,
    ConnectionFactory,
    ConnectionProtocol,
    CursorProtocol,
    ResultRow,
)
from .result_mapper import map_all, map_range, map_row
from .sqlite import SQLiteBackend
from .where_compiler import MAX_CONDITION_TERMS, WhereCompiler

_BACKEND_REGISTRY: dict[str, type[BackendBase]] = {
    SQLiteBackend.kind: SQLiteBackend,
    MsqlBackend.kind: MsqlBackend,
    Msql2Backend.kind: Msql2Backend,
}


def register_backend(kind: str, backend_cls: type[BackendBase]) -> None:
    _BACKEND_REGISTRY[kind] = backend_cls


def get_backend_factory(kind: str) -> type[BackendBase]:
    if kind not in _BACKEND_REGISTRY:
        raise UnknownBackendKindError(f"Unsupported backend kind: {kind}")
    return _BACKEND_REGISTRY[kind]


def backend_kinds() -> tuple[str, ...]:
    return tuple(_BACKEND_REGISTRY)


def build_type_registry(kinds: Iterable[str] | None = None) -> TypeRegistry:
    """Create a registry holding the type behaviors of the given backend kinds."""
    registry = TypeRegistry()
    for kind in kinds if kinds is not None else _BACKEND_REGISTRY:
        get_backend_factory(kind).register_types(registry)
    return registry


def create_backend(
    kind: str,
    source: Any,
    *,
    registry: TypeRegistry | None = None,
    echo_sql: bool = False,
) -> BackendBase:
    if isinstance(source, BackendBase):
        return source
    backend_cls = get_backend_factory(kind)
    return backend_cls(source, registry=registry, echo_sql=echo_sql)


__all__ = [
    "BackendBase",
    "BackendProtocol",
    "Condition",
    "ConnectionFactory",
    "ConnectionProtocol",
    "CursorProtocol",
    "MAX_CONDITION_TERMS",
    "Msql2Backend",
    "MsqlBackend",
    "ResultRow",
    "SQLiteBackend",
    "WhereCompiler",
    "backend_kinds",
    "build_type_registry",
    "create_backend",
    "get_backend_factory",
    "map_all",
    "map_range",
    "map_row",
    "register_backend",
]
