from __future__ import annotations

import logging
import math
from typing import Any

from pypika.terms import Criterion, Field

from dbtable.errors import TypeDefinitionError
from dbtable.types import NULL_LITERAL, TypeBehavior, TypeDescriptor

logger = logging.getLogger(__name__)


class SizedStringBehavior(TypeBehavior):
    """Quoted string column whose declaration must carry a size."""

    def pre_bind(self, descriptor: TypeDescriptor) -> None:
        if descriptor.size is None:
            raise TypeDefinitionError(f"'{descriptor.name}' type requires a size")

    def encode(self, descriptor: TypeDescriptor, value: Any) -> str:
        if value is None:
            return NULL_LITERAL
        text = str(value)
        if descriptor.size is not None and len(text) > descriptor.size:
            logger.warning(
                "String longer than field (%d > %d) for %s column",
                len(text),
                descriptor.size,
                descriptor.name,
            )
        return descriptor.backend.quote(text)

    def decode(self, descriptor: TypeDescriptor, raw: Any) -> Any:
        return None if raw is None else str(raw)


class TextBehavior(SizedStringBehavior):
    def pre_bind(self, descriptor: TypeDescriptor) -> None:
        return None


class IntBehavior(TypeBehavior):
    def encode(self, descriptor: TypeDescriptor, value: Any) -> str:
        if value is None:
            return NULL_LITERAL
        if isinstance(value, str):
            value = int(value) if value.strip() else 0
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError(f"Value {value!r} is not an integer")
            value = int(value)
        return str(int(value))

    def decode(self, descriptor: TypeDescriptor, raw: Any) -> Any:
        return None if raw is None else int(raw)


class UnsignedIntBehavior(IntBehavior):
    def encode(self, descriptor: TypeDescriptor, value: Any) -> str:
        encoded = super().encode(descriptor, value)
        if encoded.startswith("-"):
            raise ValueError(f"Value {value!r} is negative for unsigned column")
        return encoded


class RealBehavior(TypeBehavior):
    def encode(self, descriptor: TypeDescriptor, value: Any) -> str:
        if value is None:
            return NULL_LITERAL
        if isinstance(value, str):
            value = float(value) if value.strip() else 0
        if isinstance(value, int):
            return str(int(value))
        number = float(value)
        if math.isnan(number):
            raise ValueError("NaN cannot be stored in a real column")
        if math.isinf(number):
            return self.encode_infinity(descriptor, number > 0)
        return repr(number)

    def encode_infinity(self, descriptor: TypeDescriptor, positive: bool) -> str:
        raise ValueError(f"{'Positive' if positive else 'Negative'} infinity cannot be stored in a {descriptor.name} column")

    def decode(self, descriptor: TypeDescriptor, raw: Any) -> Any:
        return None if raw is None else float(raw)


class IsNullMixin(TypeBehavior):
    """Compare against NULL with ``IS NULL`` instead of ``= NULL``."""

    def criterion(self, descriptor: TypeDescriptor, column: Field, value: Any) -> Criterion:
        if value is None:
            return column.isnull()
        return super().criterion(descriptor, column, value)


__all__ = [
    "IntBehavior",
    "IsNullMixin",
    "RealBehavior",
    "SizedStringBehavior",
    "TextBehavior",
    "UnsignedIntBehavior",
]
