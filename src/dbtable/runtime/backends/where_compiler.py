from __future__ import annotations

from collections.abc import Set
from typing import Any, Sequence

from dbtable.errors import EmptyMultipleError, TooManyFieldsError, TooManyMultiplesError
from dbtable.fields import FieldDescriptor

from .protocols import Condition

MAX_CONDITION_TERMS = 74


def is_multiple(match: object) -> bool:
    return isinstance(match, (list, tuple, Set))


class WhereCompiler:
    """Compile ``(field, match)`` pairs into a single boolean expression.

    Every pair is an equality and pairs are ANDed together. One pair at most
    may carry a collection of values; it expands into an OR group placed
    before everything else. Dialects
    that scan the clause left to right without precedence (mSQL) get the OR
    group as bare text; ``parenthesize_multiple`` wraps it for engines with
    standard AND-over-OR precedence.
    """

    def __init__(
        self,
        *,
        quote_char: str | None = '"',
        parenthesize_multiple: bool = True,
        max_terms: int = MAX_CONDITION_TERMS,
    ) -> None:
        self.quote_char = quote_char
        self.parenthesize_multiple = parenthesize_multiple
        self.max_terms = max_terms

    def compile(self, conditions: Sequence[Condition]) -> str:
        singles: list[tuple[FieldDescriptor, Any]] = []
        multiple: tuple[FieldDescriptor, list[Any]] | None = None
        for field, match in conditions:
            if is_multiple(match):
                if multiple is not None:
                    raise TooManyMultiplesError("Too many multiples in select conditions")
                values = list(match)  # type: ignore[call-overload]
                if not values:
                    raise EmptyMultipleError(f"Empty value set for field '{field.local_name}'")
                multiple = (field, values)
            else:
                singles.append((field, match))

        term_count = len(singles) + (len(multiple[1]) if multiple is not None else 0)
        if term_count > self.max_terms:
            raise TooManyFieldsError(
                f"Too many fields in select condition ({term_count} > {self.max_terms})"
            )

        parts: list[str] = []
        if multiple is not None:
            field, values = multiple
            group = " OR ".join(self._equal(field, value) for value in values)
            if self.parenthesize_multiple and len(values) > 1:
                group = f"({group})"
            parts.append(group)
        parts.extend(self._equal(field, value) for field, value in singles)
        return " AND ".join(parts)

    def allwhere(self, conditions: Sequence[Condition]) -> str:
        text = self.compile(conditions)
        return f"WHERE {text}" if text else ""

    def somewhere(self, conditions: Sequence[Condition]) -> str:
        text = self.compile(conditions)
        return f"WHERE {text} AND " if text else "WHERE "

    def _equal(self, field: FieldDescriptor, value: Any) -> str:
        return field.criterion(value).get_sql(quote_char=self.quote_char)


__all__ = ["MAX_CONDITION_TERMS", "WhereCompiler", "is_multiple"]
