from __future__ import annotations

from typing import Any, Iterable, Sequence

from dbtable.fields import FieldDescriptor

from .protocols import CursorProtocol, ResultRow


def map_row(fields: Sequence[FieldDescriptor], raw: Sequence[Any]) -> ResultRow:
    return {field.local_name: field.decode(value) for field, value in zip(fields, raw)}


def map_all(fields: Sequence[FieldDescriptor], cursor: CursorProtocol) -> list[ResultRow]:
    results: list[ResultRow] = []
    try:
        while (raw := cursor.fetchone()) is not None:
            results.append(map_row(fields, raw))
    finally:
        cursor.close()
    return results


def map_range(
    fields: Sequence[FieldDescriptor],
    indices: Iterable[int],
    cursor: CursorProtocol,
) -> list[ResultRow]:
    """Decode only the rows at ``indices`` (zero-based, strictly increasing).

    Rows in between are fetched and dropped undecoded; nothing after the last
    selected position is fetched.
    """
    wanted = list(indices)
    previous = -1
    for index in wanted:
        if index <= previous:
            raise ValueError(f"Row indices must be strictly increasing and non-negative: {wanted!r}")
        previous = index

    results: list[ResultRow] = []
    try:
        position = 0
        for index in wanted:
            while position < index:
                if cursor.fetchone() is None:
                    return results
                position += 1
            raw = cursor.fetchone()
            if raw is None:
                return results
            results.append(map_row(fields, raw))
            position += 1
    finally:
        cursor.close()
    return results


__all__ = ["map_all", "map_range", "map_row"]
