from __future__ import annotations

import contextvars
import os
import sys
from contextlib import contextmanager
from typing import Iterator

SQL_DEBUG_ENV = "SQL_DEBUG"

_current_recorder: contextvars.ContextVar[tuple[list[str], bool] | None] = (
    contextvars.ContextVar("_current_recorder", default=None)
)


def record_sql(echo: bool = False):
    """
    Record the SQL executed in the current context.
    example:
    ```python
    with record_sql() as sqls:
        accounts.select("name", "alice")
    print(sqls)  # ['SELECT "NAME","BALANCE" FROM "accounts" WHERE "NAME"=\'alice\';']
    ```
    """

    @contextmanager
    def _manager() -> Iterator[list[str]]:
        token = None
        records: list[str] = []
        try:
            token = _current_recorder.set((records, echo))
            yield records
        finally:
            if token is not None:
                _current_recorder.reset(token)

    return _manager()


def sql_debug_enabled() -> bool:
    return os.environ.get(SQL_DEBUG_ENV) is not None


def push_sql(sql: str, *, echo: bool) -> None:
    recorder = _current_recorder.get()
    rec_echo = False
    if recorder is not None:
        rec_list, rec_echo = recorder
        rec_list.append(sql)
    if rec_echo or echo or sql_debug_enabled():
        print(f"[dbtable] SQL: {sql}", file=sys.stderr)
