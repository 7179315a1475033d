"""
Connection handle contract + the SQLite implementation used by the host.

The gateway only ever talks to a handle through `prepare`/`bind`/`run`/`all`/
`first` and the raw `exec`. Anything that provides these can be bound; the
SQLite handle below is what `querygate.db` opens for configured bindings.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

import aiosqlite

Row = Dict[str, Any]


@dataclass(frozen=True)
class ExecResult:
    """Execution acknowledgement (no rows)."""
    changes: int
    last_row_id: Optional[int]
    duration_ms: float


class BoundStatement(Protocol):  # pragma: no cover - structural typing helper
    async def run(self) -> ExecResult: ...
    async def all(self) -> List[Row]: ...
    async def first(self) -> Optional[Row]: ...


class Statement(BoundStatement, Protocol):  # pragma: no cover
    def bind(self, *params: Any) -> BoundStatement: ...


class ConnectionHandle(Protocol):  # pragma: no cover
    def prepare(self, query: str) -> Statement: ...
    async def exec(self, query: str) -> ExecResult: ...


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


class SQLiteStatement:
    """Prepared text plus (optionally) its positional parameters."""

    def __init__(self, conn: aiosqlite.Connection, query: str, params: Sequence[Any] = ()):
        self._conn = conn
        self.query = query
        self.params = tuple(params)

    def bind(self, *params: Any) -> "SQLiteStatement":
        return SQLiteStatement(self._conn, self.query, params)

    async def run(self) -> ExecResult:
        start = time.perf_counter()
        async with self._conn.execute(self.query, self.params) as cursor:
            changes = max(cursor.rowcount, 0)
            last_row_id = cursor.lastrowid
        return ExecResult(changes=changes, last_row_id=last_row_id, duration_ms=_elapsed_ms(start))

    async def all(self) -> List[Row]:
        async with self._conn.execute(self.query, self.params) as cursor:
            rows = await cursor.fetchall()
        return [dict(r) for r in rows]

    async def first(self) -> Optional[Row]:
        async with self._conn.execute(self.query, self.params) as cursor:
            row = await cursor.fetchone()
        return dict(row) if row is not None else None


class SQLiteHandle:
    """
    Handle over one aiosqlite connection (autocommit, dict rows).

    The host owns it: open with `open_sqlite_handle`, dispose with `close()`.
    """

    def __init__(self, conn: aiosqlite.Connection, path: str):
        self._conn = conn
        self.path = path

    def prepare(self, query: str) -> SQLiteStatement:
        return SQLiteStatement(self._conn, query)

    async def exec(self, query: str) -> ExecResult:
        # Script execution: DDL batches may hold several statements.
        start = time.perf_counter()
        before = self._conn.total_changes
        await self._conn.executescript(query)
        return ExecResult(
            changes=self._conn.total_changes - before,
            last_row_id=None,
            duration_ms=_elapsed_ms(start),
        )

    async def close(self) -> None:
        await self._conn.close()

    def __repr__(self) -> str:
        return f"SQLiteHandle(path={self.path!r})"


async def open_sqlite_handle(path: str) -> SQLiteHandle:
    conn = await aiosqlite.connect(path, isolation_level=None)
    conn.row_factory = aiosqlite.Row
    await conn.execute("PRAGMA foreign_keys = ON;")
    return SQLiteHandle(conn, path)
