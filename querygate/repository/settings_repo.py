"""
Settings tables: (key TEXT PRIMARY KEY, value TEXT, updated_at INTEGER).

The table name is the caller's; values are stored as `str(value)` and come
back as text. Re-parsing is up to the caller (see services/config_svc.py).
"""
from __future__ import annotations

import re
import threading
import time
from typing import TYPE_CHECKING, Any, List, Mapping, Optional

from ..errors import InvalidTableName

if TYPE_CHECKING:  # pragma: no cover
    from ..gateway import QueryGateway
    from ..handle import ExecResult, Row

SETTINGS_SCHEMA = "key TEXT PRIMARY KEY, value TEXT, updated_at INTEGER"

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")

_clock_lock = threading.Lock()
_last_ms = 0


def now_ms() -> int:
    """Epoch milliseconds, strictly increasing within this process."""
    global _last_ms
    with _clock_lock:
        ms = time.time_ns() // 1_000_000
        if ms <= _last_ms:
            ms = _last_ms + 1
        _last_ms = ms
        return ms


def check_table(gw: "QueryGateway", table: str) -> str:
    """Plain or schema-qualified identifier. An unbound gateway reports that first."""
    if not gw.is_bound:
        return str(table)
    if not isinstance(table, str) or not _IDENT_RE.match(table):
        raise InvalidTableName(table)
    return table


async def create_table_if_not_exists(gw: "QueryGateway", table: str, schema: str) -> "ExecResult":
    return await gw.execute(f"CREATE TABLE IF NOT EXISTS {check_table(gw, table)} ({schema})")


async def init_settings_table(gw: "QueryGateway", table: str) -> "ExecResult":
    # Existing tables are left as they are, whatever their columns.
    return await create_table_if_not_exists(gw, table, SETTINGS_SCHEMA)


async def update_setting(gw: "QueryGateway", table: str, key: str, value: Any) -> "ExecResult":
    return await gw.execute(
        f"INSERT OR REPLACE INTO {check_table(gw, table)} (key, value, updated_at) VALUES (?, ?, ?)",
        [key, str(value), now_ms()],
    )


async def get_setting(gw: "QueryGateway", table: str, key: str) -> Optional["Row"]:
    return await gw.fetch_one(f"SELECT value FROM {check_table(gw, table)} WHERE key = ?", [key])


async def get_all_settings(gw: "QueryGateway", table: str) -> List["Row"]:
    return await gw.fetch_all(f"SELECT key, value, updated_at FROM {check_table(gw, table)}")


async def ensure_settings(gw: "QueryGateway", table: str, defaults: Mapping[str, Any]) -> List[str]:
    """Insert missing keys only; existing values are never overwritten. Returns keys written."""
    sql = (
        f"INSERT INTO {check_table(gw, table)} (key, value, updated_at) VALUES (?, ?, ?) "
        "ON CONFLICT(key) DO NOTHING"
    )
    written = []
    for k, v in defaults.items():
        res = await gw.execute(sql, [k, str(v), now_ms()])
        if res.changes:
            written.append(k)
    return written
