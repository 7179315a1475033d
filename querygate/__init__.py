"""querygate: a lazily-bound query gateway with a key/value settings layer.

Keep `from querygate import QueryGateway` as the public entry point.
"""
from __future__ import annotations

__version__ = "0.1.0"

from .errors import ConnectionUnavailable, GatewayError, InvalidTableName, QueryExecutionError
from .gateway import DEFAULT_BINDING, Binding, QueryGateway, gateway
from .handle import ExecResult, SQLiteHandle, open_sqlite_handle

__all__ = [
    "Binding",
    "ConnectionUnavailable",
    "DEFAULT_BINDING",
    "ExecResult",
    "GatewayError",
    "InvalidTableName",
    "QueryExecutionError",
    "QueryGateway",
    "SQLiteHandle",
    "gateway",
    "open_sqlite_handle",
]
