from __future__ import annotations

# querygate/errors.py


class GatewayError(Exception):
    """Base class for every failure raised by the gateway."""


class ConnectionUnavailable(GatewayError):
    """A query primitive was called while no handle is bound."""

    def __init__(self, binding_id: str, query: str):
        super().__init__(f"Database not available: {binding_id}")
        self.binding_id = binding_id
        self.query = query


class QueryExecutionError(GatewayError):
    """
    The bound connection failed during prepare/bind/run/fetch.

    The original exception is kept on `.original` and chained as `__cause__`;
    its type and message are repeated in `str()`.
    """

    def __init__(self, binding_id: str, query: str, original: BaseException):
        super().__init__(f"{type(original).__name__}: {original}")
        self.binding_id = binding_id
        self.query = query
        self.original = original


class InvalidTableName(GatewayError, ValueError):
    """Settings table names must be plain SQL identifiers."""

    def __init__(self, table: str):
        super().__init__(f"invalid table name: {table!r}")
        self.table = table
