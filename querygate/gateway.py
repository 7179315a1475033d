"""
Query gateway: one lazily-bound connection handle plus three query primitives.

Binding state is a single immutable `Binding` snapshot. `bind` swaps it whole;
every primitive reads it exactly once, so a concurrent rebind can only decide
which handle an operation uses, never mix the old handle with the new id.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

from .errors import ConnectionUnavailable, QueryExecutionError
from .handle import ConnectionHandle, ExecResult, Row
from .repository import settings_repo

logger = logging.getLogger(__name__)

DEFAULT_BINDING = "DB"

BindingLookup = Callable[[str], Optional[ConnectionHandle]]


@dataclass(frozen=True)
class Binding:
    handle: Optional[ConnectionHandle]
    binding_id: str = DEFAULT_BINDING


class QueryGateway:
    def __init__(self, handle: Optional[ConnectionHandle] = None, binding_id: str = DEFAULT_BINDING):
        self._binding = Binding(handle, binding_id)

    # ---------------- binding ----------------

    def bind(self, handle: ConnectionHandle, binding_id: str = DEFAULT_BINDING) -> None:
        self._binding = Binding(handle, binding_id)
        logger.debug("Database bound: %s", binding_id)

    def bind_from_context(
        self,
        context: Union[BindingLookup, Mapping[str, ConnectionHandle]],
        binding_id: str = DEFAULT_BINDING,
    ) -> bool:
        """
        Bind the handle the host exposes under `binding_id`.

        `context` is a lookup `binding_id -> handle | None` (a Mapping works too).
        Returns False and leaves the current binding untouched when nothing is found.
        """
        lookup = context.get if isinstance(context, Mapping) else context
        handle = lookup(binding_id)
        if handle is None:
            return False
        self.bind(handle, binding_id)
        return True

    def current_binding_id(self) -> str:
        return self._binding.binding_id

    @property
    def is_bound(self) -> bool:
        return self._binding.handle is not None

    # ---------------- primitives ----------------

    def _require(self, action: str, query: str) -> Binding:
        binding = self._binding
        if binding.handle is None:
            logger.warning(
                "Attempted to %s without database (%s): %s", action, binding.binding_id, query
            )
            raise ConnectionUnavailable(binding.binding_id, query)
        return binding

    @staticmethod
    def _failed(binding: Binding, query: str, error: Exception) -> QueryExecutionError:
        logger.error("Database (%s) query error: %r", binding.binding_id, error)
        return QueryExecutionError(binding.binding_id, query, error)

    async def execute(self, query: str, params: Sequence[Any] = ()) -> ExecResult:
        """Run for side effect. No params: raw `exec` (DDL fast path); else prepare+bind+run."""
        binding = self._require("execute query", query)
        try:
            if len(params) > 0:
                return await binding.handle.prepare(query).bind(*params).run()
            return await binding.handle.exec(query)
        except Exception as e:
            raise self._failed(binding, query, e) from e

    async def fetch_all(self, query: str, params: Sequence[Any] = ()) -> List[Row]:
        binding = self._require("get all rows", query)
        try:
            statement = binding.handle.prepare(query)
            if len(params) > 0:
                return await statement.bind(*params).all()
            return await statement.all()
        except Exception as e:
            raise self._failed(binding, query, e) from e

    async def fetch_one(self, query: str, params: Sequence[Any] = ()) -> Optional[Row]:
        binding = self._require("get first row", query)
        try:
            statement = binding.handle.prepare(query)
            if len(params) > 0:
                return await statement.bind(*params).first()
            return await statement.first()
        except Exception as e:
            raise self._failed(binding, query, e) from e

    # ---------------- settings ----------------

    async def create_table_if_not_exists(self, table: str, schema: str) -> ExecResult:
        return await settings_repo.create_table_if_not_exists(self, table, schema)

    async def init_settings_table(self, table: str) -> ExecResult:
        return await settings_repo.init_settings_table(self, table)

    async def update_setting(self, table: str, key: str, value: Any) -> ExecResult:
        return await settings_repo.update_setting(self, table, key, value)

    async def get_setting(self, table: str, key: str) -> Optional[Row]:
        return await settings_repo.get_setting(self, table, key)

    async def get_all_settings(self, table: str) -> List[Row]:
        return await settings_repo.get_all_settings(self, table)

    def __repr__(self) -> str:
        state = "bound" if self.is_bound else "unbound"
        return f"QueryGateway(binding_id={self.current_binding_id()!r}, {state})"


# Shared instance for callers that bind once per process (or per request).
gateway = QueryGateway()
