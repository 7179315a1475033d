import datetime as dt
import json
import logging
import os
import time
import uuid
from typing import Any, Dict, List, Optional, Tuple

from .gateway import QueryGateway

DDL = """
CREATE TABLE IF NOT EXISTS operation_log (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts TEXT NOT NULL,
  user TEXT NOT NULL,
  action TEXT NOT NULL,
  binding TEXT,
  entity_type TEXT,
  entity_id TEXT,
  request_id TEXT,
  before_json TEXT,
  after_json TEXT,
  payload_json TEXT,
  result TEXT,
  err_msg TEXT,
  latency_ms INTEGER
);
CREATE INDEX IF NOT EXISTS idx_log_ts ON operation_log(ts);
CREATE INDEX IF NOT EXISTS idx_log_action ON operation_log(action);
"""

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


async def ensure_log_schema(gw: QueryGateway):
    await gw.execute(DDL)


def _dumps(obj):
    return json.dumps(obj, ensure_ascii=False) if obj is not None else None


class LogContext:
    def __init__(self, action: str, user: str = "owner"):
        self.action = action
        self.user = user
        self.request_id = str(uuid.uuid4())
        self.start = time.perf_counter()
        self.before = None
        self.after = None
        self.payload = None
        self.entity_type = None
        self.entity_id = None
        self.binding = None

    def set_entity(self, etype: str, eid: str):
        self.entity_type = etype
        self.entity_id = eid

    def set_binding(self, binding: str): self.binding = binding
    def set_before(self, obj): self.before = obj
    def set_after(self, obj): self.after = obj
    def set_payload(self, obj): self.payload = obj

    def record(self, binding: str, result: str = "OK", err: Optional[str] = None) -> Dict[str, Any]:
        elapsed_ms = int((time.perf_counter() - self.start) * 1000)
        return {
            "ts": dt.datetime.now(dt.timezone.utc).isoformat(),
            "user": self.user,
            "action": self.action,
            "binding": binding,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "request_id": self.request_id,
            "before_json": _dumps(self.before),
            "after_json": _dumps(self.after),
            "payload_json": _dumps(self.payload),
            "result": result,
            "err_msg": err,
            "latency_ms": elapsed_ms,
        }

    async def write(self, gw: QueryGateway, result: str = "OK", err: Optional[str] = None):
        rec = self.record(self.binding or gw.current_binding_id(), result, err)
        cols = list(rec)
        await gw.execute(
            f"INSERT INTO operation_log ({','.join(cols)}) VALUES ({','.join('?' * len(cols))})",
            [rec[c] for c in cols],
        )


async def search_logs(gw: QueryGateway, q: str | None, action: str | None, ts_from: str | None,
                      ts_to: str | None, page: int, size: int) -> Tuple[int, List[Dict[str, Any]]]:
    where = []
    params: List[Any] = []
    if q:
        where.append("(payload_json LIKE ? OR before_json LIKE ? OR after_json LIKE ?)")
        params.extend([f"%{q}%"] * 3)
    if action:
        where.append("action = ?")
        params.append(action)
    if ts_from:
        where.append("ts >= ?")
        params.append(ts_from)
    if ts_to:
        where.append("ts <= ?")
        params.append(ts_to)
    wh = " WHERE " + " AND ".join(where) if where else ""
    sql = f"SELECT * FROM operation_log{wh} ORDER BY ts DESC, id DESC LIMIT ? OFFSET ?"
    count_sql = f"SELECT COUNT(1) AS cnt FROM operation_log{wh}"
    total = (await gw.fetch_one(count_sql, params))["cnt"]
    rows = await gw.fetch_all(sql, [*params, size, (max(page, 1) - 1) * size])
    return total, rows
