import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from querygate.handle import ExecResult, open_sqlite_handle  # noqa: E402


class FakeStatement:
    def __init__(self, handle, query, params=None):
        self.handle = handle
        self.query = query
        self.params = params

    def bind(self, *params):
        self.handle.calls.append(("bind", self.query, params))
        return FakeStatement(self.handle, self.query, params)

    async def run(self):
        self.handle.record("run", self.query, self.params)
        return ExecResult(changes=1, last_row_id=None, duration_ms=0.0)

    async def all(self):
        self.handle.record("all", self.query, self.params)
        return list(self.handle.rows)

    async def first(self):
        self.handle.record("first", self.query, self.params)
        return self.handle.rows[0] if self.handle.rows else None


class FakeHandle:
    """Records every call; raises `error` on run/all/first/exec when set."""

    def __init__(self, rows=None, error=None):
        self.calls = []
        self.rows = rows or []
        self.error = error

    def record(self, op, query, params=None):
        self.calls.append((op, query, params))
        if self.error is not None:
            raise self.error

    def prepare(self, query):
        self.calls.append(("prepare", query, None))
        return FakeStatement(self, query)

    async def exec(self, query):
        self.record("exec", query)
        return ExecResult(changes=0, last_row_id=None, duration_ms=0.0)

    def ops(self):
        return [c[0] for c in self.calls]


@pytest.fixture()
def fake_handle():
    return FakeHandle()


@pytest.fixture()
def make_handle():
    return FakeHandle


@pytest.fixture()
def tmp_db_path(tmp_path, monkeypatch):
    path = tmp_path / "querygate_test.db"
    # Point the default binding at this temp DB and ignore any project config.yaml
    monkeypatch.setenv("QUERYGATE_DB_PATH", str(path))
    monkeypatch.setenv("QUERYGATE_CONFIG", str(tmp_path / "absent.yaml"))
    return str(path)


@pytest_asyncio.fixture()
async def sqlite_handle(tmp_db_path):
    handle = await open_sqlite_handle(tmp_db_path)
    try:
        yield handle
    finally:
        await handle.close()
