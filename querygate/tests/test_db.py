import logging
import os

import pytest

from querygate import db


@pytest.fixture()
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    monkeypatch.setenv("QUERYGATE_CONFIG", str(path))
    monkeypatch.delenv("QUERYGATE_DB_PATH", raising=False)
    monkeypatch.delenv("QUERYGATE_DB_PATH_ARCHIVE", raising=False)
    return path


def test_env_wins_over_config(config_file, tmp_path, monkeypatch):
    config_file.write_text(f"bindings:\n  DB: {tmp_path / 'cfg.db'}\n", encoding="utf-8")
    monkeypatch.setenv("QUERYGATE_DB_PATH", str(tmp_path / "env" / "main.db"))
    assert db.get_db_path() == str(tmp_path / "env" / "main.db")
    assert os.path.isdir(tmp_path / "env")


def test_named_binding_env(config_file, tmp_path, monkeypatch):
    monkeypatch.setenv("QUERYGATE_DB_PATH_ARCHIVE", str(tmp_path / "archive.db"))
    assert db.get_db_path("ARCHIVE") == str(tmp_path / "archive.db")


def test_test_bindings_preferred_under_pytest(config_file, tmp_path):
    config_file.write_text(
        "bindings:\n"
        f"  DB: {tmp_path / 'prod.db'}\n"
        "test_bindings:\n"
        f"  DB: {tmp_path / 'test.db'}\n",
        encoding="utf-8",
    )
    assert db.get_db_path() == str(tmp_path / "test.db")


def test_bindings_used_outside_tests(config_file, tmp_path, monkeypatch):
    config_file.write_text(
        "bindings:\n"
        f"  DB: {tmp_path / 'prod.db'}\n"
        "test_bindings:\n"
        f"  DB: {tmp_path / 'test.db'}\n",
        encoding="utf-8",
    )
    monkeypatch.delenv("PYTEST_CURRENT_TEST", raising=False)
    monkeypatch.delenv("APP_ENV", raising=False)
    assert db.get_db_path() == str(tmp_path / "prod.db")


def test_fallback_under_project_root(config_file):
    path = db.get_db_path("ARCHIVE")
    assert os.path.basename(path) == "archive.db"


def test_invalid_yaml_is_ignored(config_file, caplog):
    config_file.write_text("bindings: [unclosed\n", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="querygate.db"):
        assert db._read_config_yaml() == {}
    assert "Ignoring unreadable config" in caplog.text


def test_configured_binding_names(config_file, tmp_path):
    config_file.write_text(
        "bindings:\n"
        f"  ARCHIVE: {tmp_path / 'a.db'}\n"
        f"  DB: {tmp_path / 'b.db'}\n",
        encoding="utf-8",
    )
    assert db.configured_binding_names() == ["DB", "ARCHIVE"]


def test_test_only_bindings_skipped_outside_tests(config_file, tmp_path, monkeypatch):
    config_file.write_text(
        "bindings:\n"
        f"  ARCHIVE: {tmp_path / 'a.db'}\n"
        "test_bindings:\n"
        f"  SCRATCH: {tmp_path / 'scratch.db'}\n",
        encoding="utf-8",
    )
    assert db.configured_binding_names() == ["DB", "ARCHIVE", "SCRATCH"]

    monkeypatch.delenv("PYTEST_CURRENT_TEST", raising=False)
    monkeypatch.delenv("APP_ENV", raising=False)
    assert db.configured_binding_names() == ["DB", "ARCHIVE"]


def test_configured_binding_names_without_config(config_file):
    assert db.configured_binding_names() == ["DB"]


@pytest.mark.asyncio
async def test_open_and_close_bindings(config_file, tmp_path, monkeypatch):
    monkeypatch.setenv("QUERYGATE_DB_PATH", str(tmp_path / "main.db"))
    monkeypatch.setenv("QUERYGATE_DB_PATH_ARCHIVE", str(tmp_path / "archive.db"))
    handles = await db.open_bindings(["DB", "ARCHIVE"])
    assert set(handles) == {"DB", "ARCHIVE"}
    assert handles["ARCHIVE"].path == str(tmp_path / "archive.db")
    await db.close_bindings(handles)
    assert handles == {}
