from __future__ import annotations

# querygate/db.py
import logging
import os
from typing import Dict, Iterable, List

import yaml

from .gateway import DEFAULT_BINDING
from .handle import SQLiteHandle, open_sqlite_handle

logger = logging.getLogger(__name__)

# Binding path resolution order:
# 1) env QUERYGATE_DB_PATH (default binding) / QUERYGATE_DB_PATH_<BINDING> (named binding)
# 2) config.yaml test_bindings.<BINDING> (when a test environment is detected)
# 3) config.yaml bindings.<BINDING>
# 4) fallback: <project root>/<binding lower>.db
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _config_path() -> str:
    return os.environ.get("QUERYGATE_CONFIG") or os.path.join(_PROJECT_ROOT, "config.yaml")


def _read_config_yaml() -> dict:
    cfg_path = _config_path()
    if not os.path.exists(cfg_path):
        return {}
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable config %s: %s", cfg_path, e)
        return {}
    if not isinstance(cfg, dict):
        logger.warning("Ignoring config %s: top level is not a mapping", cfg_path)
        return {}
    out = {}
    for k in ("bindings", "test_bindings"):
        section = cfg.get(k)
        if isinstance(section, dict):
            out[k] = {
                str(name): v.strip()
                for name, v in section.items()
                if isinstance(v, str) and v.strip()
            }
    return out


def _env_key(binding_id: str) -> str:
    if binding_id == DEFAULT_BINDING:
        return "QUERYGATE_DB_PATH"
    return f"QUERYGATE_DB_PATH_{binding_id.upper()}"


def _is_test() -> bool:
    return (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)


def get_db_path(binding_id: str = DEFAULT_BINDING) -> str:
    env_path = os.environ.get(_env_key(binding_id))
    cfg = _read_config_yaml()
    cfg_db = cfg.get("bindings", {}).get(binding_id)
    cfg_test = cfg.get("test_bindings", {}).get(binding_id)

    if env_path:
        path = env_path
    elif _is_test() and cfg_test:
        path = cfg_test
    elif cfg_db:
        path = cfg_db
    else:
        path = os.path.join(_PROJECT_ROOT, f"{binding_id.lower()}.db")

    if path != ":memory:":
        dirn = os.path.dirname(path) or "."
        os.makedirs(dirn, exist_ok=True)
    return path


def configured_binding_names() -> List[str]:
    cfg = _read_config_yaml()
    names = [DEFAULT_BINDING]
    sections = ("bindings", "test_bindings") if _is_test() else ("bindings",)
    for section in sections:
        for name in cfg.get(section, {}):
            if name not in names:
                names.append(name)
    return names


async def open_bindings(names: Iterable[str]) -> Dict[str, SQLiteHandle]:
    """Open one handle per binding name. Already-opened handles are closed if a later one fails."""
    handles: Dict[str, SQLiteHandle] = {}
    try:
        for name in names:
            path = get_db_path(name)
            handles[name] = await open_sqlite_handle(path)
            logger.info("Opened binding %s at %s", name, path)
    except Exception:
        await close_bindings(handles)
        raise
    return handles


async def close_bindings(handles: Dict[str, SQLiteHandle]) -> None:
    for name, handle in list(handles.items()):
        await handle.close()
        logger.info("Closed binding %s", name)
    handles.clear()
