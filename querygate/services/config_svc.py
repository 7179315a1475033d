from __future__ import annotations

# querygate/services/config_svc.py
import logging
from typing import Any, Dict, List, Mapping

from ..gateway import QueryGateway
from ..logs import LogContext
from ..repository import settings_repo

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_TABLE = "settings"

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def coerce_setting(text: str | None, default: Any) -> Any:
    """Re-parse stored text by the type of its default; unparsable text falls back to the default."""
    if text is None:
        return default
    try:
        if isinstance(default, bool):
            low = text.strip().lower()
            if low in _TRUE:
                return True
            if low in _FALSE:
                return False
            raise ValueError(f"not a boolean: {text!r}")
        if isinstance(default, int):
            return int(text)
        if isinstance(default, float):
            return float(text)
    except ValueError:
        logger.warning("Setting value %r is not a valid %s, using default %r",
                       text, type(default).__name__, default)
        return default
    return text


async def ensure_default_config(gw: QueryGateway, defaults: Mapping[str, Any],
                                table: str = DEFAULT_SETTINGS_TABLE) -> List[str]:
    """Make sure the table and every default key exist (existing values are kept)."""
    await settings_repo.init_settings_table(gw, table)
    return await settings_repo.ensure_settings(gw, table, defaults)


async def get_config(gw: QueryGateway, defaults: Mapping[str, Any],
                     table: str = DEFAULT_SETTINGS_TABLE) -> Dict[str, Any]:
    rows = await settings_repo.get_all_settings(gw, table)
    cfg = {r["key"]: r["value"] for r in rows}
    out: Dict[str, Any] = {k: v for k, v in cfg.items() if k not in defaults}
    for k, default in defaults.items():
        out[k] = coerce_setting(cfg.get(k), default)
    return out


async def update_config(gw: QueryGateway, upd: Mapping[str, Any], log: LogContext,
                        table: str = DEFAULT_SETTINGS_TABLE) -> List[str]:
    updated = []
    before = {r["key"]: r["value"] for r in await settings_repo.get_all_settings(gw, table)}
    for k, v in upd.items():
        await settings_repo.update_setting(gw, table, k, v)
        updated.append(k)
    after = {r["key"]: r["value"] for r in await settings_repo.get_all_settings(gw, table)}
    log.set_entity("settings", table)
    log.set_before(before); log.set_after(after)
    return updated
