from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..errors import GatewayError
from ..gateway import QueryGateway, gateway
from ..logs import LogContext
from ..repository import settings_repo
from ..services.config_svc import update_config
from .base import get_gateway, to_http_error

logger = logging.getLogger(__name__)

router = APIRouter()


class SettingsUpdateBody(BaseModel):
    updates: dict


@router.get("/api/settings/{table}")
async def api_settings_list(table: str, gw: QueryGateway = Depends(get_gateway)):
    try:
        items = await settings_repo.get_all_settings(gw, table)
    except GatewayError as e:
        raise to_http_error(e)
    return {"binding": gw.current_binding_id(), "items": items}


@router.get("/api/settings/{table}/{key}")
async def api_settings_get(table: str, key: str, gw: QueryGateway = Depends(get_gateway)):
    try:
        row = await settings_repo.get_setting(gw, table, key)
    except GatewayError as e:
        raise to_http_error(e)
    if row is None:
        raise HTTPException(status_code=404, detail=f"setting not found: {key}")
    return {"key": key, "value": row["value"]}


@router.post("/api/settings/{table}/init")
async def api_settings_init(table: str, gw: QueryGateway = Depends(get_gateway)):
    try:
        await settings_repo.init_settings_table(gw, table)
    except GatewayError as e:
        raise to_http_error(e)
    return {"message": "ok"}


@router.post("/api/settings/{table}/update")
async def api_settings_update(table: str, body: SettingsUpdateBody, gw: QueryGateway = Depends(get_gateway)):
    log = LogContext("SETTINGS_UPDATE")
    log.set_binding(gw.current_binding_id())
    log.set_payload(body.model_dump())
    try:
        updated_keys = await update_config(gw, body.updates, log, table)
    except Exception as e:
        try:
            await log.write(gateway, "ERROR", str(e))
        except GatewayError as log_err:
            logger.error("Failed to write audit log for %s: %s", log.action, log_err)
        raise to_http_error(e)
    await log.write(gateway, "OK")
    return {"message": "ok", "updated": updated_keys}
